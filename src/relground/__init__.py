"""relground

A relational query engine built from scratch for learning and teaching purposes.

relground answers the kind of reporting queries that are usually
written in SQL, like "which aircraft carried the most Gold customers",
over small in-memory tables, with the same semantics SQL has
for nulls, grouping and ordering.

The engine is constituted by multiple components, each isolated within its own
package and each self documented in literate programming style.

The primary components are:

* The Warehouse, which provides the catalog of tables.
* The Compute Engine, in charge of executing the plan nodes on the data.
* The Query support, which turns a logical plan into compute engine nodes and runs them.

For the user guide and code documentation of each component, refer to the
component itself.
"""

from . import compute, errors, query, warehouse

__all__ = ("compute", "errors", "query", "warehouse")
