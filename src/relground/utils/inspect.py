"""Provide insights about Python objects.

Used to give a readable name to the functions
invoked by expressions when a query plan is printed.
"""

import functools
import inspect
from typing import Any


def get_qualname(obj: Any) -> str:
    """Get the qualified name of a callable.

    For functions this will return something like
    ``module.function``, for bound methods ``module.class.method``.
    Partial functions are named after the function they wrap.

    >>> import pyarrow.compute as pc
    >>> get_qualname(pc.equal)
    'pyarrow.compute.equal'
    >>> import functools
    >>> get_qualname(functools.partial(pc.match_like, pattern="%a%"))
    'pyarrow.compute.match_like'
    """
    if isinstance(obj, functools.partial):
        return get_qualname(obj.func)

    module = inspect.getmodule(obj)
    module_name = module.__name__ if module is not None else obj.__module__
    if inspect.ismethod(obj):
        class_name = obj.__self__.__class__.__name__
        return f"{module_name}.{class_name}.{obj.__name__}"
    elif inspect.isfunction(obj) or inspect.isbuiltin(obj) or inspect.isclass(obj):
        return f"{module_name}.{obj.__qualname__}"
    elif callable(obj):
        return f"{module_name}.{obj.__class__.__name__}"
    raise ValueError(f"Unable to detect path for object of type {type(obj)}")
