"""Provide human readable names for Python callables.

Expressions and pipelines print the functions they invoke,
so we need a stable way to name any callable we receive.
"""

import functools
import inspect
from typing import Any


def get_qualname(obj: Any) -> str:
    """Get the qualified name of the given object.

    Will return the name of the object and the
    name of the module and class it belongs to.

    For functions or methods, this will return
    something like `module.class.method` or
    `module.function`.

    >>> import pyarrow.compute as pc
    >>> get_qualname(pc.add)
    'pyarrow.compute.add'
    >>> class Doubler:
    ...   def __call__(self, store):
    ...     return store
    >>> get_qualname(Doubler())
    'dataverbs.utils.inspect.Doubler'
    """
    if isinstance(obj, functools.partial):
        return f"partial({get_qualname(obj.func)})"

    module = inspect.getmodule(obj)
    module_name = module.__name__ if module is not None else "<unknown>"
    if inspect.ismethod(obj):
        class_name = obj.__self__.__class__.__name__
        return f"{module_name}.{class_name}.{obj.__name__}"
    elif inspect.isfunction(obj) or inspect.isbuiltin(obj):
        return f"{module_name}.{obj.__qualname__}"
    elif inspect.isclass(obj):
        return f"{module_name}.{obj.__name__}"
    elif inspect.ismodule(obj):
        return obj.__name__
    elif callable(obj):
        return f"{module_name}.{obj.__class__.__name__}"
    raise ValueError(f"Unable to detect path for object of type {type(obj)}")
