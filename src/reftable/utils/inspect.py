"""Naming of the callables used inside expressions."""

import inspect
from typing import Any


def get_qualname(obj: Any) -> str:
    """Dotted name of a function, class or module.

    Used to print expressions in a readable way,
    the name includes the module the object lives in:

    >>> import pyarrow.compute
    >>> get_qualname(pyarrow.compute.add)
    'pyarrow.compute.add'
    >>> class Scaler:
    ...   def scale(self, values):
    ...     pass
    >>> get_qualname(Scaler().scale)
    'reftable.utils.inspect.Scaler.scale'

    Instances of callable classes are named after their class.
    """
    if inspect.ismodule(obj):
        return obj.__name__

    owner = getattr(obj, "__self__", None)
    if inspect.ismethod(obj) and owner is not None:
        # Bound methods: named after the class of the instance.
        owner_cls = owner if inspect.isclass(owner) else owner.__class__
        return f"{owner_cls.__module__}.{owner_cls.__qualname__}.{obj.__name__}"

    if not (inspect.isfunction(obj) or inspect.isclass(obj) or inspect.isbuiltin(obj)):
        obj = obj.__class__

    module = getattr(obj, "__module__", None)
    name = getattr(obj, "__qualname__", None) or getattr(obj, "__name__", None)
    if name is None:
        raise ValueError(f"Unable to detect the name of {obj!r}")
    # Classes defined inside functions have "<locals>" in their qualname.
    name = name.split("<locals>.")[-1]
    return f"{module}.{name}" if module else name
