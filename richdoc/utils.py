from __future__ import annotations

import functools
from typing import Any, Callable, Generic, TypeVar, cast

_T = TypeVar("_T")


def exactly_one(**kwargs: Any) -> None:
    """Verify arguments; exactly one of all keyword arguments must not be None.

    Example:
        >>> exactly_one(filename=filename, file=file, text=text, url=url)
    """
    if sum([(arg is not None and arg != "") for arg in kwargs.values()]) != 1:
        names = list(kwargs.keys())
        if len(names) > 1:
            message = f"Exactly one of {', '.join(names[:-1])} and {names[-1]} must be specified."
        else:
            message = f"{names[0]} must be specified."
        raise ValueError(message)


class lazyproperty(Generic[_T]):
    """Decorator like @property, but evaluated only on first access.

    Like @property, this can only be used to decorate methods having only a `self` parameter, and
    is accessed like an attribute on an instance, i.e. trailing parentheses are not used. Unlike
    @property, the decorated method is only evaluated on first access; the resulting value is
    cached and that same value returned on second and later access without re-evaluation of the
    method.

    The cached value is stored in the __dict__ of the *instance* under the name of the decorated
    method. Because this is a data descriptor, its `__get__()` method runs on each access and the
    instance __dict__ item of the same name is shadowed by it.

    A lazyproperty is read-only. Attempting to assign to a lazyproperty raises AttributeError
    unconditionally.
    """

    def __init__(self, fget: Callable[..., _T]) -> None:
        # --- maintain a reference to the wrapped getter method and store its name
        self._fget = fget
        self._name = fget.__name__
        # --- adopt fget's __name__, __doc__, and other attributes
        functools.update_wrapper(self, fget)  # pyright: ignore

    def __get__(self, obj: Any, type: Any = None) -> _T:
        # --- when accessed on class, e.g. Obj.fget, just return this descriptor
        if obj is None:
            return self  # type: ignore

        # --- on first access the instance __dict__ item is absent; evaluate fget() and cache it
        value = obj.__dict__.get(self._name)
        if value is None:
            value = self._fget(obj)
            obj.__dict__[self._name] = value
        return cast(_T, value)

    def __set__(self, obj: Any, value: Any) -> None:
        """Raises unconditionally, to preserve read-only behavior."""
        raise AttributeError("can't set attribute")
