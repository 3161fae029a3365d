"""
Helmsman utilities shared by the tokenizer, the dispatcher and the program.

Contents
- Unset: the "argument omitted" marker. Keyword parameters default to it
  wherever None could be a meaningful value.
- coalesce(): swap Unset for a fallback, leave every other value alone.
- rename(): give generated callables (validators, decorator wrappers) a
  readable __name__/__qualname__.
- mirror(): read-only property over a "_name" backing field that hands out
  copies of containers.

Examples
    >>> coalesce(Unset, 1)
    1
    >>> coalesce(0, 1)
    0
    >>> isinstance(Unset, str | Unset)
    True
"""
import builtins
import functools
from collections.abc import Mapping, Sequence, Set
from typing import final


@final
class UnsetType:
    """
    Type of the Unset marker.

    There is exactly one instance; calling UnsetType() returns it again. It
    is falsy, prints as "Unset", can appear in `X | Unset` unions for
    isinstance() checks, and cannot be subclassed.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __or__(self, other, /):
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("UnsetType cannot be subclassed")


def coalesce(object, default=None, /):
    """
    return default when object is Unset, object otherwise (None, 0 and ""
    are kept).
    """
    return default if object is Unset else object


def _relabel(function, name, /):
    if not builtins.callable(function):
        raise TypeError("rename() target must be callable")
    if not isinstance(name, str):
        raise TypeError("rename() name must be a string")
    try:
        function.__name__ = name
        function.__qualname__ = name
    except (AttributeError, TypeError):
        raise TypeError("rename() target does not accept a new name") from None
    return function


def rename(*parameters):
    """
    rename(function, name) relabels function in place and returns it;
    rename(name) returns a decorator doing the same.
    """
    if len(parameters) == 2:
        return _relabel(*parameters)
    if len(parameters) != 1:
        raise TypeError("rename() expects 1 or 2 arguments, got %d" % len(parameters))

    name, = parameters
    if not isinstance(name, str):
        raise TypeError("rename() name must be a string")

    def decorator(function):
        return _relabel(function, name)

    return _relabel(decorator, "rename")


def _detached(object):
    # strings are sequences too, but immutable ones
    if isinstance(object, str):
        return object
    if isinstance(object, Mapping):
        return {key: _detached(value) for key, value in object.items()}
    if isinstance(object, Sequence):
        return [_detached(item) for item in object]
    if isinstance(object, Set):
        return {_detached(item) for item in object}
    return object


def mirror(name, /):
    """
    read-only property returning a detached copy of self._<name>: sequences
    come back as lists, mappings as dicts, sets as sets.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() name must be a string")

    def getter(self):
        return _detached(getattr(self, "_" + name))

    return property(_relabel(getter, name))


Unset = UnsetType()


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",

    # Types
    "UnsetType",
    "Unset",
)
