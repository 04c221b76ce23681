"""
Argoshell utilities shared by the arguments, parser and commands layers.

- Unset: "not given" marker for keyword defaults, distinct from None (a command's
  help may legitimately be None, its runtime flags inherit when Unset).
- coalesce(): swap Unset for a fallback.
- rename(): give generated callables readable names in tracebacks and reprs.
- mirror(): read-only view over a private "_{name}" field; containers come back
  as copies so a caller can never edit a command's registries in place.
- ordinal(): "first", "second", ..., "11th" labels for token positions.

    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> ordinal(3)
    'third'
"""
import functools
from collections.abc import Mapping, Sequence, Set
from typing import final


@final
class UnsetType:
    """
    type of the Unset marker (one instance per process, always falsey).
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __or__(self, other, /):
        # allows isinstance(value, str | Unset)
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
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    object, unless it is Unset; then default. None, 0 and "" are kept as given.
    """
    return default if object is Unset else object


def rename(name, /):
    """
    decorator setting __name__ and __qualname__ of the decorated callable to name.
    """
    if not isinstance(name, str):
        raise TypeError("@rename() argument must be a string")

    def decorator(function):
        if not callable(function):
            raise TypeError("@rename() must be applied to a callable")
        function.__name__ = function.__qualname__ = name
        return function

    return decorator


def _snapshot(object):
    if isinstance(object, Mapping):
        return dict(object)
    if isinstance(object, Set):
        return frozenset(object)
    if isinstance(object, Sequence) and not isinstance(object, str):
        return tuple(object)
    return object


def mirror(name, /):
    """
    property reading self._{name}; lists become tuples, dicts fresh dicts, sets frozensets.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _snapshot(getattr(self, "_" + name))

    return property(getter)


_ORDINALS = ("first", "second", "third", "fourth", "fifth", "sixth", "seventh", "eighth", "ninth", "tenth")


@functools.cache
def ordinal(number, /):
    """
    1-based position label: words up to ten, then "11th", "22nd", "103rd", ...
    """
    if 1 <= number <= len(_ORDINALS):
        return _ORDINALS[number - 1]
    if number % 100 in (11, 12, 13):
        return "%dth" % number
    return "%d%s" % (number, {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th"))


Unset = UnsetType()


__all__ = (
    "coalesce",
    "rename",
    "mirror",
    "ordinal",
    "UnsetType",
    "Unset",
)
