r"""
Argoshell argument declarations and parse results.

Overview
- ArgumentKind: the three payload kinds an argument can carry (INTEGER, STRING, BOOLEAN).
- Argument: one accepted argument of a command, either
  • a flag, keyed by its long flag ("--name") and optionally reachable through a
    short flag ("-n"), or
  • a positional, keyed by a bare name ("name") and filled by position.
- argument(...): factory mirroring the classic (flag, key, kind, multiple, required) order.
- ParsedArgument: one resolved occurrence produced by the parser.

Validation highlights (construction time, InvalidDeclarationError)
- flag: empty/Unset, or exactly "-" followed by one ascii alphanumeric character.
- key: never empty. The argument is positional when the key is not of the long
  shape and no short flag was given.
  • positional key: r"[A-Za-z0-9][A-Za-z0-9_-]+", kind must not be BOOLEAN.
  • flag key:       r"--[A-Za-z0-9][A-Za-z0-9_-]+".
- kind: an ArgumentKind (or its plain integer value).

Examples
    >>> verbose = Argument("--verbose", "-v", ArgumentKind.BOOLEAN)
    >>> files = Argument("files", multiple=True, required=True)
    >>> files.positional
    True
"""
import functools
import operator
import re
from collections import namedtuple
from enum import IntEnum

from .faults import InvalidDeclarationError
from .tokens import TokenKind, classify
from .utils import *


class ArgumentKind(IntEnum):
    """
    payload kind of an argument.

    - INTEGER: the value must be a base-10 integer.
    - STRING:  the value is taken verbatim.
    - BOOLEAN: presence-only; never awaits a value.
    """
    INTEGER = 0
    STRING = 1
    BOOLEAN = 2


class ArgumentType(type):
    """
    Metaclass giving declarations a stable, introspectable surface.

    Responsibilities
    - Expose every name listed in __introspectable__ as a read-only property
      mirroring the private "_{name}" field.
    - Provide stable __repr__/__rich_repr__ implementations for diagnostics.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used as the subject of construction-time messages.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Example
            - argument(flag='-v', key='--verbose', kind=<ArgumentKind.BOOLEAN: 2>, ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_kind(cls, kind, /):
    """
    Internal: coerce kind into an ArgumentKind or reject it.
    """
    if isinstance(kind, ArgumentKind):
        return kind
    if isinstance(kind, int) and not isinstance(kind, bool):
        try:
            return ArgumentKind(kind)
        except ValueError:
            pass
    raise InvalidDeclarationError(
        f"{cls.__typename__} kind {kind!r} is not a valid argument kind, use INTEGER, STRING or BOOLEAN"
    )


class Argument(metaclass=ArgumentType):
    """
    Declaration of one argument accepted by a command.

    Properties
    - flag: str | None        short flag ("-x"), None when absent.
    - key: str                long flag ("--name") or positional key ("name"); the identity
                              reported in parse results and fault messages.
    - kind: ArgumentKind      payload kind.
    - multiple: bool          whether more than one occurrence is legal.
    - required: bool          whether absence is an error.
    - positional: bool        derived at construction, cached.

    Declarations are immutable once built; invalid ones are never returned.
    """

    __introspectable__ = (
        "flag",
        "key",
        "kind",
        "multiple",
        "required",
        "positional",
    )

    def __new__(
            cls,
            key,
            /,
            flag=Unset,
            kind=ArgumentKind.STRING,
            *,
            multiple=False,
            required=False,
    ):
        """
        Construct a declaration after checking the rules in order.

        Raises
        - InvalidDeclarationError: the message names the violated rule.
        """
        if flag == "":
            flag = Unset
        if not isinstance(flag, str | Unset):
            raise InvalidDeclarationError(f"{cls.__typename__} flag must be a string")
        if flag and not re.fullmatch(r"-[A-Za-z0-9]", flag):
            raise InvalidDeclarationError(
                f"{cls.__typename__} flag {flag!r} is not a valid short flag, use '-' followed by one alphanumeric character"
            )

        if not isinstance(key, str):
            raise InvalidDeclarationError(f"{cls.__typename__} key must be a string")
        if not key:
            raise InvalidDeclarationError(f"{cls.__typename__} key cannot be empty")

        positional = classify(key) is not TokenKind.LONG and not flag

        if positional:
            if not re.fullmatch(r"[A-Za-z0-9][A-Za-z0-9_-]+", key):
                raise InvalidDeclarationError(f"{cls.__typename__} key {key!r} is not a valid positional key")
            if kind == ArgumentKind.BOOLEAN:
                raise InvalidDeclarationError(f"{cls.__typename__} positional {key!r} cannot be a boolean")
        elif not re.fullmatch(r"--[A-Za-z0-9][A-Za-z0-9_-]+", key):
            raise InvalidDeclarationError(f"{cls.__typename__} key {key!r} is not a valid long flag")

        kind = _sanitize_kind(cls, kind)

        self = super().__new__(cls)
        self._flag = coalesce(flag)
        self._key = key
        self._kind = kind
        self._multiple = bool(multiple)
        self._required = bool(required)
        self._positional = positional
        return self

    def __setattr__(self, name, value, /):
        if hasattr(self, "_positional"):
            raise AttributeError(f"{type(self).__typename__} is read-only")
        super().__setattr__(name, value)

    def matches(self, token, /):
        """
        Return True when token names this declaration as a flag.

        LONG tokens are compared with the key only, SHORT tokens with the short flag
        only; BARE tokens (and any token against a positional) never match.
        """
        if self._positional:
            return False
        match classify(token):
            case TokenKind.LONG:
                return token == self._key
            case TokenKind.SHORT:
                return token == self._flag
        return False


def argument(flag, key, /, kind=ArgumentKind.STRING, multiple=False, required=False):
    """
    Build an Argument from the classic (flag, key, kind, multiple, required) order.

    An empty flag ("") means “no short flag”, so `argument("", "name")` declares a positional.
    """
    return Argument(key, flag, kind, multiple=multiple, required=required)


class ParsedArgument(namedtuple("ParsedArgument", ("index", "key", "kind", "value"))):
    """
    One resolved occurrence, as emitted by the parser.

    Fields
    - index: declaration index within the owning command (shared by repeated occurrences).
    - key: the declaration key.
    - kind: copied from the declaration.
    - value: raw string payload ("" for BOOLEAN occurrences).
    """
    __slots__ = ()

    @property
    def typed(self):
        """
        The payload converted according to kind (int, True, or the raw string).
        """
        match self.kind:
            case ArgumentKind.INTEGER:
                return int(self.value)
            case ArgumentKind.BOOLEAN:
                return True
        return self.value


__all__ = (
    "ArgumentKind",
    "Argument",
    "argument",
    "ParsedArgument",
)
