"""
Argoshell faults: what goes wrong while declaring, parsing or dispatching, and how it is shown.

- FaultCode: stable numbers, one per runtime fault kind.
- CommandException and its subclasses: a message naming the offending token or
  declaration, plus read-only options (title, code, hint, token, index, argument,
  route, parsed, tool, shell, fancy, colorful, ...).
- InvalidDeclarationError: a malformed Argument, raised at construction and
  meant for the developer, so it is a plain ValueError.
- trigger(): merge options into a fault, then raise it or, in shell mode, print it.
- getdoc(): per-code documentation supplied by the host.

A rendered fault reads

    [ prog — 11112 | Invalid Integer Value ]
    'abc' at second position is not a valid integer for '--count'
     → pass a base-10 integer (for example: -c 42)

Hosts tune it from __main__: __prog__ (label), __styles__ (palette),
__codes__ (code labels) and __docs__ (per-code docs).
"""
import copy
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)

_PALETTE = {
    "prog-name": "bold #E6E6F0",
    "code": "bold #00E5FF",
    "error-title": "bold #FF4DA6",
    "error-message": "#C8C8D0",
    "hint-arrow": "#9CE19C dim",
    "hint": "italic #9CE19C",
}


def _host(name, default, /):
    return getattr(__import__("__main__"), name, default)


class FaultCode(IntEnum):
    """
    numeric identity of a fault; 1110x routing, 1111x parsing, 1112x validation.
    """
    UNKNOWN_COMMAND             = 11101
    MISSING_HANDLER             = 11102
    MALFORMED_LINE              = 11103

    UNRECOGNIZED_ARGUMENT       = 11111
    INVALID_INTEGER_VALUE       = 11112
    MISSING_VALUE               = 11113

    MISSING_REQUIRED_ARGUMENT   = 11121
    DUPLICATE_ARGUMENT          = 11122

    def normalize(self):
        """
        label shown in fault headers: __main__.__codes__[self] when the host maps it,
        the number otherwise.
        """
        return str(_host("__codes__", {}).get(self, self.value))


class InvalidDeclarationError(ValueError):
    """
    an Argument declaration breaks a construction rule; the message is that rule.
    """


class CommandException(Exception):
    """
    base of every fault raised while parsing or dispatching a line.

    the options mapping is read-only; copy.replace(fault, **options) builds a new
    fault of the same type with options merged, which is how runtime flags and the
    reporting command get attached on the way up.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return "" if self.message is Unset else self.message

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **(dict(self.options) | overrides))

    def __trigger__(self):
        if self.options.get("shell", False):
            console.print(self)
        else:
            raise self from None

    def __rich__(self):
        options = self.options
        styles = defaultdict(str, _PALETTE | _host("__styles__", {}))

        def styled(fragment, style):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if options.get("colorful", False) else "")

        tool = options.get("tool")
        code = options.get("code")
        header = Text.assemble(
            "[ ",
            styled(_host("__prog__", tool.root.name if tool else "argoshell"), "prog-name"),
            " — ",
            styled(code.normalize() if code else "-", "code"),
            " | ",
            styled(options.get("title", type(self).__name__).title(), "error-title"),
            " ]",
        )
        body = styled(self, "error-message")
        hint = Text.assemble(styled(" → ", "hint-arrow"), styled(options.get("hint"), "hint"))

        if options.get("fancy", False):
            return Panel(Group(body, hint), title=header, title_align="left")
        return Group(header, body, hint)


class UnknownCommandError(CommandException): ...
class MissingHandlerError(CommandException): ...
class MalformedLineError(CommandException): ...
class UnrecognizedArgumentError(CommandException): ...
class InvalidIntegerValueError(CommandException): ...
class MissingValueError(CommandException): ...
class MissingRequiredArgumentError(CommandException): ...
class DuplicateArgumentError(CommandException): ...


def trigger(fault, /, **options):
    """
    raise fault with options merged in, or print it when options carry shell=True.

    fault may be any object with callable __replace__ and __trigger__.
    """
    for method in ("__replace__", "__trigger__"):
        if not callable(getattr(fault, method, None)):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    documentation the host registered for code in __main__.__docs__, else None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return _host("__docs__", {}).get(code)


__all__ = (
    "FaultCode",
    "InvalidDeclarationError",
    "CommandException",
    "UnknownCommandError",
    "MissingHandlerError",
    "MalformedLineError",
    "UnrecognizedArgumentError",
    "InvalidIntegerValueError",
    "MissingValueError",
    "MissingRequiredArgumentError",
    "DuplicateArgumentError",
    "trigger",
    "getdoc",
)
