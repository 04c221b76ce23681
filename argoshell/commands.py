"""
Argoshell command layer: build, compose, resolve and dispatch shell commands.

What this module provides
- Command: one node of the dispatch tree, with
  • identity (name + aliases) and help copy (help, longhelp),
  • an optional handler invoked with a Context,
  • ordered argument declarations (see argoshell.arguments),
  • children keyed by name, resolved greedily token by token.

- Factories and helpers:
  • command(...): create a Command or a decorator that produces one.
  • invoke(obj, prompt): resolve + parse + dispatch one tokenized line.
  • helper(parent): mount the reserved "help" child.
  • Context: what a handler receives (resolved command, raw remainder, parsed arguments).

Quick start
    from argoshell import Command, helper, invoke, ArgumentKind

    shell = Command(name="shell", shell=True)   # group node, no handler

    @shell.command(aliases=("cp",))
    def copy(context):
        \"\"\"copy files around\"\"\"
        context.console.print(context.getall("paths"), context.get("--force", False))

    copy.argument("paths", multiple=True, required=True)
    copy.argument("--force", "-f", ArgumentKind.BOOLEAN)
    helper(shell)

    invoke(shell, "cp -f a.txt b.txt")

Design notes
- Resolution never fails: an unmatched token simply ends the walk; “unknown command”
  is decided by the dispatcher, not by the tree.
- Children are registered last-wins by name; alias collisions across siblings are
  rejected at registration time.
- Runtime flags (shell/fancy/colorful) are inherited through the parent chain, so a
  host usually configures them once on the root.
"""
import difflib
import functools
import inspect
import operator
import re
import shlex
import sys
from collections.abc import Iterable

from rich.console import Console

from .arguments import Argument, ArgumentKind
from .faults import *
from .parser import parse_args
from .utils import *

console = Console()


class CommandType(type):
    """
    Metaclass giving commands a stable, introspectable surface.

    Responsibilities
    - Expose every name listed in __introspectable__ as a read-only property
      mirroring the private "_{name}" field (containers are returned as copies).
    - Provide stable __repr__/__rich_repr__ for diagnostics and rich UI;
      __displayable__ narrows the fields shown.
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
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                value = getattr(self, name)
                # children/parent would recurse through the whole tree
                if name == "children":
                    value = tuple(value)
                elif name == "parent":
                    value = getattr(value, "name", None)
                yield name, value
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_identifier(cls, field, value, /):
    """
    Internal: a command name or alias is a non-empty string without whitespace.
    """
    if not isinstance(value, str):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")
    elif not value:
        raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
    elif re.search(r"\s", value):
        raise ValueError(f"{cls.__typename__} {field!r} cannot contain whitespace")
    return value


def _process_identity(cls, metadata):
    """
    Normalize name and aliases.

    - name defaults to the handler's __name__; it is required.
    - aliases must be distinct identifiers, none equal to the name.
    """
    if metadata["name"] is Unset:
        raise TypeError(f"{cls.__typename__} 'name' is required when there is no named handler")
    metadata["name"] = _sanitize_identifier(cls, "name", metadata["name"])

    if isinstance(metadata["aliases"], str) or not isinstance(metadata["aliases"], Iterable):
        raise TypeError(f"{cls.__typename__} 'aliases' must be an iterable of strings")
    aliases = []
    for alias in metadata["aliases"]:
        _sanitize_identifier(cls, "aliases", alias)
        if alias == metadata["name"] or alias in aliases:
            raise ValueError(f"{cls.__typename__} 'aliases' cannot contain duplicates")
        aliases.append(alias)
    metadata["aliases"] = aliases


def _process_copy(cls, metadata):
    """
    Normalize help/longhelp. help defaults to the first line of the handler's docstring.
    """
    if metadata["help"] is Unset and metadata["handler"] is not None:
        if doc := inspect.getdoc(metadata["handler"]):
            metadata["help"] = doc.splitlines()[0]

    for name in ("help", "longhelp"):
        if not isinstance(value := metadata[name], str | Unset):
            raise TypeError(f"{cls.__typename__} {name!r} must be a string")
        metadata[name] = coalesce(value) or None


def _process_callables(cls, metadata):
    for name in ("handler", "completer"):
        if metadata[name] is not Unset and not callable(metadata[name]):
            raise TypeError(f"{cls.__typename__} {name!r} must be callable")
        metadata[name] = coalesce(metadata[name])


def _process_flags(cls, metadata):
    for name in ("shell", "fancy", "colorful"):
        if not isinstance(metadata[name], bool | Unset):
            raise TypeError(f"{cls.__typename__} {name!r} must be a boolean")


class Command(metaclass=CommandType):
    """
    One node of the dispatch tree.

    Responsibilities
    - Registration: add_child/delete_child/add_argument (and the command()/argument() helpers).
    - Resolution: resolve(tokens) walks children by exact name or alias.
    - Parsing: parse_args(tokens) runs the argument parser over this node's declarations.
    - Display: sorted_children(), has_subcommands(), help_text().
    - Completion: complete(tokens, prefix).
    - Dispatch: __invoke__(prompt), usually reached through invoke().

    Lifecycle
    - A tree is built once by the host, then treated as read-only configuration:
      nothing here synchronizes mutation against concurrent resolution or parsing.
    """

    __introspectable__ = (
        "name",
        "aliases",
        "help",
        "longhelp",
        "handler",
        "completer",
        "arguments",
        "parent",
        "children",
    )

    __displayable__ = (
        "name",
        "aliases",
        "help",
        "arguments",
        "parent",
        "children",
    )

    @property
    def shell(self):
        """print faults instead of raising them (inherited, default False)."""
        return bool(coalesce(self._shell, getattr(self._parent, "shell", False)))

    @property
    def fancy(self):
        """render faults inside a panel (inherited, default False)."""
        return bool(coalesce(self._fancy, getattr(self._parent, "fancy", False)))

    @property
    def colorful(self):
        """render faults with colors (inherited, default False)."""
        return bool(coalesce(self._colorful, getattr(self._parent, "colorful", False)))

    @property
    def root(self):
        """
        Return the topmost command in the current command hierarchy.
        """
        child, parent = self, self._parent
        while parent:
            child, parent = parent, parent._parent
        return child

    @property
    def path(self):
        """
        Return the full ancestry from root to this command as a tuple.
        """
        path = [command := self]
        while command._parent:
            path.append(command := command._parent)
        return tuple(reversed(path))

    def __new__(
            cls,
            handler=Unset,
            /,
            parent=Unset,
            name=Unset,
            aliases=(),
            help=Unset,
            longhelp=Unset,
            completer=Unset,
            *,
            shell=Unset,
            fancy=Unset,
            colorful=Unset,
    ):
        """
        Construct a Command, optionally attaching it to parent.

        Parameters
        - handler: Callable[[Context], Any] | Unset
          Invoked by the dispatcher; group-only nodes leave it Unset.
        - parent: Command | Unset
          When given, the new command is registered through parent.add_child().
        - name: str | Unset
          Defaults to handler.__name__.
        - aliases: Iterable[str]
          Alternate names, unique among siblings.
        - help, longhelp: str | Unset
          One-liner and long help; help defaults to the first docstring line of handler.
        - completer: Callable[[str, tuple[str, ...]], Iterable[str]] | Unset
          Custom completion (prefix, remaining tokens) replacing the default.
        - shell, fancy, colorful: bool | Unset
          Runtime flags; Unset inherits from the parent chain.

        Raises
        - TypeError/ValueError on invalid metadata or on attachment conflicts.
        """
        if not isinstance(parent, Command | Unset):
            raise TypeError(f"{cls.__typename__} 'parent' must be a command")

        metadata = {
            "handler": handler,
            "name": coalesce(name, getattr(handler, "__name__", Unset)),
            "aliases": aliases,
            "help": help,
            "longhelp": longhelp,
            "completer": completer,
            "shell": shell,
            "fancy": fancy,
            "colorful": colorful,
        }
        _process_callables(cls, metadata)
        _process_identity(cls, metadata)
        _process_copy(cls, metadata)
        _process_flags(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._parent = None
        self._children = {}
        self._arguments = []
        # key/short flag -> declaration index, lookup accelerator only
        self._keys = {}

        if parent:
            parent.add_child(self)
        return self

    def __call__(self, *args, **kwargs):
        """
        Call the handler directly (bypassing resolution and parsing).
        """
        if self._handler is None:
            raise TypeError(f"{type(self).__typename__} {self._name!r} has no handler")
        return self._handler(*args, **kwargs)

    # ── registration ───────────────────────────────────────────────────────────

    def add_child(self, child, /):
        """
        Register child under its name.

        Rules
        - last registration wins: a child already registered under the same name is
          replaced and detached.
        - the child's name and aliases must not collide with any other sibling's name
          or alias (ValueError).
        - a command belongs to a single parent (ValueError when attached elsewhere),
          and cannot be mounted under itself or one of its descendants.

        Returns
        - child, enabling fluent registration.
        """
        if not isinstance(child, Command):
            raise TypeError(f"{type(self).__typename__} child must be a command")
        if child in self.path:
            raise ValueError(f"{type(self).__typename__} {child.name!r} cannot be mounted under itself")
        if child._parent is not None and child._parent is not self:
            raise ValueError(f"{type(self).__typename__} {child.name!r} is already attached to {child._parent.name!r}")

        names = {child._name, *child._aliases}
        for sibling in self._children.values():
            if sibling is child or sibling._name == child._name:
                continue
            if taken := names & {sibling._name, *sibling._aliases}:
                raise ValueError(
                    f"{type(self).__typename__} name or alias {min(taken)!r} is already in use by {sibling._name!r}"
                )

        if (previous := self._children.get(child._name)) is not None and previous is not child:
            previous._parent = None
        self._children[child._name] = child
        child._parent = self
        return child

    def delete_child(self, name, /):
        """
        Remove the child registered under name (exact name, aliases are ignored).

        Deleting an unknown name is a no-op.
        """
        if (child := self._children.pop(name, None)) is not None:
            child._parent = None

    def add_argument(self, argument, /):
        """
        Append a declaration; declaration order is the positional matching order.

        Raises
        - TypeError: argument is not an Argument.
        - ValueError: its key or short flag is already declared on this command.

        Returns
        - argument, enabling fluent registration.
        """
        if not isinstance(argument, Argument):
            raise TypeError(f"{type(self).__typename__} argument must be an argument declaration")
        for name in (argument.key, argument.flag):
            if name is not None and name in self._keys:
                raise ValueError(f"{type(self).__typename__} {self._name!r} already declares {name!r}")

        self._keys[argument.key] = len(self._arguments)
        if argument.flag is not None:
            self._keys[argument.flag] = len(self._arguments)
        self._arguments.append(argument)
        return argument

    def argument(self, key, /, flag=Unset, kind=ArgumentKind.STRING, *, multiple=False, required=False):
        """
        Declare and register an argument in one step (see Argument for the rules).
        """
        return self.add_argument(Argument(key, flag, kind, multiple=multiple, required=required))

    def command(self, source=Unset, /, *args, **kwargs):
        """
        Create a child command (or a decorator that creates one) with parent=self injected.
        """
        return command(source, self, *args, **kwargs)

    # ── resolution ────────────────────────────────────────────────────────────

    def _find_child(self, token):
        """
        child matching token by exact name first, then by alias; None otherwise.
        """
        if (child := self._children.get(token)) is not None:
            return child
        for child in self._children.values():
            if token in child._aliases:
                return child
        return None

    def resolve(self, tokens, /):
        """
        Walk tokens down the tree, one level per matching token.

        Returns
        - (command, remaining)
          • command: the deepest matched Command, or None when the first token already
            fails to match a child of self.
          • remaining: the tokens from the first unmatched one on (empty when every
            token matched).
        """
        tokens = tuple(tokens)
        command, node = None, self
        for index, token in enumerate(tokens):
            if (child := node._find_child(token)) is None:
                return command, tokens[index:]
            command = node = child
        return command, ()

    def parse_args(self, tokens, /):
        """
        Parse tokens against this command's declarations (see argoshell.parser).
        """
        return parse_args(self, tokens)

    # ── display ───────────────────────────────────────────────────────────────

    def sorted_children(self):
        """
        Children ordered by name, for display.
        """
        return tuple(sorted(self._children.values(), key=operator.attrgetter("name")))

    def has_subcommands(self):
        """
        True unless the only child (if any) is the reserved "help" command.
        """
        if len(self._children) > 1:
            return True
        return bool(self._children) and "help" not in self._children

    def help_text(self):
        """
        Render the plain-text help block.

        Layout
        - a blank line, then longhelp, help, or "<name> has no help";
        - when has_subcommands(): a blank line, "Commands:", one row per child
          sorted by name (two-space indent, names padded to the longest one plus six
          spaces, then the child's help), and a trailing blank line.
        """
        lines = []

        def emit(*parts):
            lines.append("\n")
            if parts:
                lines.append(" ".join(parts) + "\n")

        if self._longhelp:
            emit(self._longhelp)
        elif self._help:
            emit(self._help)
        else:
            emit(self._name, "has no help")

        if self.has_subcommands():
            emit("Commands:")
            children = self.sorted_children()
            width = max(len(child.name) for child in children)
            for child in children:
                lines.append("  %s      %s\n" % (child.name.ljust(width), child.help or ""))
            emit()

        return "".join(lines)

    # ── completion ────────────────────────────────────────────────────────────

    def complete(self, tokens, /, prefix=""):
        """
        Completion candidates for the word being typed.

        Behavior
        - tokens (the words already typed) are resolved from self; when nothing
          matches, self is the target.
        - a custom completer on the target wins: completer(prefix, remaining).
        - a prefix starting with '-' completes the target's declared flags.
        - otherwise, child names starting with prefix, but only when every typed
          token was consumed by the walk.
        """
        command, remaining = self.resolve(tokens)
        command = command or self

        if command._completer is not None:
            return list(command._completer(prefix, remaining))

        if prefix.startswith("-"):
            names = {
                name
                for argument in command._arguments if not argument.positional
                for name in (argument.flag, argument.key) if name
            }
            return sorted(name for name in names if name.startswith(prefix))

        if remaining:
            return []
        return [child.name for child in command.sorted_children() if child.name.startswith(prefix)]

    # ── dispatch ──────────────────────────────────────────────────────────────

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this command's runtime flags merged in.
        """
        trigger(fault, **options, tool=self, shell=self.shell, fancy=self.fancy, colorful=self.colorful)

    def _dispatch(self, tokens):
        command, remaining = self.resolve(tokens)

        if command is None:
            if self._handler is None:
                names = [name for child in self._children.values() for name in (child._name, *child._aliases)]
                suggestions = difflib.get_close_matches(tokens[0], names, 5)
                try:
                    hint = "did you mean %r? you can also run 'help' to see available commands" % suggestions[0]
                except IndexError:
                    hint = "run 'help' to see available commands"
                return self.trigger(UnknownCommandError(
                    "unknown command %r at first position" % tokens[0],
                    title="unknown command",
                    code=FaultCode.UNKNOWN_COMMAND,
                    token=tokens[0],
                    index=1,
                    suggestions=suggestions,
                    hint=hint,
                    docs=getdoc(FaultCode.UNKNOWN_COMMAND),
                ))
            command = self

        try:
            parsed = command.parse_args(remaining)
        except CommandException as fault:
            return command.trigger(fault)

        if command._handler is None:
            route = " ".join(step.name for step in command.path)
            if command.has_subcommands():
                hint = "pick one of its subcommands: %s" % ", ".join(child.name for child in command.sorted_children())
            else:
                hint = "register a handler for %r" % route
            return command.trigger(MissingHandlerError(
                "command %r cannot be run by itself" % route,
                title="missing handler",
                code=FaultCode.MISSING_HANDLER,
                route=route,
                hint=hint,
                docs=getdoc(FaultCode.MISSING_HANDLER),
            ))

        return command._handler(Context(command, remaining, parsed))

    def __invoke__(self, prompt=Unset):
        """
        Dispatch one line of input.

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; split with shlex.split.
          • Iterable[str]: pre-tokenized sequence, used as-is.

        Returns
        - the handler's return value, or None when the line is empty or a fault was
          printed in shell mode.
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            try:
                tokens = shlex.split(prompt)
            except ValueError as error:
                return self.trigger(MalformedLineError(
                    "cannot split %r: %s" % (prompt, str(error).lower()),
                    title="malformed line",
                    code=FaultCode.MALFORMED_LINE,
                    line=prompt,
                    hint="close every quote and end the line with a character other than '\\'",
                    docs=getdoc(FaultCode.MALFORMED_LINE),
                ))
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("__invoke__() argument must be a string or an iterable of strings")
        else:
            raise TypeError("__invoke__() argument must be a string or an iterable of strings")

        if not tokens:
            return None
        return self._dispatch(tokens)


class Context:
    """
    What a handler receives.

    Attributes
    - command: the resolved Command.
    - args: the raw token remainder that was parsed.
    - parsed: tuple[ParsedArgument, ...] in emission order.
    - console: stdout rich console for handler output.
    """

    def __init__(self, command, args, parsed):
        self.command = command
        self.args = tuple(args)
        self.parsed = tuple(parsed)
        self.console = console

    def get(self, key, default=None, /):
        """first typed value given for key, or default."""
        for occurrence in self.parsed:
            if occurrence.key == key:
                return occurrence.typed
        return default

    def getall(self, key, /):
        """every typed value given for key, in input order."""
        return [occurrence.typed for occurrence in self.parsed if occurrence.key == key]

    def __contains__(self, key):
        return any(occurrence.key == key for occurrence in self.parsed)

    def __rich_repr__(self):
        yield "command", self.command.name
        yield "args", self.args
        yield "parsed", self.parsed


def command(source=Unset, /, *args, **kwargs):
    """
    Create a Command or return a decorator to build it later.

    Invocation modes
    - Direct: cmd = command(handler, parent, name="x", ...)
    - Decorator: @command(name="x", ...) above a handler.

    Handler-less group nodes are built with Command(name="x") directly.
    """
    @rename("command")
    def wrapper(source, /):
        if not callable(source):
            raise TypeError("@command() must be applied to a callable")
        return Command(source, *args, **kwargs)

    return wrapper(source) if source is not Unset else wrapper


def helper(parent, /):
    """
    Mount the reserved "help" child under parent.

    `help a b` prints the help text of the command resolved from parent by "a b",
    or parent's own help text when nothing resolves.
    """
    def help(context):
        target, _ = parent.resolve(context.getall("topic"))
        console.out((target or parent).help_text(), end="", highlight=False)

    child = Command(help, parent, help="display help")
    child.argument("topic", multiple=True)
    return child


def invoke(object, prompt=Unset, /):
    """
    Convenience runner for commands or plain handlers.

    Behavior
    - If 'object' implements __invoke__, call it with prompt.
    - If 'object' is a plain callable, wrap it as a Command and then invoke.
    - Otherwise, raise TypeError.
    """
    if hasattr(object, "__invoke__") and callable(object.__invoke__):
        return object.__invoke__(prompt)

    if callable(object):
        return invoke(command(object), prompt)

    target = "argument" if prompt is Unset else "first argument"
    raise TypeError(f"invoke() {target} must implement __invoke__ method") from None


__all__ = (
    "Command",
    "Context",
    "command",
    "helper",
    "invoke",
)

# Not part of the public API.
del CommandType
