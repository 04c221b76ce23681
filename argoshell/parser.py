"""
Argoshell argument parser: turn a command's token remainder into parsed occurrences.

phases
- expansion
  • combined short flags are split first ("-yz" → "-y", "-z"), see tokens.expand();
    the pieces keep the position of the token they came from.
- consumption (single left-to-right pass)
  • a token naming a declared flag either emits a BOOLEAN occurrence immediately or
    stages the flag as pending (it awaits the next token as its value). a later
    valued flag replaces the pending one; a boolean flag leaves it staged.
  • otherwise, a pending flag takes the token as its value.
  • otherwise, the token fills the first positional declaration (in declaration
    order) that is still empty or accepts multiple values.
- trailing check
  • input must not end while a flag is pending.
- validation
  • empty payloads on non-boolean occurrences, required declarations without
    occurrences, and single-valued declarations seen more than once are rejected.

state
- all bookkeeping (occurrence counters, pending flag, emitted occurrences) lives in a
  _State record local to one parse_args() call, so a command can be parsed
  concurrently from several threads once it is no longer being mutated.

faults
- every failure is raised as a CommandException subclass carrying the offending token,
  its 1-based position in the input (as given), the declaration involved, the command
  route, and the occurrences emitted before the failure (option "parsed").
"""
import difflib

from .arguments import ArgumentKind, ParsedArgument
from .faults import *
from .tokens import TokenKind, classify, expand, is_integer
from .utils import ordinal


class _State:
    """
    per-call parser state.

    - mask: occurrence counter per declaration index.
    - pending: (declaration index, flag token, position) of the flag awaiting a value, or None.
    - parsed: occurrences in emission order.
    """
    __slots__ = ("mask", "pending", "parsed")

    def __init__(self, size):
        self.mask = [0] * size
        self.pending = None
        self.parsed = []

    def emit(self, occurrence):
        self.parsed.append(occurrence)
        self.mask[occurrence.index] += 1


def _positioned(tokens):
    """
    (position, token) pairs over the expanded stream; position is 1-based and counts
    the tokens as given, so every flag of a "-yz" cluster reports the cluster's position.
    """
    for position, token in enumerate(tokens, 1):
        for piece in expand((token,)):
            yield position, piece


def _route(command):
    return " ".join(step.name for step in command.path)


def _find_flag(arguments, token):
    """
    index of the declaration named by token as a flag, or None.
    """
    if classify(token) is TokenKind.BARE:
        return None
    for index, argument in enumerate(arguments):
        if argument.matches(token):
            return index
    return None


def _find_positional(arguments, mask):
    """
    index of the first positional declaration that is still empty or accepts
    multiple values, in declaration order, or None.
    """
    for index, argument in enumerate(arguments):
        if argument.positional and (mask[index] == 0 or argument.multiple):
            return index
    return None


def _fault(command, state, exception, message, /, **options):
    return exception(message, route=_route(command), parsed=tuple(state.parsed), docs=getdoc(options["code"]), **options)


def _check_integer(command, state, argument, token, position):
    if argument.kind is not ArgumentKind.INTEGER or is_integer(token):
        return
    raise _fault(
        command, state, InvalidIntegerValueError,
        "%r at %s position is not a valid integer for %r" % (token, ordinal(position), argument.key),
        title="invalid integer value",
        code=FaultCode.INVALID_INTEGER_VALUE,
        token=token,
        index=position,
        argument=argument,
        hint="pass a base-10 integer (for example: %s 42)" % (argument.key if argument.positional else argument.flag or argument.key),
    )


def _unrecognized(command, state, token, position):
    hint = "remove it or check the arguments accepted by %r" % _route(command)
    if classify(token) is not TokenKind.BARE:
        names = [name for argument in command.arguments for name in (argument.flag, argument.key) if name and not argument.positional]
        if suggestions := difflib.get_close_matches(token, names, 1):
            hint = "did you mean %r? %s" % (suggestions[0], hint)
    return _fault(
        command, state, UnrecognizedArgumentError,
        "unrecognized argument %r at %s position" % (token, ordinal(position)),
        title="unrecognized argument",
        code=FaultCode.UNRECOGNIZED_ARGUMENT,
        token=token,
        index=position,
        hint=hint,
    )


def _missing_value(command, state):
    index, flag, position = state.pending
    argument = command.arguments[index]
    return _fault(
        command, state, MissingValueError,
        "flag %r at %s position is missing its value" % (flag, ordinal(position)),
        title="missing value",
        code=FaultCode.MISSING_VALUE,
        token=flag,
        index=position,
        argument=argument,
        hint="add a value right after it (for example: %s <value>)" % flag,
    )


def _validate(command, state):
    """
    post-parse checks over the final occurrence counters.
    """
    arguments = command.arguments

    for occurrence in state.parsed:
        if occurrence.kind is not ArgumentKind.BOOLEAN and not occurrence.value:
            raise _fault(
                command, state, MissingValueError,
                "argument %r requires a non-empty value" % occurrence.key,
                title="missing value",
                code=FaultCode.MISSING_VALUE,
                argument=arguments[occurrence.index],
                hint="pass a non-empty value for %r" % occurrence.key,
            )

    for index, argument in enumerate(arguments):
        if argument.required and not state.mask[index]:
            if argument.positional:
                hint = "add a value for %r in its position" % argument.key
            elif argument.kind is ArgumentKind.BOOLEAN:
                hint = "add %s" % argument.key
            else:
                hint = "add %s <value>" % argument.key
            raise _fault(
                command, state, MissingRequiredArgumentError,
                "%r is a required argument" % argument.key,
                title="missing required argument",
                code=FaultCode.MISSING_REQUIRED_ARGUMENT,
                argument=argument,
                hint=hint,
            )
        if not argument.multiple and state.mask[index] > 1:
            raise _fault(
                command, state, DuplicateArgumentError,
                "%r was given %d times but accepts a single value" % (argument.key, state.mask[index]),
                title="duplicate argument",
                code=FaultCode.DUPLICATE_ARGUMENT,
                argument=argument,
                hint="keep a single %r" % argument.key,
            )


def parse_args(command, tokens, /):
    """
    parse tokens against the argument declarations of command.

    parameters
    - command: Command whose .arguments (ordered declarations) drive the parse.
    - tokens: Iterable[str], already tokenized (no quoting or escaping is interpreted).

    returns
    - tuple[ParsedArgument, ...] in emission order (flags and positionals interleaved
      as encountered, not grouped by declaration).

    raises
    - UnrecognizedArgumentError: a token is neither a declared flag, a pending value,
      nor fits any positional slot.
    - InvalidIntegerValueError: an INTEGER value (flag or positional) is not base-10.
    - MissingValueError: input ends while a valued flag awaits its value, or a
      non-boolean occurrence ended up with an empty value.
    - MissingRequiredArgumentError / DuplicateArgumentError: post-parse validation.
    """
    arguments = command.arguments
    state = _State(len(arguments))

    for position, token in _positioned(tokens):
        if (index := _find_flag(arguments, token)) is not None:
            argument = arguments[index]
            if argument.kind is ArgumentKind.BOOLEAN:
                state.emit(ParsedArgument(index, argument.key, argument.kind, ""))
            else:
                state.pending = (index, token, position)
            continue

        if state.pending is not None:
            index, _, _ = state.pending
            argument = arguments[index]
            _check_integer(command, state, argument, token, position)
            state.emit(ParsedArgument(index, argument.key, argument.kind, token))
            state.pending = None
            continue

        if (index := _find_positional(arguments, state.mask)) is None:
            raise _unrecognized(command, state, token, position)
        argument = arguments[index]
        _check_integer(command, state, argument, token, position)
        state.emit(ParsedArgument(index, argument.key, argument.kind, token))

    if state.pending is not None:
        raise _missing_value(command, state)

    _validate(command, state)
    return tuple(state.parsed)


__all__ = (
    "parse_args",
)
