"""
Helmsman tokenizer: purely syntactic classification of process arguments.

What this module provides
- tokenize(args): split an argument list into positional commands, an option
  mapping and the tokens that could not be classified.
- Value / Kind: the tagged variant stored for every option key
  (flag, single string, or two-or-more strings).
- TokenizeResult: the read-only (commands, options, errors) triple.

Grammar
- Commands are every leading token that does not start with '-'. The first
  dash token ends the command phase for good; later bare tokens are only
  legal as values of the option right before them.
- Long options: '--name', '--name=value' (value may be empty and is never
  reinterpreted, even when it looks like an option), '--name v1 v2 ...'.
  The name must be at least two characters long.
- Short options: '-f', '-f value', '-f v1 v2', and combined '-abc' where every
  character but the last is a flag and the last one collects values.
- Names match r"[A-Za-z0-9][A-Za-z0-9_-]*". Anything else ('-', '--',
  '---x', '--bad*name=1', a stray bare token) is reported verbatim in errors.
- Repeated keys overwrite earlier values (last occurrence wins).

The tokenizer knows nothing about registered commands or options and never
raises on malformed input.

Quick example
    >>> result = tokenize(["deploy", "--force", "-abc", "--d", "--timeout=120"])
    >>> result.commands
    ('deploy',)
    >>> result.options["timeout"]
    single('120')
    >>> result.errors
    ('--d',)
"""
import collections
import re
from collections.abc import Iterable, Sequence
from enum import Enum
from types import MappingProxyType
from typing import final

_NAME = re.compile(r"[A-Za-z0-9][A-Za-z0-9_-]*")


class Kind(Enum):
    """
    discriminant of an option value.

    - FLAG: the option appeared without any value (payload is True).
    - SINGLE: exactly one value (payload is a str).
    - MULTIPLE: two or more values (payload is a tuple of str).
    """
    FLAG = "flag"
    SINGLE = "single"
    MULTIPLE = "multiple"


@final
class Value:
    """
    Tagged option value produced by the tokenizer.

    A Value is immutable and compares by (kind, payload). Handlers never see
    it: the dispatcher unwraps it into the plain Python shape
    (True, "text", or ["a", "b", ...]) before calling them.

    Construction
    - Value.flag()                 → flag
    - Value.single("text")         → single
    - Value.multiple("a", "b")     → multiple (two or more items)
    - Value.collect(["a", ...])    → picks the kind from the item count
    - Value.of(object)             → accepts a Value or a raw True/str/sequence
    """
    __slots__ = ("_kind", "_payload")

    def __new__(cls, kind, payload, /):
        if not isinstance(kind, Kind):
            raise TypeError("value kind must be a Kind member")
        match kind:
            case Kind.FLAG:
                if payload is not True:
                    raise ValueError("flag value payload must be True")
            case Kind.SINGLE:
                if not isinstance(payload, str):
                    raise TypeError("single value payload must be a string")
            case Kind.MULTIPLE:
                if isinstance(payload, str) or not isinstance(payload, Iterable):
                    raise TypeError("multiple value payload must be an iterable of strings")
                payload = tuple(payload)
                if not all(isinstance(item, str) for item in payload):
                    raise TypeError("multiple value payload must be an iterable of strings")
                if len(payload) < 2:
                    raise ValueError("multiple value payload must hold at least two strings")
        self = super().__new__(cls)
        object.__setattr__(self, "_kind", kind)
        object.__setattr__(self, "_payload", payload)
        return self

    @classmethod
    def flag(cls):
        return cls(Kind.FLAG, True)

    @classmethod
    def single(cls, text, /):
        return cls(Kind.SINGLE, text)

    @classmethod
    def multiple(cls, *texts):
        return cls(Kind.MULTIPLE, texts)

    @classmethod
    def collect(cls, texts, /):
        """
        Build the value for a greedy collection: zero items is a flag, one
        item is a single string, more is a multiple.
        """
        texts = tuple(texts)
        match len(texts):
            case 0:
                return cls.flag()
            case 1:
                return cls.single(texts[0])
            case _:
                return cls(Kind.MULTIPLE, texts)

    @classmethod
    def of(cls, object, /):
        """
        Coerce a raw option value (True, a string, or a sequence of strings)
        into a Value; Value instances are returned unchanged.
        """
        if isinstance(object, Value):
            return object
        if object is True:
            return cls.flag()
        if isinstance(object, str):
            return cls.single(object)
        if isinstance(object, Sequence):
            return cls.collect(object)
        raise TypeError("option value must be True, a string, or a sequence of strings")

    @property
    def kind(self):
        return self._kind

    @property
    def payload(self):
        return self._payload

    def unwrap(self):
        """
        Return the plain value handed to actions: True, the string, or a
        fresh list of strings.
        """
        if self._kind is Kind.MULTIPLE:
            return list(self._payload)
        return self._payload

    def __setattr__(self, name, value, /):
        raise AttributeError("option values are read-only")

    def __eq__(self, other, /):
        if not isinstance(other, Value):
            return NotImplemented
        return self._kind is other._kind and self._payload == other._payload

    def __hash__(self):
        return hash((self._kind, self._payload))

    def __repr__(self):
        match self._kind:
            case Kind.FLAG:
                return "flag()"
            case Kind.SINGLE:
                return "single(%r)" % self._payload
            case Kind.MULTIPLE:
                return "multiple(%s)" % ", ".join(map(repr, self._payload))

    def __rich_repr__(self):
        yield "kind", self._kind.value
        yield "payload", self._payload


TokenizeResult = collections.namedtuple("TokenizeResult", ("commands", "options", "errors"))
TokenizeResult.__doc__ = """
Outcome of one tokenize() call.

- commands: tuple[str, ...] of tokens before the first dash token.
- options: read-only mapping of option name to Value (first-insertion order).
- errors: tuple[str, ...] of malformed tokens, verbatim and in input order.
"""


def isname(text, /):
    """
    tell whether text is a legal option or command name:
    an ascii letter or digit followed by letters, digits, '-' or '_'.
    """
    return isinstance(text, str) and _NAME.fullmatch(text) is not None


def _collect(args, index, /):
    """
    greedily take the tokens after args[index] that do not start with '-'.

    returns the collected Value and the index of the last consumed token.
    """
    end = index + 1
    while end < len(args) and not args[end].startswith("-"):
        end += 1
    return Value.collect(args[index + 1:end]), end - 1


def tokenize(args, /):
    """
    classify an argument list into commands, options and malformed tokens.

    parameters
    - args: Iterable[str]
      the argument list with the interpreter/script entries already removed.
      a single str is rejected: this toolkit performs no shell-style splitting.

    returns
    - TokenizeResult(commands, options, errors)

    raises
    - TypeError for a plain string or a non-string item. malformed tokens are
      never an exception: they land in errors.
    """
    if isinstance(args, str) or not isinstance(args, Iterable):
        raise TypeError("tokenize() argument must be an iterable of strings")
    args = tuple(args)
    if not all(isinstance(arg, str) for arg in args):
        raise TypeError("tokenize() argument must be an iterable of strings")

    commands = []
    options = {}
    errors = []

    index = 0
    while index < len(args) and not args[index].startswith("-"):
        commands.append(args[index])
        index += 1

    while index < len(args):
        token = args[index]

        if token.startswith("--"):
            body = token[2:]
            key, equals, value = body.partition("=")
            if len(key) < 2 or not isname(key):
                errors.append(token)
            elif equals:
                options[key] = Value.single(value)
            else:
                options[key], index = _collect(args, index)

        elif token.startswith("-"):
            flags = token[1:]
            if not isname(flags):
                errors.append(token)
            else:
                # combined flags: all but the last are presence-only
                for flag in flags[:-1]:
                    options[flag] = Value.flag()
                options[flags[-1]], index = _collect(args, index)

        else:
            # a bare token is only legal right after an option
            errors.append(token)

        index += 1

    return TokenizeResult(tuple(commands), MappingProxyType(options), tuple(errors))


__all__ = (
    "Kind",
    "Value",
    "TokenizeResult",
    "isname",
    "tokenize",
)
