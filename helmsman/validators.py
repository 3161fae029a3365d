"""
Helmsman validators: the validation contract and the stock validator set.

Contract
- A validator is any object with a callable `evaluate(input)` and a string
  `message`. `input` is a str or a list of str; `evaluate` returns a truthy /
  falsy outcome or an awaitable resolving to one.
- Failure and message text are independent: a falsy outcome always fails,
  while an empty message simply contributes no text.

Runner
- run_validators(input, validators) awaits every validator in declared
  order (never concurrently) and returns a Verdict(passed, messages).
  Exceptions raised by a validator, synchronously or from its awaitable, are
  failed validations carrying the exception text; they never escape.

Stock factories
- numbers: is_number, is_number_in_range
- strings: min_length, max_length, length_in_range
- lists: in_list
- patterns: matches_regex
- dates: is_date, is_date_before, is_date_after, is_date_in_range
- filesystem (asynchronous): file_exists, directory_exists, is_readable, is_writable

Every stock validator accepts a single string or a sequence of strings (each
item must pass), trims surrounding whitespace before checking, and takes a
keyword-only `message=` override.

Quick example
    >>> timeout = is_number_in_range(1, 300)
    >>> timeout.evaluate("120")
    True
    >>> timeout.message
    'please enter a number between 1 and 300.'
"""
import asyncio
import collections
import inspect
import math
import os
import re
from collections.abc import Iterable
from datetime import date, datetime, timezone

from .utils import *


class Validator:
    """
    Plain implementation of the validation contract.

    Parameters
    - evaluate: Callable[[str | list[str]], bool | Awaitable[bool]]
    - message: str shown when the outcome is falsy (may be empty).
    """
    __slots__ = ("_evaluate", "_message")

    def __init__(self, evaluate, /, message=""):
        if not callable(evaluate):
            raise TypeError("validator 'evaluate' must be callable")
        if not isinstance(message, str):
            raise TypeError("validator 'message' must be a string")
        self._evaluate = evaluate
        self._message = message

    @property
    def message(self):
        return self._message

    def evaluate(self, input, /):
        return self._evaluate(input)

    def __repr__(self):
        return "validator(evaluate=%s, message=%r)" % (
            getattr(self._evaluate, "__qualname__", repr(self._evaluate)), self._message
        )


Verdict = collections.namedtuple("Verdict", ("passed", "messages"))
Verdict.__doc__ = """
Outcome of run_validators().

- passed: bool, False as soon as one validator failed.
- messages: list[str] of the non-empty messages of every failing validator.
"""


def isvalidator(object, /):
    """
    tell whether object honours the validation contract.
    """
    return callable(getattr(object, "evaluate", None)) and isinstance(getattr(object, "message", None), str)


async def run_validators(input, validators, /):
    """
    run validators sequentially against input and collect their failures.

    all validators run, even after a failure, so every message for one input
    is reported at once. awaitable outcomes are awaited before moving on.
    """
    passed = True
    messages = []

    for validator in validators:
        try:
            outcome = validator.evaluate(input)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as exception:
            passed = False
            if message := str(exception) or validator.message:
                messages.append(message)
            continue

        if not outcome:
            passed = False
            if validator.message:
                messages.append(validator.message)

    return Verdict(passed, messages)


_NUMBER = re.compile(
    r"(?P<radix>0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+)"
    r"|[+-]?(?:(?P<infinity>Infinity)|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)"
)


def _each(check, /):
    """
    lift a single-string check to the str | Sequence[str] input shape.
    """
    def evaluate(input):
        if isinstance(input, str):
            return check(input.strip())
        if isinstance(input, Iterable):
            return all(check(item.strip()) for item in input)
        return False
    return evaluate


def _each_async(check, /):
    """
    asynchronous counterpart of _each(); check runs in a worker thread and
    sequence items are probed one after the other.
    """
    async def evaluate(input):
        if isinstance(input, str):
            return await asyncio.to_thread(check, input.strip())
        for item in input:
            if not await asyncio.to_thread(check, item.strip()):
                return False
        return True
    return evaluate


def _tonumber(text, /):
    """
    parse text as a number literal; None when it is not one.

    accepted: signed decimals with optional fraction and exponent ("1.",
    ".5", "-2e3"), a signed "Infinity", and unsigned 0x / 0o / 0b integers.
    digit separators ("1_000") and the "inf" / "nan" spellings are rejected.
    """
    match = _NUMBER.fullmatch(text)
    if match is None:
        return None
    if match["radix"]:
        try:
            return float(int(text, 0))
        except OverflowError:
            return math.inf
    if match["infinity"]:
        return -math.inf if text.startswith("-") else math.inf
    return float(text)


def _todate(text, /):
    """
    parse an ISO-8601 date or datetime; None when text is not a date.
    naive and aware values are compared in their own frame, so aware values
    are normalized to naive UTC.
    """
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return None
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def _tomoment(object, /):
    if isinstance(object, datetime):
        return _todate(object.isoformat())
    if isinstance(object, date):
        return datetime(object.year, object.month, object.day)
    raise TypeError("date bound must be a date or a datetime")


def is_number(*, message=Unset):
    """
    pass when every item parses as a number (blank input fails).
    """
    return Validator(
        rename(_each(lambda text: _tonumber(text) is not None), "is_number"),
        coalesce(message, "please enter a valid number."),
    )


def is_number_in_range(min, max, /, *, message=Unset):
    """
    pass when every item is a number within [min, max].
    """
    def check(text):
        number = _tonumber(text)
        return number is not None and min <= number <= max

    return Validator(
        rename(_each(check), "is_number_in_range"),
        coalesce(message, "please enter a number between %s and %s." % (min, max)),
    )


def min_length(length, /, *, message=Unset):
    return Validator(
        rename(_each(lambda text: len(text) >= length), "min_length"),
        coalesce(message, "please enter at least %d characters." % length),
    )


def max_length(length, /, *, message=Unset):
    return Validator(
        rename(_each(lambda text: len(text) <= length), "max_length"),
        coalesce(message, "please enter no more than %d characters." % length),
    )


def length_in_range(min, max, /, *, message=Unset):
    return Validator(
        rename(_each(lambda text: min <= len(text) <= max), "length_in_range"),
        coalesce(message, "please enter between %d and %d characters." % (min, max)),
    )


def in_list(items, /, *, message=Unset):
    """
    pass when every item belongs to the allowed collection.
    """
    if isinstance(items, str) or not isinstance(items, Iterable):
        raise TypeError("in_list() argument must be an iterable of strings")
    allowed = frozenset(items)
    return Validator(
        rename(_each(lambda text: text in allowed), "in_list"),
        coalesce(message, "input is not allowed."),
    )


def matches_regex(pattern, /, *, message=Unset):
    """
    pass when the pattern is found in every item (search semantics).
    """
    if isinstance(pattern, str):
        pattern = re.compile(pattern)
    elif not isinstance(pattern, re.Pattern):
        raise TypeError("matches_regex() argument must be a string or a compiled pattern")
    return Validator(
        rename(_each(lambda text: pattern.search(text) is not None), "matches_regex"),
        coalesce(message, "input format is invalid."),
    )


def is_date(*, message=Unset):
    return Validator(
        rename(_each(lambda text: _todate(text) is not None), "is_date"),
        coalesce(message, "please enter a valid date."),
    )


def is_date_before(bound, /, *, message=Unset):
    limit = _tomoment(bound)

    def check(text):
        moment = _todate(text)
        return moment is not None and moment < limit

    return Validator(
        rename(_each(check), "is_date_before"),
        coalesce(message, "please enter a date before %s." % bound.isoformat()),
    )


def is_date_after(bound, /, *, message=Unset):
    limit = _tomoment(bound)

    def check(text):
        moment = _todate(text)
        return moment is not None and moment > limit

    return Validator(
        rename(_each(check), "is_date_after"),
        coalesce(message, "please enter a date after %s." % bound.isoformat()),
    )


def is_date_in_range(start, end, /, *, message=Unset):
    lower = _tomoment(start)
    upper = _tomoment(end)

    def check(text):
        moment = _todate(text)
        return moment is not None and lower <= moment <= upper

    return Validator(
        rename(_each(check), "is_date_in_range"),
        coalesce(message, "please enter a date between %s and %s." % (start.isoformat(), end.isoformat())),
    )


def file_exists(*, message=Unset):
    return Validator(
        rename(_each_async(os.path.isfile), "file_exists"),
        coalesce(message, "the specified file does not exist or is not a file."),
    )


def directory_exists(*, message=Unset):
    return Validator(
        rename(_each_async(os.path.isdir), "directory_exists"),
        coalesce(message, "the specified directory does not exist or is not a directory."),
    )


def is_readable(*, message=Unset):
    return Validator(
        rename(_each_async(lambda path: bool(path) and os.access(path, os.R_OK)), "is_readable"),
        coalesce(message, "the specified path is not readable."),
    )


def is_writable(*, message=Unset):
    return Validator(
        rename(_each_async(lambda path: bool(path) and os.access(path, os.W_OK)), "is_writable"),
        coalesce(message, "the specified path is not writable."),
    )


__all__ = (
    # Contract
    "Validator",
    "Verdict",
    "isvalidator",
    "run_validators",

    # Stock factories
    "is_number",
    "is_number_in_range",
    "min_length",
    "max_length",
    "length_in_range",
    "in_list",
    "matches_regex",
    "is_date",
    "is_date_before",
    "is_date_after",
    "is_date_in_range",
    "file_exists",
    "directory_exists",
    "is_readable",
    "is_writable",
)
