"""
Helmsman dispatch engine: declarations, registry, and the dispatch cycle.

What this module provides
- Option: a registrable flag/option (short and/or long name, validators,
  string default, action).
- Command: a registrable positional verb (name, action receiving the
  remaining positional tokens).
- Dispatcher: the registry plus the dispatch cycle that matches a
  TokenizeResult against it, validates, fills defaults and runs actions.

Dispatch cycle (one call to Dispatcher.dispatch)
1. malformed tokens are appended to parsing_errors.
2. the first command selects a registered Command, which receives the rest
   of the commands verbatim; an unknown (or missing) selector appends the
   whole command line, space-joined, to unexpected_errors.
3. options run in mapping order. unknown names go to unexpected_errors; an
   Option reached under its second name is skipped; validators run
   sequentially (a flag is validated as ""), and the first failing option
   records its newline-joined messages in validation_errors and stops the
   option loop.
4. every registered Option not handled yet, with a default and with neither
   of its names present, receives its default (never validated).
5. the return value tells whether validation_errors is non-empty.

Collections accumulate across dispatch calls until reset() is called.

Registry quirk
- registering under a name that is already taken replaces that name only;
  when the previous Option was also reachable under its other name, that
  other name keeps pointing at the previous Option.

Quick example
    >>> dispatcher = Dispatcher()
    >>> @dispatcher.option(short="t", long="timeout", default="60")
    ... def timeout(value): ...
    >>> @dispatcher.command
    ... def run(arguments): ...
    >>> dispatcher.parse(tokenize(["run", "build", "-t", "120"]))
    False
"""
import asyncio
import functools
import operator
from collections.abc import Iterable, Mapping

from .faults import *
from .tokens import Kind, Value, TokenizeResult, isname
from .utils import *
from .validators import isvalidator, run_validators


class Declaration:
    """
    Shared plumbing of Option and Command: callable forwarding to the action,
    read-only introspectable fields, and a stable representation.
    """
    __typename__ = "declaration"
    __introspectable__ = ()

    def __init_subclass__(cls, **options):
        super().__init_subclass__(**options)
        for name in cls.__introspectable__:
            setattr(cls, name, mirror(name))

    def __repr__(self):
        return f"{type(self).__typename__}({
            ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
        })"

    def __rich_repr__(self):
        for name in type(self).__introspectable__:
            if name != "action":
                yield name, getattr(self, name)


def _sanitize_descr(cls, descr, /):
    if not isinstance(descr, str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    return coalesce(descr)


def _sanitize_name(cls, field, name, /):
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")
    elif not name:
        raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
    elif not isname(name):
        raise ValueError(f"{cls.__typename__} {field!r} must start with a letter or digit "
                         f"followed by letters, digits, '-' or '_' (no leading dashes)")
    return name


class Option(Declaration):
    """
    Registrable option declaration.

    Parameters
    - action: Callable[[str | list[str] | bool], Any]
      receives the parsed value (True for a bare flag) or the default.
    - short: str, the name used after a single dash (e.g. "t" for -t).
    - long: str, the name used after two dashes (e.g. "timeout" for --timeout).
      at least one of short/long is required.
    - descr: str, short description for downstream help renderers.
    - validators: Iterable of objects honouring the validation contract.
    - default: str, handed to the action when neither name was given.

    Notes
    - Options compare by identity: the same declaration reached under its two
      names is one logical entity.
    - Calling the declaration forwards the value to its action.
    """
    __typename__ = "option"
    __introspectable__ = (
        "short",
        "long",
        "descr",
        "validators",
        "default",
        "action",
    )

    def __init__(self, action, /, *, short=Unset, long=Unset, descr=Unset, validators=(), default=Unset):
        cls = type(self)
        if not callable(action):
            raise TypeError(f"{cls.__typename__} 'action' must be callable")
        if short is Unset and long is Unset:
            raise TypeError(f"{cls.__typename__} must specify at least a 'short' or a 'long' name")
        if short is not Unset:
            _sanitize_name(cls, "short", short)
        if long is not Unset:
            _sanitize_name(cls, "long", long)
        if isinstance(validators, str) or not isinstance(validators, Iterable):
            raise TypeError(f"{cls.__typename__} 'validators' must be an iterable of validators")
        validators = tuple(validators)
        for validator in validators:
            if not isvalidator(validator):
                raise TypeError(f"{cls.__typename__} 'validators' items must provide "
                                f"a callable 'evaluate' and a string 'message'")
        if not isinstance(default, str | Unset):
            raise TypeError(f"{cls.__typename__} 'default' must be a string")

        self._action = action
        self._short = coalesce(short)
        self._long = coalesce(long)
        self._descr = _sanitize_descr(cls, descr)
        self._validators = validators
        self._default = coalesce(default)

    @property
    def names(self):
        """
        the registered names, short first, absent ones left out.
        """
        return tuple(name for name in (self._short, self._long) if name is not None)

    def __call__(self, value, /):
        return self._action(value)


class Command(Declaration):
    """
    Registrable command declaration.

    Parameters
    - action: Callable[[list[str]], Any]
      receives every positional token after the command name.
    - name: str, the selector matched against the first positional token;
      defaults to the action's __name__.
    - descr: str, short description for downstream help renderers.
    """
    __typename__ = "command"
    __introspectable__ = (
        "name",
        "descr",
        "action",
    )

    def __init__(self, action, /, *, name=Unset, descr=Unset):
        cls = type(self)
        if not callable(action):
            raise TypeError(f"{cls.__typename__} 'action' must be callable")
        name = coalesce(name, getattr(action, "__name__", Unset))
        if name is Unset:
            raise TypeError(f"{cls.__typename__} must specify a 'name'")
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif not name:
            raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
        elif name.startswith("-"):
            raise ValueError(f"{cls.__typename__} 'name' cannot start with a dash")
        elif any(char.isspace() for char in name):
            raise ValueError(f"{cls.__typename__} 'name' cannot contain whitespace")

        self._action = action
        self._name = name
        self._descr = _sanitize_descr(cls, descr)

    def __call__(self, arguments, /):
        return self._action(arguments)


def _sanitize_result(result, /):
    """
    accept a TokenizeResult, any object exposing commands/options/errors, or a
    mapping with those keys; option values are coerced into Value.
    """
    if isinstance(result, TokenizeResult):
        commands, options, errors = result
    elif isinstance(result, Mapping):
        try:
            commands, options, errors = result["commands"], result["options"], result["errors"]
        except KeyError as error:
            raise TypeError(f"dispatch() argument is missing {error.args[0]!r}") from None
    elif all(hasattr(result, name) for name in ("commands", "options", "errors")):
        commands, options, errors = result.commands, result.options, result.errors
    else:
        raise TypeError("dispatch() argument must be a tokenize result")

    if not isinstance(options, Mapping):
        raise TypeError("dispatch() argument 'options' must be a mapping")
    return tuple(commands), {key: Value.of(value) for key, value in options.items()}, tuple(errors)


def _spelled(key, /):
    return ("-" if len(key) == 1 else "--") + key


class Dispatcher:
    """
    Owns the command/option registry and runs dispatch cycles against it.

    Attributes (read-only copies)
    - options: tuple of registered Option declarations, deduplicated, in
      registry order.
    - commands: tuple of registered Command declarations, in registry order.
    - parsing_errors: list of malformed tokens.
    - unexpected_errors: list of unknown option names and unknown command lines.
    - validation_errors: dict of option name to newline-joined messages.
    """
    parsing_errors = mirror("parsing_errors")
    unexpected_errors = mirror("unexpected_errors")
    validation_errors = mirror("validation_errors")

    def __init__(self):
        self._options = {}
        self._commands = {}
        self._parsing_errors = []
        self._unexpected_errors = []
        self._validation_errors = {}
        self._faults = []

    @property
    def options(self):
        seen = set()
        options = []
        for option in self._options.values():
            if option not in seen:
                seen.add(option)
                options.append(option)
        return tuple(options)

    @property
    def commands(self):
        return tuple(self._commands.values())

    def register_option(self, option, /):
        """
        store option under its short and/or long name; returns self.
        """
        if not isinstance(option, Option):
            raise TypeError("register_option() argument must be an option")
        for name in option.names:
            self._options[name] = option
        return self

    def register_command(self, command, /):
        """
        store command under its name; returns self.
        """
        if not isinstance(command, Command):
            raise TypeError("register_command() argument must be a command")
        self._commands[command.name] = command
        return self

    def option(self, *, short=Unset, long=Unset, descr=Unset, validators=(), default=Unset):
        """
        decorator form of register_option(): the decorated callable becomes the
        action, and the registered Option is returned in its place.
        """
        @rename("option")
        def wrapper(action, /):
            option = Option(action, short=short, long=long, descr=descr, validators=validators, default=default)
            self.register_option(option)
            return option

        return wrapper

    def command(self, source=Unset, /, *, name=Unset, descr=Unset):
        """
        decorator form of register_command(), usable bare (@dispatcher.command)
        or with metadata (@dispatcher.command(name="run")).
        """
        @rename("command")
        def wrapper(action, /):
            if not callable(action):
                raise TypeError("@command() must be applied to a callable")
            command = Command(action, name=name, descr=descr)
            self.register_command(command)
            return command

        return wrapper(source) if source is not Unset else wrapper

    def faults(self):
        """
        fault objects for everything collected so far, in occurrence order.
        """
        return tuple(self._faults)

    def reset(self):
        """
        forget every collected error; the registry is kept.
        """
        self._parsing_errors.clear()
        self._unexpected_errors.clear()
        self._validation_errors.clear()
        self._faults.clear()

    async def dispatch(self, result, /):
        """
        run one dispatch cycle for a tokenize result.

        returns True when validation_errors is non-empty (including failures
        collected by earlier cycles, since collections accumulate).
        """
        commands, options, errors = _sanitize_result(result)

        self._parsing_errors.extend(errors)
        for token in errors:
            self._faults.append(MalformedTokenError("bad form of token %r" % token, token=token))

        try:
            command = self._commands[commands[0]]
        except (IndexError, KeyError):
            line = " ".join(commands)
            self._unexpected_errors.append(line)
            self._faults.append(UnknownCommandError(
                "unknown command %r" % line if line else "no command was given",
                name=line,
            ))
        else:
            command(list(commands[1:]))

        processed = set()
        for key, value in options.items():
            try:
                option = self._options[key]
            except KeyError:
                self._unexpected_errors.append(key)
                self._faults.append(UnknownOptionError("unknown option %r" % _spelled(key), name=key))
                continue

            if option in processed:
                continue
            processed.add(option)

            if option.validators:
                verdict = await run_validators("" if value.kind is Kind.FLAG else value.unwrap(), option.validators)
                if not verdict.passed:
                    self._validation_errors[key] = "\n".join(verdict.messages)
                    self._faults.append(ValidationFailedError(
                        "invalid value for option %r%s" % (
                            _spelled(key), (": " + "; ".join(verdict.messages)) if verdict.messages else ""
                        ),
                        name=key,
                        messages=tuple(verdict.messages),
                    ))
                    break

            option(value.unwrap())

        for option in self._options.values():
            if option.default is None or option in processed:
                continue
            if any(name in options for name in option.names):
                continue
            processed.add(option)
            option(option.default)

        return bool(self._validation_errors)

    def parse(self, result, /):
        """
        synchronous dispatch() for callers that are not inside an event loop.
        """
        return asyncio.run(self.dispatch(result))


__all__ = (
    "Option",
    "Command",
    "Dispatcher",
)
