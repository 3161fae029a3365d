"""
Helmsman faults (collected dispatch errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for the three error classes
  the dispatcher accumulates (parsing, unexpected, validation).
- DispatchFault: base type that carries a message + options and knows how to
  render itself in a friendly, lowercased, actionable way through rich.
- DispatchExit: the grouped exit raised (or printed) once a run collected faults.
- trigger(): central entry point to surface a fault (respecting shell/deferred/fancy/colorful).
- getdoc(): per-code help text supplied by the host script.

Integration
- The dispatcher never raises these: it records one fault per collected
  error (Dispatcher.faults()). The Program front-end, or user code, decides
  whether to surface them.
- In non-shell mode, faults are raised; in shell mode, they are rendered via rich
  on stderr.

Host hooks (looked up on __main__)
- __prog__: program name shown in headers (defaults to the script name).
- __styles__: mapping overriding any style key used by the renderers.
- __codes__: mapping of FaultCode to a custom label.
- __docs__: mapping of FaultCode to a short documentation string.
"""
import copy
import os.path
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text


console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used by the dispatch engine (stable identifiers).

    code ranges
    - routing (1110x)
      • UNKNOWN_COMMAND
    - tokens and options (1111x)
      • MALFORMED_TOKEN, UNKNOWN_OPTION
    - validation (1113x)
      • FAILED_VALIDATION
    """
    # --- routing errors ---
    UNKNOWN_COMMAND             = 11101

    # --- token/option errors ---
    MALFORMED_TOKEN             = 11111
    UNKNOWN_OPTION              = 11112

    # --- validation errors ---
    FAILED_VALIDATION           = 11131

    def normalize(self):
        """
        label shown for this code: __main__.__codes__[self] when the host
        script defines one, the decimal value otherwise.
        """
        labels = getattr(__import__("__main__"), "__codes__", {})
        return str(labels.get(self, self.value))


def _progname():
    main = __import__("__main__")
    return getattr(main, "__prog__", os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "helmsman")


def _renderer(options, defaults):
    """
    build the (styler, text) pair shared by the rich renderers.
    """
    styles = defaultdict(str, defaults | getattr(__import__("__main__"), "__styles__", {}))
    colorful = options.get("colorful", True)

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if not colorful:
            return Text(str(fragment))
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style)

    return styler, text


def _surface(fault, /):
    """
    raise fault, or print it on stderr when its "shell" option is set and
    then exit with status 1 unless "deferred" is set too.
    """
    if not fault.options.get("shell", False):
        raise fault from None
    console.print(fault)
    if not fault.options.get("deferred", False):
        sys.exit(1)


class DispatchFault(Exception):
    """
    one collected dispatch error, renderable and triggerable.

    options (all optional, merged through copy.replace)
    - title, code, hint: header/footer copy.
    - shell, fancy, colorful, deferred: runtime flags (see trigger()).
    - ratio: width ratio used when rendered inside a DispatchExit panel.
    - any context the renderer may want (token, name, value, ...).
    """
    __code__ = None
    __title__ = "dispatch error"
    __hint__ = "run again with valid arguments"

    def __init__(self, message="", /, **options):
        if not isinstance(message, str):
            raise TypeError("fault message must be a string")
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(dict(options))

    def __rich__(self):
        styler, text = _renderer(self.options, {
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",

            # body
            "error-message": "#C8C8D0",
            "hint-arrow": "dim #9CE19C",
            "hint": "italic #9CE19C",
        })

        header = Text.assemble(
            "[ ",
            text(_progname(), styler("prog-name")),
            " — ",
            text(code.normalize() if (code := self.options.get("code", self.__code__)) else "-", styler("code")),
            " | ",
            text(self.options.get("title", self.__title__).title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))
        hint = Text.assemble(
            text(" → ", styler("hint-arrow")),
            text(self.options.get("hint", self.__hint__), styler("hint"))
        )

        if self.options.get("fancy", False):
            try:
                width = int((console.width - 4) * self.options["ratio"])
            except KeyError:
                width = None
            return Panel(Group(message, hint), title=header, title_align="left", width=width)

        return Group(header, message, hint)

    def __trigger__(self):
        _surface(self)

    def __replace__(self, **overrides):
        return type(self)(self.message, **(dict(self.options) | overrides))


class MalformedTokenError(DispatchFault):
    __code__ = FaultCode.MALFORMED_TOKEN
    __title__ = "malformed token"
    __hint__ = "use -x, -xyz, --name, --name=value or --name value1 value2"


class UnknownCommandError(DispatchFault):
    __code__ = FaultCode.UNKNOWN_COMMAND
    __title__ = "unknown command"
    __hint__ = "check the command name against the registered commands"


class UnknownOptionError(DispatchFault):
    __code__ = FaultCode.UNKNOWN_OPTION
    __title__ = "unknown option"
    __hint__ = "check the option name against the registered options"


class ValidationFailedError(DispatchFault):
    __code__ = FaultCode.FAILED_VALIDATION
    __title__ = "invalid option value"
    __hint__ = "fix the value and run again"


class DispatchExit(ExceptionGroup):
    """
    grouped exit for every fault collected during one run.
    """

    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad exit", tuple(exceptions))

    def __init__(self, exceptions, **options):
        super().__init__("bad exit", tuple(exceptions))
        self.options = MappingProxyType(dict(options))

    def derive(self, exceptions):
        return type(self)(exceptions, **self.options)

    def __rich__(self):
        styler, text = _renderer(self.options, {
            "prog-name": "bold #E6E6F0",
            "title": "bold #FF4DA6",
        })

        header = Text.assemble("[ ", text(_progname(), styler("prog-name")), " — ", text(self.message.title(), styler("title")), " ]")

        renders = [copy.replace(exception, ratio=2/3, **self.options) for exception in self.exceptions]

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self):
        _surface(self)

    def __replace__(self, **overrides):
        return type(self)(self.exceptions, **(dict(self.options) | overrides))


def trigger(fault, /, **options):
    """
    apply options to a copy of fault (through copy.replace) and fire it.

    fault is any object with __replace__ and __trigger__ methods, i.e. a
    DispatchFault or a DispatchExit. usual options are shell, fancy,
    colorful and deferred, plus title, code and hint to reword a fault.
    """
    for method in ("__replace__", "__trigger__"):
        if not callable(getattr(fault, method, None)):
            raise TypeError("trigger() argument must define %s()" % method)
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    help text the host script registered for code in __main__.__docs__, or
    None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a FaultCode")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "FaultCode",
    "DispatchFault",
    "MalformedTokenError",
    "UnknownCommandError",
    "UnknownOptionError",
    "ValidationFailedError",
    "DispatchExit",
    "trigger",
    "getdoc",
)
