"""
Helmsman program front-end: argv boundary, dispatch, and fault surfacing.

Program glues the pieces together for a real process:
- reads the argument list (sys.argv by default) and strips the leading
  interpreter/script entries with an explicit, configurable count;
- tokenizes and dispatches against its Dispatcher;
- surfaces the faults collected by that run as one DispatchExit, printed on
  stderr in shell mode (exit status 1 unless deferred) or raised otherwise.

Strip count
- arguments read from sys.argv: 1 by default (Python only puts the script
  path in front of the user arguments).
- arguments passed explicitly: 0 by default (they are taken as already
  stripped). Pass strip=2 for node-style lists ([executable, script, ...]).

Quick start
    from helmsman import Program, invoke, is_number_in_range

    program = Program(shell=True)

    @program.command
    def deploy(arguments):
        print("deploying", arguments)

    @program.option(short="t", long="timeout", validators=[is_number_in_range(1, 300)], default="60")
    def timeout(value):
        print("timeout", value)

    if __name__ == "__main__":
        invoke(program)
"""
import asyncio
import sys
from collections.abc import Iterable

from .dispatch import Dispatcher
from .faults import DispatchExit, UnknownCommandError, trigger
from .tokens import tokenize
from .utils import *


class Program:
    """
    Runnable command-line front-end around a Dispatcher.

    Parameters
    - dispatcher: Dispatcher to register into and dispatch with (a fresh one
      when omitted).
    - strip: int >= 0, leading entries removed from the argument list (see
      module notes for the defaults).
    - shell: print faults and exit instead of raising DispatchExit.
    - fancy: render faults inside rich panels.
    - colorful: style the rendered faults.
    - deferred: in shell mode, print faults without exiting.
    """

    def __init__(self, dispatcher=Unset, /, *, strip=Unset, shell=False, fancy=False, colorful=True, deferred=False):
        if dispatcher is Unset:
            dispatcher = Dispatcher()
        elif not isinstance(dispatcher, Dispatcher):
            raise TypeError("program 'dispatcher' must be a dispatcher")
        if strip is not Unset and (not isinstance(strip, int) or isinstance(strip, bool)):
            raise TypeError("program 'strip' must be an integer")
        if strip is not Unset and strip < 0:
            raise ValueError("program 'strip' cannot be negative")

        self._dispatcher = dispatcher
        self._strip = strip
        self.shell = bool(shell)
        self.fancy = bool(fancy)
        self.colorful = bool(colorful)
        self.deferred = bool(deferred)

    @property
    def dispatcher(self):
        return self._dispatcher

    @property
    def strip(self):
        return coalesce(self._strip)

    def register_option(self, option, /):
        self._dispatcher.register_option(option)
        return self

    def register_command(self, command, /):
        self._dispatcher.register_command(command)
        return self

    def option(self, **metadata):
        return self._dispatcher.option(**metadata)

    def command(self, source=Unset, /, **metadata):
        return self._dispatcher.command(source, **metadata)

    def arguments(self, argv=Unset, /):
        """
        return the argument list handed to the tokenizer, already stripped.
        """
        if argv is Unset:
            argv = sys.argv
            strip = coalesce(self._strip, 1)
        elif isinstance(argv, str) or not isinstance(argv, Iterable):
            raise TypeError("program arguments must be an iterable of strings")
        else:
            strip = coalesce(self._strip, 0)
        return list(argv)[strip:]

    async def run(self, argv=Unset, /):
        """
        tokenize and dispatch one argument list.

        returns the dispatcher's verdict (True when validation errors exist)
        when no fault has to be surfaced, or when faults were printed in
        deferred shell mode.
        """
        known = len(self._dispatcher.faults())
        failed = await self._dispatcher.dispatch(tokenize(self.arguments(argv)))

        faults = self._dispatcher.faults()[known:]
        if not self._dispatcher.commands:
            # a program without commands is driven by options only
            faults = [fault for fault in faults if not (isinstance(fault, UnknownCommandError) and not fault.options["name"])]

        if faults:
            trigger(
                DispatchExit(faults),
                shell=self.shell,
                fancy=self.fancy,
                colorful=self.colorful,
                deferred=self.deferred,
            )
        return failed


def invoke(program, argv=Unset, /):
    """
    synchronously run a Program (or a bare Dispatcher, wrapped on the fly)
    outside of any running event loop.
    """
    if isinstance(program, Dispatcher):
        program = Program(program)
    if not isinstance(program, Program):
        raise TypeError("invoke() first argument must be a program or a dispatcher")
    return asyncio.run(program.run(argv))


__all__ = (
    "Program",
    "invoke",
)
