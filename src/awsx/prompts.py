#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Interactive prompts on the terminal.

## Overview

`Prompter` asks the user for the values awsx needs when they were not given on
the command line. Prompts are written to standard error so they do not mix
with output that may be captured from standard output.

    p = Prompter()
    name = p.select("Choose a profile", ["dev", "prod"], default="prod")
    token = p.text("MFA token")
    secret = p.secret("Secret key")
    if p.confirm("Are you sure?"):
        ...

Invalid answers are reported and the question is asked again. If the user
presses Ctrl-C or closes standard input, `awsx.errors.PromptCancelled` is
raised, which the CLI reports without a traceback. Nothing is written to disk
before all prompts of an operation have been answered.

`validate` callables, as accepted by `Prompter.text` and `Prompter.number`,
return `True` for a valid value or a message describing the problem, the same
contract as `awsx.models.validate_mfa_expiry`.
"""

import functools
import getpass
import logging
import sys

from colorama import Fore, Style

from awsx.errors import PromptCancelled

LOG = logging.getLogger(__name__)


def _cancellable(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (KeyboardInterrupt, EOFError) as e:
            print(file=sys.stderr)
            raise PromptCancelled() from e

    return wrapper


class Prompter:
    """Asks questions on the terminal.

    `input_func` and `secret_func` read a line of input given a prompt string.
    They default to `input` and `getpass.getpass`, and exist so the prompter
    can be driven by tests.
    """

    def __init__(self, input_func=input, secret_func=getpass.getpass, out=sys.stderr):
        self._input = input_func
        self._secret = secret_func
        self._out = out

    def _error(self, message):
        print(f"{Fore.RED}{message}{Style.RESET_ALL}", file=self._out)

    def _ask(self, reader, message, default=None):
        suffix = f" [{default}]" if default not in (None, "") else ""
        print(
            f"{Fore.CYAN}?{Style.RESET_ALL} {message}{suffix}: ",
            end="",
            file=self._out,
            flush=True,
        )
        answer = reader("").strip()
        if not answer and default is not None:
            return str(default)
        return answer

    @_cancellable
    def select(self, message, choices, default=None):
        """Returns one of `choices`, chosen by number or by name.

        `choices` is a list of values, or of `(title, value)` tuples if the
        text shown should differ from the value returned. `default` is the
        value returned when the user just presses enter.
        """
        if not choices:
            raise ValueError("select requires at least one choice")

        options = [c if isinstance(c, tuple) else (str(c), c) for c in choices]
        values = [v for _, v in options]
        default_index = values.index(default) + 1 if default in values else None

        print(f"{Fore.CYAN}?{Style.RESET_ALL} {message}", file=self._out)
        for i, (title, _) in enumerate(options, 1):
            marker = "*" if i == default_index else " "
            print(f"  {marker}{i:>3}) {title}", file=self._out)

        while True:
            answer = self._ask(self._input, "Choice", default_index)
            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return options[int(answer) - 1][1]
            for title, value in options:
                if answer == title:
                    return value
            self._error(f"Please enter a number between 1 and {len(options)}")

    @_cancellable
    def text(self, message, default=None, validate=None, required=True):
        """Returns a line of text entered by the user."""
        while True:
            answer = self._ask(self._input, message, default)
            if not answer and not required:
                return None
            if not answer:
                self._error("A value is required")
                continue
            result = validate(answer) if validate else True
            if result is True:
                return answer
            self._error(result)

    @_cancellable
    def secret(self, message, default=None):
        """Returns a line of text entered without echo.

        If `default` is given, it is returned when nothing is entered but it is
        never shown.
        """
        if default:
            message += " (leave empty to keep the current value)"
        while True:
            answer = self._ask(self._secret, message)
            if answer:
                return answer
            if default:
                return default
            self._error("A value is required")

    @_cancellable
    def number(self, message, default=None, validate=None):
        """Returns an integer entered by the user."""
        while True:
            answer = self._ask(self._input, message, default)
            try:
                value = int(answer)
            except ValueError:
                self._error(f"'{answer}' is not a number")
                continue
            result = validate(value) if validate else True
            if result is True:
                return value
            self._error(result)

    @_cancellable
    def confirm(self, message, default=False):
        """Returns `True` if the user answers yes."""
        hint = "Y/n" if default else "y/N"
        while True:
            answer = self._ask(self._input, f"{message} ({hint})").lower()
            if not answer:
                return default
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            self._error("Please answer yes or no")
