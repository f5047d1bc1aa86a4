#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Built-in awsx commands.

## Overview

Each module in this package implements one `awsx` command and defines a class
called `CLICommand`, a subclass of `Command`. The name of the module, with
underscores replaced by hyphens, is the name of the command on the command
line, so `awsx.commands.add_profile` implements `awsx add-profile`. The
docstring of `CLICommand` is shown in the list of available commands, and the
module docstring is shown by `awsx COMMAND --help`.

A command is built by `Command.from_cli`, which parses the arguments that
follow the command name, and run by `Command.execute`, which receives a
`Context` holding the collaborators the command needs. Options that are not
given on the command line are prompted for interactively.

Default values for command options can be set in the `Commands` section of the
user configuration, keyed by the module name:

    Commands:
      switch:
        force_mfa: BOOLEAN
"""

import os
import sys
import time

from colorama import Fore, Style

from awsx import keyage
from awsx.errors import ProfileNotFound
from awsx.models import OUTPUT_FORMATS
from awsx.session import SessionEngine


def _colored(color, message):
    return f"{color}{message}{Style.RESET_ALL}"


class Context:
    """Everything a command needs to do its work.

    `store` is an `awsx.store.FileStore`, `registry` an
    `awsx.registry.ProfileRegistry`, `prompter` an `awsx.prompts.Prompter`,
    `identity` an `awsx.session.aws.IdentityService`, `exporter` an
    `awsx.exporter.ShellExporter`, and `config` the `awsx.config.Config` of the
    user. `env` is the environment used to find the current profile.
    """

    def __init__(
        self,
        store,
        registry,
        prompter,
        identity,
        exporter,
        config,
        env=None,
        out=None,
        clock=time.time,
    ):
        self.store = store
        self.registry = registry
        self.prompter = prompter
        self.identity = identity
        self.exporter = exporter
        self.config = config
        self.env = os.environ if env is None else env
        self.out = out or sys.stdout
        self.clock = clock

    def current_profile(self):
        """Returns the name of the profile active in the calling shell."""
        return self.env.get("AWS_PROFILE")

    def engine(self):
        """Returns a `SessionEngine` wired to this context."""
        return SessionEngine(
            self.registry, self.prompter, self.identity, self.exporter, self.clock
        )

    def print(self, message=""):
        print(message, file=self.out)

    def success(self, message):
        self.print(_colored(Fore.GREEN, message))

    def warning(self, message):
        self.print(_colored(Fore.YELLOW, message))

    def error(self, message):
        self.print(_colored(Fore.RED, message))


class Command:
    """Abstract base class of awsx commands."""

    @classmethod
    def from_cli(cls, parser, argv, cfg):  # pylint: disable=unused-argument
        """Factory to build the command from CLI args and user configuration.

        `parser` is an `argparse.ArgumentParser` named after the command, to
        which the command adds its own arguments before parsing `argv`. `cfg`
        looks up values in the command's block of the `Commands` section of
        the user configuration, with the same parameters as
        `awsx.config.Config.get`, so options can have user-defined defaults.

        The default implementation accepts no arguments.
        """
        parser.parse_args(argv)
        return cls()

    def execute(self, ctx):
        """Runs the command with the `Context` `ctx`."""
        raise NotImplementedError


def choose_profile(ctx, profile_name=None, message="Choose a profile"):
    """Returns the plain or MFA profile named `profile_name`.

    If no name is given, the user chooses from the existing profiles, with the
    current profile preselected. Raises `awsx.errors.ProfileNotFound` if the
    profile does not exist.
    """
    if profile_name is None:
        names = ctx.registry.profile_names()
        if not names:
            raise ProfileNotFound(
                None, "No profiles are configured, run 'awsx add-profile' first."
            )
        profile_name = ctx.prompter.select(
            message, names, default=ctx.current_profile()
        )

    profile = ctx.registry.profile(profile_name)
    if profile is None:
        raise ProfileNotFound(profile_name, f"No profile '{profile_name}' found.")
    return profile


def ask_region(ctx, default=None):
    return ctx.prompter.text("Default region", default=default)


def ask_output_format(ctx, default=None):
    return ctx.prompter.select(
        "Output format", OUTPUT_FORMATS, default=default or OUTPUT_FORMATS[0]
    )


_SEVERITY_COLORS = {
    keyage.CRITICAL: Fore.RED,
    keyage.WARNING: Fore.YELLOW,
    keyage.INFO: Fore.CYAN,
}


def report_status(ctx, status, subject=None):
    """Prints a `awsx.keyage.KeyAgeStatus` in the color of its severity."""
    message = f"{subject}: {status.message}" if subject else status.message
    ctx.print(_colored(_SEVERITY_COLORS[status.severity], f"⚠ {message}"))
