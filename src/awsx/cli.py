#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""The awsx command line interface.

## Overview

awsx manages named AWS profiles and switches the shell between them. Profiles
are kept in the standard AWS CLI config and credentials files, so every tool
that understands `AWS_PROFILE` can use them. awsx adds three things on top:

- MFA profiles, whose long-lived access key is only used to obtain session
  credentials with an MFA token. The session is reused until it expires.
- Assume-role profiles, which belong to a parent profile and are offered when
  switching to it.
- Reminders to rotate access keys that are getting old.

### Installation

awsx cannot change the environment of the shell it runs in. Each switch writes
the variables to export to `~/.awsx/exports.sh`, which a shell function sources
once awsx exits. Add the following to `~/.bashrc` or `~/.zshrc`:

    awsx() {
      command awsx "$@" && [ -f ~/.awsx/exports.sh ] && . ~/.awsx/exports.sh
    }

awsx requires the AWS config and credentials files to exist. Run
`aws configure` first if they do not. The first time awsx runs, it creates
`~/.awsx` and backs up the existing AWS files.

### Usage

The first argument is the name of a command. If it is not the name of a
command, it is the name of a profile to switch to:

    $ awsx add-profile
    $ awsx dev
    Switched to profile dev
    $ awsx prod prod-readonly
    Switched to profile prod -> prod-readonly
    $ awsx whoami

Run `awsx --help` to list the available commands, and `awsx COMMAND --help` for
the options of a command.

### Files

`~/.aws/config`, `~/.aws/credentials`
:  Profiles as used by the AWS CLI. The locations honor `AWS_CONFIG_FILE` and
`AWS_SHARED_CREDENTIALS_FILE`.

`~/.awsx/profiles`
:  awsx settings of each profile. Can be moved with `AWSX_HOME`.

`~/.awsx.yaml`
:  Optional user configuration, see `awsx.config`. Can be moved with
`AWSX_CONFIG`.

Each command reads, modifies, and writes back whole files. Two awsx commands
running at the same time are not coordinated, and the one that finishes last
wins.

### Troubleshooting

Tracebacks are not printed by default. Set the environment variable
`AWSX_TRACE` to `1` to print them, and use `--log-level DEBUG` to see the
decisions made while switching:

    $ AWSX_TRACE=1 awsx --log-level DEBUG prod
"""

import argparse
import logging
import os
import sys
import traceback

import colorama
from colorama import Fore, Style

from awsx import __version__
from awsx.argparse import RawAndDefaultsFormatter
from awsx.cmdmgr import CommandManager, to_module_name
from awsx.commands import Context
from awsx.config import Config, LogLevel, Number, config_filename
from awsx.errors import PromptCancelled
from awsx.exporter import ShellExporter
from awsx.prompts import Prompter
from awsx.registry import ProfileRegistry
from awsx.session.aws import DEFAULT_TIMEOUT, IdentityService
from awsx.store import FileStore

LOG = logging.getLogger(__name__)

SHORT_DESCRIPTION = """
Switches the shell between AWS profiles.

If the first argument is not the name of a command, it is the name of a
profile to switch to, optionally followed by the name of one of its assume
role profiles. Each command can have its own set of command line arguments,
which can be viewed by passing --help after the command.
""".strip()

DEFAULT_COMMAND = "switch"


# setup.py establishes this as the entry point for the awsx CLI.
def main():
    """The main entry point for the `awsx` CLI tool installed with this package.

    Exits with a `0` status code upon success. Upon error, prints the error
    message to standard error and exits with `1`. By default, a stack trace is
    not included. If the trace is desired, set the `AWSX_TRACE` environment
    variable to `1`.
    """
    try:
        _cli(sys.argv[1:])

    except PromptCancelled as e:
        print(f"{Fore.YELLOW}{e}{Style.RESET_ALL}", file=sys.stderr)
        sys.exit(1)

    except Exception as e:  # pylint: disable=broad-except
        if os.getenv("AWSX_TRACE"):
            traceback.print_exc(file=sys.stderr)

        print(f"{Fore.RED}{e}{Style.RESET_ALL}", file=sys.stderr)
        sys.exit(1)


def _cli(argv):
    """Parses command line arguments and runs the requested awsx command.

    This function may exit and terminate the Python program. Returns the value
    returned by the command.
    """
    config = Config.from_file(config_filename())
    command_mgr = CommandManager.from_module("awsx.commands")

    parser = argparse.ArgumentParser(
        prog="awsx",
        allow_abbrev=False,
        formatter_class=RawAndDefaultsFormatter,
        description=SHORT_DESCRIPTION,
        epilog=_valid_commands(command_mgr.commands()),
    )

    parser.add_argument(
        "--version", action="version", version="%(prog)s " + __version__
    )

    parser.add_argument(
        "--log-level",
        default=config.get("CLI", "log_level", type=LogLevel, default="ERROR"),
        choices=["DEBUG", "INFO", "WARN", "ERROR"],
        help="set the logging level",
    )

    parser.add_argument("command", nargs="?", help="command or profile name")
    parser.add_argument(
        "arguments", nargs=argparse.REMAINDER, default=[], help="arguments for command"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    colorama.init()

    name, cmd_argv = resolve_command(command_mgr, args.command, args.arguments)
    LOG.info("running command %s with %s", name, cmd_argv)

    # The command parses its own arguments first, so --help never touches any
    # file.
    command = command_mgr.instantiate_command(
        name, cmd_argv, config.section("Commands", to_module_name(name))
    )

    store = FileStore.default()
    store.require_aws_files_present()
    store.ensure_initialized()

    ctx = Context(
        store=store,
        registry=ProfileRegistry(store),
        prompter=Prompter(),
        identity=IdentityService(
            timeout=config.get(
                "Session", "sts_timeout", type=Number, default=DEFAULT_TIMEOUT
            )
        ),
        exporter=ShellExporter.in_home(store.awsx_home),
        config=config,
    )
    return command.execute(ctx)


def resolve_command(command_mgr, name, arguments):
    """Returns the command to run and its arguments.

    Anything that is not a command name is taken as the arguments of the
    default command, so `awsx prod` is the same as `awsx switch prod`.
    """
    if name is None:
        return DEFAULT_COMMAND, list(arguments)
    if command_mgr.is_command(name):
        return name, list(arguments)
    return DEFAULT_COMMAND, [name, *arguments]


def _valid_commands(commands):
    """Returns a table of commands for the help text.

    The argument is a dict where keys are the names and values are CLICommand
    classes from the command modules.
    """
    if not commands:
        return None

    width = max(len(name) for name in commands)
    lines = ["The following are the available commands:", ""]
    for name in sorted(commands):
        # By convention, the class docstring is the summary of the command.
        docstring = commands[name].__doc__ or ""
        lines.append(f"  {name:{width}}  {docstring}")
    return "\n".join(lines)
