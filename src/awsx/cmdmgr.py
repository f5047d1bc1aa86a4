#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Loads and instantiates awsx commands.

## Overview

This module provides a `CommandManager`, which is responsible for loading and
instantiating the commands of the `awsx.cli`. Each command is defined in a
separate Python module of the `awsx.commands` package that contains a class
called `CLICommand`, which must be a subclass of `awsx.commands.Command`. The
name of the module, with underscores replaced by hyphens, is the name used on
the awsx command line. For example, `awsx.commands.remove_profile`:

    from awsx.commands import Command

    class CLICommand(Command):
        \"\"\"Remove profile.\"\"\"

        def execute(self, ctx):
            ...

is invoked as:

    $ awsx remove-profile dev

The `CommandManager` relies on a `ModuleLoader` to find and load commands:

    cm = CommandManager(ModuleLoader("awsx.commands"))

A specific command can be loaded via `CommandManager.instantiate_command`. If
the command cannot be found, `CommandNotFoundError` is raised.
`CommandManager.commands` returns a dict of all the commands found.
"""

import argparse
import contextlib
import importlib
import logging
import pkgutil
import sys

from awsx.argparse import RawAndDefaultsFormatter
from awsx.commands import Command

LOG = logging.getLogger(__name__)


def to_module_name(name):
    """Returns the module name of a command name, `add-profile` -> `add_profile`."""
    return name.replace("-", "_")


def to_command_name(module):
    """Returns the command name of a module name, `add_profile` -> `add-profile`."""
    return module.replace("_", "-")


class CommandManager:
    """Manages the loading and instantiation of awsx commands.

    The `loader` parameter of the constructor must be an instance of a
    `ModuleLoader`.
    """

    def __init__(self, loader):
        self._loader = loader

    @classmethod
    def from_module(cls, name="awsx.commands"):
        """Creates a `CommandManager` that loads commands from module `name`."""
        return cls(ModuleLoader(name))

    def commands(self):
        """Returns a dict of names and classes of all valid commands."""
        return self._loader.load_all()

    def is_command(self, name):
        """Returns `True` if `name` is the name of a command.

        No command module is imported to answer this.
        """
        return to_command_name(to_module_name(name)) in self._loader.names()

    def instantiate_command(self, name, argv, cfg):
        """Returns an instantiated command identified by `name`.

        The `argv` parameter is the list of command line arguments following
        the command name, which are passed to the command for processing via
        its `from_cli` class method. If the arguments are not valid, the
        command's argument parser terminates the program with a usage message.

        The `cfg` parameter is a function that can look up key value pairs in
        the command's block of the user configuration. See the documentation
        on `awsx.config.Config.get` for the parameters of the function.

        If `name` is not found, raises `CommandNotFoundError`.
        """
        cmd_class = self._loader.load(name)

        if not issubclass(cmd_class, Command):
            raise TypeError(f"'{name}' must be a subclass of awsx.commands.Command")

        # The parser is named after the command and shows the module docstring
        # as the help epilog.
        parser = argparse.ArgumentParser(
            f"awsx {to_command_name(name)}",
            formatter_class=RawAndDefaultsFormatter,
            description=cmd_class.__doc__,
            epilog=sys.modules[cmd_class.__module__].__doc__,
        )

        return cmd_class.from_cli(parser, argv, cfg)


class ModuleLoader:
    """Loads awsx commands from a Python package.

    The `module_name` parameter specifies a package that contains one or more
    modules that implement a class called `CLICommand`.
    """

    def __init__(self, module_name):
        self.module_name = module_name

    def load(self, name):
        """Returns the class object for the command called `name`.

        If a valid class cannot be found, raises `CommandNotFoundError`.
        """
        path = f"{self.module_name}.{to_module_name(name)}"
        try:
            LOG.info("loading command at '%s'", path)
            module = importlib.import_module(path)

            # All commands must define a 'CLICommand' class.
            return module.CLICommand

        except Exception as e:
            raise CommandNotFoundError(name, {self.module_name: e}) from e

    def names(self):
        """Returns the names of the commands in the package."""
        base = importlib.import_module(self.module_name)
        return [to_command_name(m.name) for m in pkgutil.iter_modules(base.__path__)]

    def load_all(self):
        """Returns a dict of command names and the classes that implement them."""
        classes = {}
        for name in self.names():
            with contextlib.suppress(CommandNotFoundError):
                classes[name] = self.load(name)

        return classes


class CommandNotFoundError(Exception):
    """Raised if command cannot be found.

    The `command_name` attribute of the instance is the command that could not
    be found. The `path_errors` attribute is a dict of path -> loader exceptions
    for each path searched.
    """

    def __init__(self, command_name, path_errors):
        self.path_errors = path_errors
        self.command_name = command_name

        msg = f"'{command_name}' command not found:\n"
        for path, error in path_errors.items():
            msg += f"  {path} => {error}\n"
        super().__init__(msg)
