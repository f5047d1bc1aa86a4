#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#

# pylint: disable=redefined-outer-name,missing-docstring

import pytest

from awsx.cmdmgr import (
    CommandManager,
    CommandNotFoundError,
    ModuleLoader,
    to_command_name,
    to_module_name,
)
from awsx.commands import Command, switch
from awsx.config import Config

COMMANDS = [
    "add-assume-role-profile",
    "add-key-expiry",
    "add-profile",
    "backup-config",
    "check-key-expiry",
    "current-profile",
    "disable-mfa",
    "enable-mfa",
    "list-profiles",
    "remove-assume-role-profile",
    "remove-profile",
    "set-key-max-age",
    "status",
    "switch",
    "whoami",
]


@pytest.fixture(scope="module")
def cmd_mgr():
    return CommandManager.from_module("awsx.commands")


def test_name_conversion():
    assert to_module_name("add-profile") == "add_profile"
    assert to_command_name("add_profile") == "add-profile"
    assert to_command_name(to_module_name("whoami")) == "whoami"


def test_commands(cmd_mgr):
    commands = cmd_mgr.commands()
    assert sorted(commands) == COMMANDS
    assert all(issubclass(c, Command) for c in commands.values())
    assert all(c.__doc__ for c in commands.values())


@pytest.mark.parametrize(
    "name, expected",
    [
        ("switch", True),
        ("add-profile", True),
        ("add_profile", True),
        ("dev", False),
        ("prod-readonly", False),
    ],
)
def test_is_command(cmd_mgr, name, expected):
    assert cmd_mgr.is_command(name) == expected


def test_instantiate_command(cmd_mgr):
    cfg = Config({}).section("Commands", "switch")
    cmd = cmd_mgr.instantiate_command("switch", ["dev"], cfg)
    assert isinstance(cmd, switch.CLICommand)
    assert cmd.profile == "dev"


def test_instantiate_command_help(cmd_mgr, capsys):
    cfg = Config({}).section("Commands", "switch")
    with pytest.raises(SystemExit) as e:
        cmd_mgr.instantiate_command("switch", ["--help"], cfg)
    assert e.value.code == 0

    out = capsys.readouterr().out
    assert out.startswith("usage: awsx switch")
    assert "--force-mfa" in out
    assert "## Overview" in out


def test_instantiate_unknown_command(cmd_mgr):
    with pytest.raises(CommandNotFoundError) as e:
        cmd_mgr.instantiate_command("nope", [], Config({}).section("Commands", "nope"))
    assert e.value.command_name == "nope"
    assert "awsx.commands" in e.value.path_errors


def test_module_loader_load():
    assert ModuleLoader("awsx.commands").load("switch") is switch.CLICommand
