#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#

# pylint: disable=redefined-outer-name,missing-docstring

import pytest

from awsx import cli
from awsx.cmdmgr import CommandManager
from awsx.errors import PromptCancelled
from awsx.session.aws import IdentityService


@pytest.fixture(scope="module")
def cmd_mgr():
    return CommandManager.from_module("awsx.commands")


@pytest.mark.parametrize(
    "name, arguments, expected",
    [
        (None, [], ("switch", [])),
        ("switch", ["dev"], ("switch", ["dev"])),
        ("dev", [], ("switch", ["dev"])),
        ("prod", ["prod-readonly"], ("switch", ["prod", "prod-readonly"])),
        ("prod", ["--force-mfa"], ("switch", ["prod", "--force-mfa"])),
        ("whoami", [], ("whoami", [])),
        ("add-profile", ["--profile", "qa"], ("add-profile", ["--profile", "qa"])),
    ],
)
def test_resolve_command(cmd_mgr, name, arguments, expected):
    assert cli.resolve_command(cmd_mgr, name, arguments) == expected


def test_valid_commands(cmd_mgr):
    text = cli._valid_commands(cmd_mgr.commands())  # pylint: disable=protected-access
    assert text.startswith("The following are the available commands:")
    assert "  switch " in text
    assert "Switch profiles." in text
    assert cli._valid_commands({}) is None  # pylint: disable=protected-access


@pytest.fixture
def aws_env(tmp_path, monkeypatch):
    aws = tmp_path / ".aws"
    aws.mkdir()
    (aws / "config").write_text("[profile dev]\nregion = us-east-1\noutput = json\n")
    (aws / "credentials").write_text(
        "[dev]\naws_access_key_id = AKIADEV\naws_secret_access_key = devsecret\n"
    )
    monkeypatch.setenv("AWS_CONFIG_FILE", str(aws / "config"))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(aws / "credentials"))
    monkeypatch.setenv("AWSX_HOME", str(tmp_path / ".awsx"))
    monkeypatch.setenv("AWSX_CONFIG", str(tmp_path / "awsx.yaml"))
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    return tmp_path


@pytest.fixture
def identity(mocker):
    m = mocker.MagicMock(spec=IdentityService)
    m.list_access_keys.return_value = []
    mocker.patch("awsx.cli.IdentityService", return_value=m)
    return m


def test_cli_switch(aws_env, identity, capsys):
    cli._cli(["dev"])  # pylint: disable=protected-access

    assert "Switched to profile dev" in capsys.readouterr().out
    exports = (aws_env / ".awsx" / "exports.sh").read_text()
    assert exports.startswith("export AWS_PROFILE=dev AWS_ACCESS_KEY_ID=AKIADEV")


def test_cli_first_run_backs_up(aws_env, identity):
    cli._cli(["list-profiles"])  # pylint: disable=protected-access

    assert (aws_env / ".awsx").is_dir()
    assert list((aws_env / ".aws").glob("config.*"))
    assert list((aws_env / ".aws").glob("credentials.*"))


def test_cli_command(aws_env, identity, capsys, monkeypatch):
    monkeypatch.setenv("AWS_PROFILE", "dev")
    cli._cli(["list-profiles"])  # pylint: disable=protected-access
    assert "* dev" in capsys.readouterr().out


def test_cli_command_help_touches_no_files(aws_env, capsys):
    with pytest.raises(SystemExit) as e:
        cli._cli(["add-profile", "--help"])  # pylint: disable=protected-access

    assert e.value.code == 0
    assert "--mfa-device-arn" in capsys.readouterr().out
    assert not (aws_env / ".awsx").exists()


def test_cli_help_lists_commands(aws_env, capsys):
    with pytest.raises(SystemExit):
        cli._cli(["--help"])  # pylint: disable=protected-access
    out = capsys.readouterr().out
    assert "add-assume-role-profile" in out
    assert "list-profiles" in out


def test_cli_user_config(aws_env, identity):
    (aws_env / "awsx.yaml").write_text("Session:\n  sts_timeout: 3\n")
    cli._cli(["current-profile"])  # pylint: disable=protected-access
    cli.IdentityService.assert_called_once_with(timeout=3)


def test_main_missing_aws_files(aws_env, capsys, monkeypatch):
    (aws_env / ".aws" / "credentials").unlink()
    monkeypatch.setattr("sys.argv", ["awsx", "list-profiles"])

    with pytest.raises(SystemExit) as e:
        cli.main()

    assert e.value.code == 1
    err = capsys.readouterr().err
    assert "You are missing a required file at:" in err
    assert "credentials" in err
    assert not (aws_env / ".awsx").exists()
    assert not list((aws_env / ".aws").glob("config.*"))


def test_main_unknown_profile(aws_env, identity, capsys, monkeypatch):
    monkeypatch.setattr("sys.argv", ["awsx", "staging"])

    with pytest.raises(SystemExit) as e:
        cli.main()

    assert e.value.code == 1
    assert "No profile 'staging' found" in capsys.readouterr().err


def test_main_cancelled(mocker, capsys):
    mocker.patch("awsx.cli._cli", side_effect=PromptCancelled())

    with pytest.raises(SystemExit) as e:
        cli.main()

    assert e.value.code == 1
    assert "Cancelled, nothing was changed." in capsys.readouterr().err


def test_main_trace(mocker, capsys, monkeypatch):
    monkeypatch.setenv("AWSX_TRACE", "1")
    mocker.patch("awsx.cli._cli", side_effect=RuntimeError("boom"))

    with pytest.raises(SystemExit):
        cli.main()

    err = capsys.readouterr().err
    assert "Traceback" in err
    assert "boom" in err
