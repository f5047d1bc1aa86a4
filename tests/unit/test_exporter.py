#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#

# pylint: disable=redefined-outer-name,missing-docstring

import shutil
import subprocess

import pytest

from awsx.exporter import EXPORTS_FILENAME, ShellExporter, format_exports
from awsx.models import TemporaryCredentials


@pytest.mark.parametrize(
    "args, expected",
    [
        (
            ("dev",),
            "export AWS_PROFILE=dev\n"
            "unset AWS_ACCESS_KEY_ID AWS_SECRET_ACCESS_KEY AWS_SESSION_TOKEN "
            "AWS_DEFAULT_REGION AWS_DEFAULT_OUTPUT\n",
        ),
        (
            ("dev", None, "us-east-1", "json"),
            "export AWS_PROFILE=dev AWS_DEFAULT_REGION=us-east-1 AWS_DEFAULT_OUTPUT=json\n"
            "unset AWS_ACCESS_KEY_ID AWS_SECRET_ACCESS_KEY AWS_SESSION_TOKEN\n",
        ),
        (
            ("dev", TemporaryCredentials("dev", "AKIA", "secret")),
            "export AWS_PROFILE=dev AWS_ACCESS_KEY_ID=AKIA AWS_SECRET_ACCESS_KEY=secret\n"
            "unset AWS_SESSION_TOKEN AWS_DEFAULT_REGION AWS_DEFAULT_OUTPUT\n",
        ),
        (
            ("prod", TemporaryCredentials("prod", "ASIA", "secret", "token"), None, "table"),
            "export AWS_PROFILE=prod AWS_ACCESS_KEY_ID=ASIA AWS_SECRET_ACCESS_KEY=secret "
            "AWS_SESSION_TOKEN=token AWS_DEFAULT_OUTPUT=table\n"
            "unset AWS_DEFAULT_REGION\n",
        ),
        (
            ("prod", TemporaryCredentials("prod", "ASIA", "secret", "token"), "eu-west-1", "json"),
            "export AWS_PROFILE=prod AWS_ACCESS_KEY_ID=ASIA AWS_SECRET_ACCESS_KEY=secret "
            "AWS_SESSION_TOKEN=token AWS_DEFAULT_REGION=eu-west-1 AWS_DEFAULT_OUTPUT=json\n",
        ),
    ],
)
def test_format_exports(args, expected):
    assert format_exports(*args) == expected


def test_format_exports_quotes_values():
    creds = TemporaryCredentials("my profile", "AKIA", "a/b+c$d")
    line = format_exports("my profile", creds)
    assert "AWS_PROFILE='my profile'" in line
    assert "AWS_SECRET_ACCESS_KEY='a/b+c$d'" in line


def source_in_bash(tmp_path, *scripts):
    """Sources each script in order in one bash process and returns its env."""
    paths = []
    for i, script in enumerate(scripts):
        path = tmp_path / f"exports{i}.sh"
        path.write_text(script)
        paths.append(path)

    command = "; ".join(f". '{p}'" for p in paths) + "; env"
    result = subprocess.run(
        ["bash", "-c", command],
        env={"PATH": "/usr/bin:/bin"},
        capture_output=True,
        text=True,
        check=True,
    )
    return dict(line.split("=", 1) for line in result.stdout.splitlines() if "=" in line)


@pytest.mark.skipif(shutil.which("bash") is None, reason="requires bash")
@pytest.mark.parametrize(
    "second, expected",
    [
        (
            ("prod-readonly", None, "eu-west-1", "json"),
            {
                "AWS_PROFILE": "prod-readonly",
                "AWS_DEFAULT_REGION": "eu-west-1",
                "AWS_DEFAULT_OUTPUT": "json",
            },
        ),
        (
            ("dev", TemporaryCredentials("dev", "AKIADEV", "devsecret")),
            {
                "AWS_PROFILE": "dev",
                "AWS_ACCESS_KEY_ID": "AKIADEV",
                "AWS_SECRET_ACCESS_KEY": "devsecret",
            },
        ),
    ],
)
def test_switch_clears_previous_profile(tmp_path, second, expected):
    prod = format_exports(
        "prod", TemporaryCredentials("prod", "ASIAPROD", "prodsecret", "tok"), "us-east-1", "table"
    )

    env = source_in_bash(tmp_path, prod, format_exports(*second))

    assert {k: v for k, v in env.items() if k.startswith("AWS_")} == expected


def test_shell_exporter(tmp_path):
    exporter = ShellExporter.in_home(tmp_path / ".awsx")
    exporter.export("prod-readonly", None, "eu-west-1", "json")

    path = tmp_path / ".awsx" / EXPORTS_FILENAME
    assert path.read_text() == (
        "export AWS_PROFILE=prod-readonly AWS_DEFAULT_REGION=eu-west-1 "
        "AWS_DEFAULT_OUTPUT=json\n"
        "unset AWS_ACCESS_KEY_ID AWS_SECRET_ACCESS_KEY AWS_SESSION_TOKEN\n"
    )
    assert path.stat().st_mode & 0o777 == 0o600


def test_shell_exporter_overwrites(tmp_path):
    exporter = ShellExporter(tmp_path / "exports.sh")
    exporter.export("dev")
    exporter.export("prod")
    assert (tmp_path / "exports.sh").read_text().startswith("export AWS_PROFILE=prod\n")
