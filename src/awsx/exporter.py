#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Writes the active profile as shell environment variables.

awsx cannot change the environment of the shell that runs it. Instead, every
switch writes a small script to `~/.awsx/exports.sh` that a shell function
sources after awsx exits:

    awsx() {
      command awsx "$@" && [ -f ~/.awsx/exports.sh ] && . ~/.awsx/exports.sh
    }

The script is an `export` statement followed by an `unset` of each awsx
variable the new profile leaves empty. The AWS CLI prefers keys in the
environment over `AWS_PROFILE`, so keys left behind by the previous profile
must not survive a switch. Values are shell quoted.
"""

import logging
import shlex
from pathlib import Path

LOG = logging.getLogger(__name__)

EXPORTS_FILENAME = "exports.sh"

VARIABLES = (
    "AWS_PROFILE",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
    "AWS_DEFAULT_REGION",
    "AWS_DEFAULT_OUTPUT",
)
"""Every variable written by an exports script, in order."""


def format_exports(profile_name, credentials=None, region=None, output=None):
    """Returns the `export` and `unset` statements for a profile.

    `credentials` is an `awsx.models.TemporaryCredentials` or `None`. When it
    is `None`, only `AWS_PROFILE` and the region and output are exported, which
    lets the AWS CLI resolve the profile itself. Every other name in
    `VARIABLES` is unset.
    """
    values = {"AWS_PROFILE": profile_name}

    if credentials is not None:
        values["AWS_ACCESS_KEY_ID"] = credentials.aws_access_key_id
        values["AWS_SECRET_ACCESS_KEY"] = credentials.aws_secret_access_key
        values["AWS_SESSION_TOKEN"] = credentials.aws_session_token

    values["AWS_DEFAULT_REGION"] = region
    values["AWS_DEFAULT_OUTPUT"] = output

    exported = [name for name in VARIABLES if values.get(name)]
    unset = [name for name in VARIABLES if name not in exported]

    assignments = " ".join(
        f"{name}={shlex.quote(str(values[name]))}" for name in exported
    )
    script = f"export {assignments}\n"
    if unset:
        script += "unset " + " ".join(unset) + "\n"
    return script


class ShellExporter:
    """Writes `format_exports` output to `path`."""

    def __init__(self, path):
        self.path = Path(path)

    @classmethod
    def in_home(cls, awsx_home):
        """Returns an exporter writing to the exports file in `awsx_home`."""
        return cls(Path(awsx_home) / EXPORTS_FILENAME)

    def export(self, profile_name, credentials=None, region=None, output=None):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            format_exports(profile_name, credentials, region, output), encoding="utf-8"
        )
        self.path.chmod(0o600)
        LOG.info("exported %s to %s", profile_name, self.path)
