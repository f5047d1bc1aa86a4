#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Create a backup of the AWS and awsx config files.

Copies the AWS config file, the AWS credentials file, and the awsx profiles
file to siblings with a UTC timestamp suffix:

    $ awsx backup-config
    Backed up all AWS CLI and awsx config files
      /home/jane/.aws/config.20240115093000
      /home/jane/.aws/credentials.20240115093000
      /home/jane/.awsx/profiles.20240115093000

Files that do not exist are skipped. Running the command twice within the same
second overwrites the first backup.
"""

from awsx.commands import Command


class CLICommand(Command):
    """Create a backup of your AWS and awsx config files."""

    def execute(self, ctx):
        backups = ctx.store.backup_all()
        ctx.success("Backed up all AWS CLI and awsx config files")
        for path in backups:
            ctx.print(f"  {path}")
        return backups
