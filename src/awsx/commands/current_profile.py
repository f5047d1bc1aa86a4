#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Show the current profile.

Prints the value of `AWS_PROFILE` in the calling shell, which is the profile
exported by the last switch:

    $ awsx current-profile
    prod-readonly
"""

from awsx.commands import Command


class CLICommand(Command):
    """Show the current profile."""

    def execute(self, ctx):
        current = ctx.current_profile()
        if current:
            ctx.success(current)
        else:
            ctx.warning("No profile is active, run 'awsx switch' first.")
        return current
