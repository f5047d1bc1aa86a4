#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Report profiles whose secret key expires.

Lists every profile with an expiry date set by `awsx add-key-expiry`:

    $ awsx check-key-expiry
    ⚠ Your secret key of profile dev expires in 12 days
    ⚠ Your secret key of profile prod has expired
"""

from awsx import keyage
from awsx.commands import Command, report_status


class CLICommand(Command):
    """Check the expiry of secret keys."""

    def execute(self, ctx):
        results = keyage.check_secret_key_expiry(ctx.registry.profiles(), ctx.clock())
        if not results:
            ctx.print("No profiles have a secret key expiry date set")

        for profile, status in results:
            report_status(
                ctx,
                keyage.KeyAgeStatus(
                    status.severity,
                    f"Your secret key of profile {profile.profile_name} {status}",
                ),
            )
        return results
