#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Set the date at which a profile's secret key is due for rotation.

The expiry is given as a number of days from today and stored with the
profile. `awsx check-key-expiry` reports on it.

    $ awsx add-key-expiry dev 90
    Updated access key expiry date on profile 'dev'
"""

import copy

from awsx.argparse import bounded_int
from awsx.commands import Command, choose_profile
from awsx.keyage import SECONDS_PER_DAY

DEFAULT_EXPIRY_DAYS = 90


class CLICommand(Command):
    """Set the number of days until the secret key of a profile expires."""

    @classmethod
    def from_cli(cls, parser, argv, cfg):
        parser.add_argument("profile", nargs="?", help="name of the profile")
        parser.add_argument(
            "days", nargs="?", type=bounded_int(1), help="days until the key expires"
        )
        args = parser.parse_args(argv)
        return cls(**vars(args))

    def __init__(self, profile=None, days=None):
        self.profile = profile
        self.days = days

    def execute(self, ctx):
        profile = choose_profile(ctx, self.profile)
        name = profile.profile_name

        days = self.days
        if days is None:
            days = ctx.prompter.number(
                "Enter expiry period in days",
                default=DEFAULT_EXPIRY_DAYS,
                validate=lambda n: True if n > 0 else "Must be 1 or more days",
            )

        if profile.aws_secret_access_key_expiry and not ctx.prompter.confirm(
            f"Profile {name} already has expiry date set. Do you want to update it?"
        ):
            ctx.warning(f"Access key expiry date on profile {name} has not been updated.")
            return None

        record = copy.copy(profile)
        record.aws_secret_access_key_expiry = int(ctx.clock()) + days * SECONDS_PER_DAY
        ctx.registry.replace_profile(record)
        ctx.success(f"Updated access key expiry date on profile '{name}'")
        return record
