#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Set the maximum age of a profile's access key.

After each switch awsx reminds the user to rotate an access key that is
approaching its maximum age. Without a maximum age, reminders are based on the
absolute age of the key. A maximum age of `0` turns the reminders off.

    $ awsx set-key-max-age dev 90
    Updated AccessKey maximum age on profile 'dev'

If the profile already has a maximum age, the user is asked before it is
changed. An MFA profile keeps its current session.
"""

import copy

from awsx.argparse import bounded_int
from awsx.commands import Command, choose_profile


class CLICommand(Command):
    """Set maximum age of AWS access key in days."""

    @classmethod
    def from_cli(cls, parser, argv, cfg):
        parser.add_argument(
            "profile", nargs="?", help="name of the profile to set the maximum age on"
        )
        parser.add_argument(
            "max_age",
            nargs="?",
            type=bounded_int(0),
            help="maximum age of the access key in days",
        )
        args = parser.parse_args(argv)
        return cls(**vars(args))

    def __init__(self, profile=None, max_age=None):
        self.profile = profile
        self.max_age = max_age

    def execute(self, ctx):
        profile = choose_profile(ctx, self.profile)
        name = profile.profile_name

        max_age = self.max_age
        if max_age is None:
            max_age = ctx.prompter.number(
                "Access key maximum age in days (use 0 for no maximum age)",
                default=0,
                validate=lambda n: True if n >= 0 else "Must be 0 or more days",
            )

        if profile.aws_access_key_max_age and not ctx.prompter.confirm(
            f"Profile '{name}' already has AccessKey maximum age set. "
            "Do you want to update it?"
        ):
            ctx.warning(f"AccessKey maximum age on profile {name} has not been updated.")
            return None

        record = copy.copy(profile)
        record.aws_access_key_max_age = max_age
        ctx.registry.replace_profile(record)
        ctx.success(f"Updated AccessKey maximum age on profile '{name}'")
        return record
