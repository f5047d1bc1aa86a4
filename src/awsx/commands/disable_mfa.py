#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Disable MFA on an existing profile.

Turns an MFA profile into a plain profile that uses its access key directly.
The access key, region, and output format are asked for again with the
current values as defaults. The current MFA session, if any, is discarded.

    $ awsx disable-mfa prod
    Disabled MFA on profile 'prod'
"""

from awsx.commands import Command, ask_output_format, ask_region, choose_profile
from awsx.models import PlainProfile


class CLICommand(Command):
    """Disable MFA on an existing profile."""

    @classmethod
    def from_cli(cls, parser, argv, cfg):
        parser.add_argument(
            "profile", nargs="?", help="name of the profile to disable MFA"
        )
        args = parser.parse_args(argv)
        return cls(**vars(args))

    def __init__(self, profile=None):
        self.profile = profile

    def execute(self, ctx):
        prompter = ctx.prompter
        profile = choose_profile(ctx, self.profile)
        name = profile.profile_name

        if not profile.mfa_enabled:
            ctx.warning(f"Profile {name} already has MFA disabled.")
            return None

        record = PlainProfile(
            name,
            prompter.text("Access key", default=profile.aws_access_key_id),
            prompter.secret("Secret key", default=profile.aws_secret_access_key),
            aws_default_region=ask_region(ctx, profile.aws_default_region),
            aws_output_format=ask_output_format(ctx, profile.aws_output_format),
            aws_access_key_max_age=profile.aws_access_key_max_age,
            aws_secret_access_key_expiry=profile.aws_secret_access_key_expiry,
        )
        ctx.registry.replace_profile(record)
        ctx.success(f"Disabled MFA on profile '{name}'")
        return record
