#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Switch the active profile of the shell.

## Overview

The switch command makes a profile the active profile. It is also run when the
first argument to awsx is not the name of a command, so the following are
equivalent:

    $ awsx switch prod
    $ awsx prod
    Switched to profile prod

If the profile has MFA enabled and its last MFA session has expired, the MFA
token is prompted for and exchanged for new session credentials. A session
that is still valid is reused without contacting AWS. Pass `--force-mfa` to
start a new session regardless.

If the profile has assume-role profiles, one of them can be named as a second
argument, or chosen from a list. Choose `root profile` to stay on the profile
itself:

    $ awsx prod prod-readonly
    Switched to profile prod -> prod-readonly

Without arguments, the profile is chosen from a list.

After switching, the age of the profile's access key is checked and a reminder
printed if the key should be rotated. See `awsx.keyage`.

## Reference

### Synopsis

    $ awsx switch [profile] [assume-role-profile] [--force-mfa]

### Configuration

    Commands:
      switch:
        force_mfa: BOOLEAN

### Command Options

`force_mfa`, `--force-mfa`
:  Start a new MFA session even if the current one is still valid.
"""

import logging

from awsx import keyage
from awsx.commands import Command, report_status
from awsx.config import Bool, Int, List

LOG = logging.getLogger(__name__)


class CLICommand(Command):
    """Switch profiles."""

    @classmethod
    def from_cli(cls, parser, argv, cfg):
        parser.add_argument(
            "profile", nargs="?", help="name of the profile to switch to"
        )
        parser.add_argument(
            "assume_role_profile",
            nargs="?",
            help="name of the assume role profile to switch to",
        )
        parser.add_argument(
            "--force-mfa",
            action="store_true",
            default=cfg("force_mfa", type=Bool, default=False),
            help="start a new MFA session even if the current one is valid",
        )

        args = parser.parse_args(argv)
        return cls(**vars(args))

    def __init__(self, profile=None, assume_role_profile=None, force_mfa=False):
        self.profile = profile
        self.assume_role_profile = assume_role_profile
        self.force_mfa = force_mfa

    def execute(self, ctx):
        thresholds = ctx.config.get(
            "KeyAge",
            "thresholds",
            type=List(Int),
            default=list(keyage.DEFAULT_AGE_THRESHOLDS),
        )

        result = ctx.engine().switch(
            profile_name=self.profile,
            assume_role_name=self.assume_role_profile,
            force_mfa=self.force_mfa,
            current_profile=ctx.current_profile(),
        )

        name = result.profile.profile_name
        if result.assumed_role:
            ctx.success(f"Switched to profile {name} -> {result.active_profile_name}")
        else:
            ctx.success(f"Switched to profile {name}")

        status = keyage.check_key_age(
            ctx.identity,
            result.profile,
            result.profile_credentials,
            thresholds=thresholds,
        )
        if status:
            report_status(ctx, status, f"Profile {name}")

        return result
