#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Show what AWS account and identity you're using.

Calls STS with the current profile and prints who AWS thinks you are:

    $ awsx whoami
    Account     -> 111111111111
    Aliases     -> my-company-prod
    Arn         -> arn:aws:sts::111111111111:assumed-role/ReadOnly/botocore-session-1
    AssumedRole -> ReadOnly
    Profile     -> prod-readonly
    Region      -> us-east-1
    UserId      -> AROAEXAMPLE:botocore-session-1

If the credentials of the profile have expired, or STS does not answer within
the configured timeout, the session is reported as expired or invalid. The
current profile is `AWS_PROFILE`, or `default` if it is not set.

## Reference

### Synopsis

    $ awsx whoami

### Configuration

    Session:
      sts_timeout: NUMBER
"""

import logging

from awsx.commands import Command
from awsx.errors import CredentialExchangeFailed, ProfileNotFound
from awsx.models import assumed_role_name
from awsx.store import DEFAULT_PROFILE

LOG = logging.getLogger(__name__)


class CLICommand(Command):
    """Show what AWS account and identity you're using."""

    def execute(self, ctx):
        current = ctx.current_profile() or DEFAULT_PROFILE

        record = ctx.registry.profile(current) or ctx.registry.assume_role_profile(
            current
        )
        if record is None:
            raise ProfileNotFound(current, "Error loading profile")

        identity = ctx.identity.verify_credentials(profile_name=current)
        if identity is None:
            ctx.error("Session is expired or invalid")
            return None

        try:
            aliases = ctx.identity.list_account_aliases(profile_name=current)
        except CredentialExchangeFailed as e:
            LOG.info("cannot list account aliases: %s", e)
            aliases = []

        whoami = {
            "Account": identity["Account"],
            "Aliases": ", ".join(aliases),
            "Arn": identity["Arn"],
            "AssumedRole": assumed_role_name(identity["Arn"]),
            "Profile": current,
            "Region": record.aws_default_region,
            "UserId": identity["UserId"],
        }

        width = max(len(k) for k in whoami)
        for key, value in whoami.items():
            ctx.success(f"{key:<{width}} -> {value if value is not None else ''}")
        return whoami
