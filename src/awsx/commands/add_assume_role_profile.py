#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Add an assume-role profile under an existing profile.

## Overview

An assume-role profile lets the AWS CLI assume an IAM role using the
credentials of its parent profile. It is stored in the AWS config file with
`role_arn` and `source_profile`, so the AWS CLI performs the role assumption
itself:

    $ awsx add-assume-role-profile --profile prod-readonly --parent-profile prod \\
        --role-arn arn:aws:iam::111111111111:role/ReadOnly
    ? Default region [us-east-1]:
    ? Output format ...
    Added new assume role profile 'prod-readonly'

The region and output format default to those of the parent. Once added, the
profile is offered when switching to its parent, or can be named directly:

    $ awsx prod prod-readonly

The parent must exist and the name must not be used by any other profile.

## Reference

### Synopsis

    $ awsx add-assume-role-profile [--profile NAME] [--parent-profile NAME] [--role-arn ARN]
"""

from awsx.commands import Command, ask_output_format, ask_region, choose_profile
from awsx.errors import ProfileNameCollision
from awsx.models import AssumeRoleProfileRecord


class CLICommand(Command):
    """Add assume role profile."""

    @classmethod
    def from_cli(cls, parser, argv, cfg):
        parser.add_argument("--profile", help="name of the profile to create")
        parser.add_argument("--parent-profile", help="name of the parent profile")
        parser.add_argument("--role-arn", help="ARN of the role to assume")
        args = parser.parse_args(argv)
        return cls(**vars(args))

    def __init__(self, profile=None, parent_profile=None, role_arn=None):
        self.profile = profile
        self.parent_profile = parent_profile
        self.role_arn = role_arn

    def execute(self, ctx):
        registry, prompter = ctx.registry, ctx.prompter

        def name_is_free(name):
            if registry.exists(name):
                return f"Profile named '{name}' already exists."
            return True

        name = self.profile or prompter.text("Name", validate=name_is_free)
        parent = choose_profile(ctx, self.parent_profile, "Choose a parent profile")

        if registry.exists(name):
            raise ProfileNameCollision(name)

        role_arn = self.role_arn or prompter.text("Role ARN")
        record = AssumeRoleProfileRecord(
            name,
            parent.profile_name,
            role_arn,
            aws_default_region=ask_region(ctx, parent.aws_default_region),
            aws_output_format=ask_output_format(ctx, parent.aws_output_format),
        )

        registry.create_assume_role_profile(record)
        ctx.success(f"Added new assume role profile '{name}'")
        return record
