#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Remove an assume-role profile.

Removes an assume-role profile from the AWS config file after asking for
confirmation. Its parent profile is not affected.

    $ awsx remove-assume-role-profile prod-readonly
    ? Are you sure you want to remove assumed role profile 'prod-readonly'? (y/N): y
    Removed assumed role profile 'prod-readonly'
"""

from awsx.commands import Command
from awsx.errors import ProfileNotFound


class CLICommand(Command):
    """Remove assume role profile."""

    @classmethod
    def from_cli(cls, parser, argv, cfg):
        parser.add_argument("profile", nargs="?", help="name of the profile to delete")
        parser.add_argument(
            "--yes", "-y", action="store_true", help="do not ask for confirmation"
        )
        args = parser.parse_args(argv)
        return cls(**vars(args))

    def __init__(self, profile=None, yes=False):
        self.profile = profile
        self.yes = yes

    def execute(self, ctx):
        name = self.profile
        if name is None:
            names = [p.profile_name for p in ctx.registry.assume_role_profiles()]
            if not names:
                raise ProfileNotFound(None, "No assume role profiles are configured.")
            name = ctx.prompter.select(
                "Choose a profile", names, default=ctx.current_profile()
            )

        if ctx.registry.assume_role_profile(name) is None:
            raise ProfileNotFound(name, f"No assumed role profile '{name}' found.")

        if not self.yes and not ctx.prompter.confirm(
            f"Are you sure you want to remove assumed role profile '{name}'?"
        ):
            ctx.warning(f"Assumed role profile '{name}' has not been removed.")
            return False

        ctx.registry.delete_assume_role_profile(name)
        ctx.success(f"Removed assumed role profile '{name}'")
        return True
