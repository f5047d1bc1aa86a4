#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Remove a profile.

Removes a profile from the AWS credentials and config files and from the awsx
profiles file after asking for confirmation. Assume-role profiles that use the
profile as their parent are left in place and reported, as the AWS CLI can no
longer use them until they are removed or the parent is added again.

    $ awsx remove-profile dev
    ? Are you sure you want to remove profile 'dev'? (y/N): y
    Removed profile 'dev'
"""

from awsx.commands import Command, choose_profile


class CLICommand(Command):
    """Remove profile."""

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
        profile = choose_profile(ctx, self.profile)
        name = profile.profile_name

        if not self.yes and not ctx.prompter.confirm(
            f"Are you sure you want to remove profile '{name}'?"
        ):
            ctx.warning(f"Profile '{name}' has not been removed.")
            return False

        ctx.registry.delete_profile(name)
        ctx.success(f"Removed profile '{name}'")

        for orphan in ctx.registry.assume_role_profiles(parent=name):
            ctx.warning(
                f"Assume role profile '{orphan.profile_name}' still refers to '{name}'"
            )
        return True
