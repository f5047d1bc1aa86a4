#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""List the configured profiles.

Prints each profile with its assume-role profiles below it. The current
profile is marked with `*`, and MFA profiles show whether their session is
still valid:

    $ awsx list-profiles
      dev
    * prod [MFA, session valid]
        -> prod-readonly
"""

from awsx.commands import Command


class CLICommand(Command):
    """List profiles and their assume role profiles."""

    def execute(self, ctx):
        current = ctx.current_profile()
        profiles = ctx.registry.profiles()
        children = ctx.registry.assume_role_profiles()

        if not profiles:
            ctx.warning("No profiles are configured, run 'awsx add-profile' first.")
            return []

        for profile in sorted(profiles, key=lambda p: p.profile_name):
            name = profile.profile_name
            marker = "*" if name == current else " "
            line = f"{marker} {name}"
            if profile.mfa_enabled:
                state = "valid" if profile.mfa_session_valid else "expired"
                line += f" [MFA, session {state}]"
            ctx.print(line)

            for child in children:
                if child.parent_profile_name != name:
                    continue
                marker = "*" if child.profile_name == current else " "
                ctx.print(f"{marker}   -> {child.profile_name}")

        return profiles
