#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Decides which credentials to activate when switching profiles.

## Overview

`SessionEngine.switch` makes a profile the active profile of the shell. It
steps through the following states, each logged at DEBUG level:

`RESOLVE_PROFILE`
:  Use the profile named on the command line, or ask the user to choose one.

`CHECK_MFA`
:  Plain profiles use their access keys as-is. MFA profiles continue with
`REUSE_SESSION` or `CHALLENGE_MFA`.

`REUSE_SESSION`
:  The MFA session in the AWS credentials file is still valid and the user did
not pass `--force-mfa`, so it is used again without contacting AWS.

`CHALLENGE_MFA`
:  The user is asked for an MFA token, which is exchanged with STS for session
credentials. The session is persisted via
`awsx.registry.ProfileRegistry.record_mfa_login`. If STS fails or times out,
`awsx.errors.CredentialExchangeFailed` is raised and nothing is written.

`RESOLVE_ASSUME_ROLE`
:  If the profile has assume-role profiles, one of them, or the profile itself,
becomes the active profile. A child named on the command line must belong to
the profile. Otherwise the user is asked, defaulting to the child that is
currently active unless an MFA challenge just took place.

`EXPORT`
:  The active profile is written by the exporter. An assume-role profile is
exported by name only, because the AWS CLI resolves its `source_profile`
itself.

`DONE` / `ERROR`
:  The switch completed, or an exception ended it. Exceptions propagate to
the caller.

The engine does not know which profile is currently active. The caller passes
it in as `current_profile`, and the engine returns the new active profile in a
`SwitchResult`.
"""

import logging
import time

from awsx.errors import InvalidInput, ProfileNotFound
from awsx.models import TemporaryCredentials

LOG = logging.getLogger(__name__)

RESOLVE_PROFILE = "RESOLVE_PROFILE"
CHECK_MFA = "CHECK_MFA"
REUSE_SESSION = "REUSE_SESSION"
CHALLENGE_MFA = "CHALLENGE_MFA"
RESOLVE_ASSUME_ROLE = "RESOLVE_ASSUME_ROLE"
EXPORT = "EXPORT"
DONE = "DONE"
ERROR = "ERROR"

ROOT_PROFILE_TITLE = "root profile"


def validate_mfa_token(token):
    """Returns `True` if `token` looks like an MFA code, else a message."""
    if not token.isdigit():
        return "MFA token must contain only digits"
    return True


class SwitchResult:
    """The outcome of `SessionEngine.switch`.

    `profile` is the plain or MFA profile that was activated and
    `active_profile_name` the name exported as `AWS_PROFILE`, which is the name
    of an assume-role profile if one was chosen. `credentials` are the
    credentials that were exported, which are `None` for an assume-role
    profile. `profile_credentials` are the credentials of `profile` itself.
    `mfa_challenged` is `True` if the user entered an MFA token.
    """

    def __init__(
        self,
        profile,
        active_profile_name,
        credentials,
        mfa_challenged=False,
        profile_credentials=None,
    ):
        self.profile = profile
        self.active_profile_name = active_profile_name
        self.credentials = credentials
        self.mfa_challenged = mfa_challenged
        self.profile_credentials = profile_credentials or credentials

    @property
    def assumed_role(self):
        """`True` if the active profile is an assume-role profile."""
        return self.active_profile_name != self.profile.profile_name

    def __repr__(self):
        return (
            f"SwitchResult(profile={self.profile.profile_name!r}, "
            f"active_profile_name={self.active_profile_name!r}, "
            f"mfa_challenged={self.mfa_challenged!r})"
        )


class SessionEngine:
    """Activates profiles.

    `registry` is an `awsx.registry.ProfileRegistry`, `prompter` an
    `awsx.prompts.Prompter`, `identity` an `awsx.session.aws.IdentityService`,
    and `exporter` an `awsx.exporter.ShellExporter`. `clock` returns the
    current time in epoch seconds.
    """

    def __init__(self, registry, prompter, identity, exporter, clock=time.time):
        self.registry = registry
        self.prompter = prompter
        self.identity = identity
        self.exporter = exporter
        self.clock = clock

    def switch(
        self,
        profile_name=None,
        assume_role_name=None,
        force_mfa=False,
        current_profile=None,
    ):
        """Activates a profile and returns a `SwitchResult`.

        Raises `ProfileNotFound` if a named profile does not exist,
        `CredentialExchangeFailed` if an MFA challenge fails, and
        `PromptCancelled` if the user aborts a prompt.
        """
        try:
            return self._switch(profile_name, assume_role_name, force_mfa, current_profile)
        except Exception as e:
            self._enter(ERROR, type(e).__name__)
            raise

    def _switch(self, profile_name, assume_role_name, force_mfa, current_profile):
        self._enter(RESOLVE_PROFILE, profile_name)
        profile = self._resolve_profile(profile_name, current_profile)

        self._enter(CHECK_MFA, profile.profile_name)
        challenged = False

        if not profile.mfa_enabled:
            credentials = TemporaryCredentials(
                profile.profile_name,
                profile.aws_access_key_id,
                profile.aws_secret_access_key,
            )

        else:
            cached = self.registry.cached_credentials(profile.profile_name)
            reusable = cached is not None and cached.aws_session_token
            if not force_mfa and reusable and profile.mfa_session_valid:
                self._enter(REUSE_SESSION, profile.profile_name)
                credentials = cached
            else:
                self._enter(CHALLENGE_MFA, profile.profile_name)
                credentials = self._challenge(profile)
                challenged = True

        self._enter(RESOLVE_ASSUME_ROLE, assume_role_name)
        child = self._resolve_assume_role(
            profile, assume_role_name, challenged, current_profile
        )

        if child is None:
            self._enter(EXPORT, profile.profile_name)
            self.exporter.export(
                profile.profile_name,
                credentials,
                profile.aws_default_region,
                profile.aws_output_format,
            )
            result = SwitchResult(profile, profile.profile_name, credentials, challenged)

        else:
            self._enter(EXPORT, child.profile_name)
            self.exporter.export(
                child.profile_name,
                None,
                child.aws_default_region or profile.aws_default_region,
                child.aws_output_format or profile.aws_output_format,
            )
            result = SwitchResult(
                profile,
                child.profile_name,
                None,
                challenged,
                profile_credentials=credentials,
            )

        self._enter(DONE, result.active_profile_name)
        return result

    @staticmethod
    def _enter(state, detail=None):
        LOG.debug("switch: %s %s", state, detail if detail is not None else "")

    def _resolve_profile(self, profile_name, current_profile):
        names = self.registry.profile_names()
        if not names:
            raise ProfileNotFound(
                profile_name, "No profiles are configured, run 'awsx add-profile' first."
            )

        if profile_name is None:
            default = current_profile
            if current_profile not in names:
                parent = self.registry.assume_role_profile(current_profile)
                default = parent.parent_profile_name if parent else None
            profile_name = self.prompter.select("Choose a profile", names, default=default)

        profile = self.registry.profile(profile_name)
        if profile is None:
            raise ProfileNotFound(profile_name)
        return profile

    def _challenge(self, profile):
        if not profile.mfa_device_arn:
            raise InvalidInput(
                f"Profile '{profile.profile_name}' has no MFA device, "
                "run 'awsx enable-mfa' to configure one."
            )

        token = self.prompter.text("MFA token", validate=validate_mfa_token)
        credentials = self.identity.mint_session_token(
            profile,
            profile.session_length_in_seconds,
            profile.mfa_device_arn,
            token,
        )

        # A failure here must keep the new session from being exported, as
        # the credentials file would no longer match the exports.
        self.registry.record_mfa_login(profile, credentials, self.clock())
        return credentials

    def _resolve_assume_role(self, profile, assume_role_name, challenged, current_profile):
        children = self.registry.assume_role_profiles(parent=profile.profile_name)

        if assume_role_name:
            for child in children:
                if child.profile_name == assume_role_name:
                    return child
            raise ProfileNotFound(
                assume_role_name,
                f"No assume role profile '{assume_role_name}' found "
                f"for profile '{profile.profile_name}'.",
            )

        if not children:
            return None

        default = None
        if not challenged:
            default = next(
                (c for c in children if c.profile_name == current_profile), None
            )

        choices = [(ROOT_PROFILE_TITLE, None)]
        choices.extend((c.profile_name, c) for c in children)
        return self.prompter.select(
            "Choose an assume role profile", choices, default=default
        )
