#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Exceptions raised by awsx.

All exceptions derive from `AwsxError`, so the CLI can report them uniformly.
The message of each exception is intended to be shown to the user as-is.

`ConfigurationMissing`
:  The AWS config or credentials file does not exist. Fatal.

`ProfileNotFound`
:  A profile or assume-role profile referenced by name does not exist.

`ProfileNameCollision`
:  A profile or assume-role profile with the same name already exists.

`CredentialExchangeFailed`
:  An STS or IAM call failed or timed out. Nothing has been persisted.

`InvalidInput`
:  A value supplied by the user failed validation.

`MalformedStore`
:  A store file could not be parsed. The store layer logs this condition and
treats the file as empty rather than raising it to callers.

`PromptCancelled`
:  The user cancelled an interactive prompt (Ctrl-C or EOF).
"""


class AwsxError(Exception):
    """Base class for all awsx errors."""


class ConfigurationMissing(AwsxError):
    """Raised if a required AWS configuration file is absent."""

    def __init__(self, missing_paths):
        self.missing_paths = list(missing_paths)
        lines = [f"You are missing a required file at: {p}" for p in self.missing_paths]
        lines.append(
            "Run aws configure to fix this error: "
            "https://docs.aws.amazon.com/cli/latest/userguide/cli-configure-quickstart.html"
        )
        super().__init__("\n".join(lines))


class ProfileNotFound(AwsxError):
    """Raised if a profile cannot be found."""

    def __init__(self, profile_name, message=None):
        self.profile_name = profile_name
        super().__init__(
            message
            or f"No profile '{profile_name}' found, make sure you run 'awsx add-profile' first."
        )


class ProfileNameCollision(AwsxError):
    """Raised when creating a profile whose name is already in use."""

    def __init__(self, profile_name):
        self.profile_name = profile_name
        super().__init__(f"Profile named '{profile_name}' already exists.")


class CredentialExchangeFailed(AwsxError):
    """Raised if AWS refuses, or does not answer, a credential request."""


class InvalidInput(AwsxError):
    """Raised if user supplied input is not valid."""


class MalformedStore(AwsxError):
    """Represents a store file that could not be parsed."""


class PromptCancelled(AwsxError):
    """Raised if the user aborts an interactive prompt."""

    def __init__(self, message="Cancelled, nothing was changed."):
        super().__init__(message)
