#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Profile and credential records.

A profile is either a `PlainProfile`, which uses its long-lived access keys
directly, or an `MfaProfile`, whose long-lived keys are only used to request
temporary session credentials with an MFA token. Both are `ProfileRecord`
subclasses and can be told apart by their `mfa_enabled` attribute.

An `AssumeRoleProfileRecord` names a role that the AWS CLI assumes using the
credentials of a parent profile. `TemporaryCredentials` are the session
credentials returned by STS for an MFA profile.

Records compare equal when all of their persisted fields are equal. Derived
values, such as `MfaProfile.mfa_session_valid`, are not compared.
"""

MAX_SESSION_LENGTH = 129600
"""Longest MFA session, in seconds, that STS will grant (36 hours)."""

DEFAULT_SESSION_LENGTH = 3600
"""Session length, in seconds, offered when MFA is enabled on a profile."""

OUTPUT_FORMATS = ["json", "yaml", "yaml-stream", "text", "table"]
"""Output formats understood by the AWS CLI."""


class _Record:
    _fields = ()

    def _values(self):
        return tuple(getattr(self, f) for f in self._fields)

    def __eq__(self, other):
        return type(self) is type(other) and self._values() == other._values()

    def __hash__(self):
        return hash((type(self), self._values()))

    def __repr__(self):
        args = ", ".join(f"{f}={getattr(self, f)!r}" for f in self._fields)
        return f"{type(self).__name__}({args})"


class ProfileRecord(_Record):
    """Base class of the two kinds of profiles."""

    mfa_enabled = False

    _fields = (
        "profile_name",
        "aws_access_key_id",
        "aws_secret_access_key",
        "aws_default_region",
        "aws_output_format",
        "aws_access_key_max_age",
        "aws_secret_access_key_expiry",
    )

    def __init__(
        self,
        profile_name,
        aws_access_key_id,
        aws_secret_access_key,
        aws_default_region=None,
        aws_output_format=None,
        aws_access_key_max_age=None,
        aws_secret_access_key_expiry=None,
    ):
        self.profile_name = profile_name
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key
        self.aws_default_region = aws_default_region
        self.aws_output_format = aws_output_format
        # Days. None means no policy was configured, 0 disables monitoring.
        self.aws_access_key_max_age = aws_access_key_max_age
        # Epoch seconds at which the secret key is due for rotation.
        self.aws_secret_access_key_expiry = aws_secret_access_key_expiry


class PlainProfile(ProfileRecord):
    """A profile that uses its long-lived access keys directly."""


class MfaProfile(ProfileRecord):
    """A profile that requires an MFA token to obtain session credentials."""

    mfa_enabled = True

    _fields = ProfileRecord._fields + (
        "mfa_device_arn",
        "session_length_in_seconds",
        "last_login_time_in_seconds",
    )

    def __init__(
        self,
        profile_name,
        aws_access_key_id,
        aws_secret_access_key,
        mfa_device_arn,
        session_length_in_seconds=DEFAULT_SESSION_LENGTH,
        last_login_time_in_seconds=None,
        mfa_session_valid=False,
        **kwargs,
    ):
        super().__init__(profile_name, aws_access_key_id, aws_secret_access_key, **kwargs)
        self.mfa_device_arn = mfa_device_arn
        self.session_length_in_seconds = session_length_in_seconds
        # None means the profile has never been used to log in.
        self.last_login_time_in_seconds = last_login_time_in_seconds
        self.mfa_session_valid = mfa_session_valid


class AssumeRoleProfileRecord(_Record):
    """A profile that assumes `aws_role_arn` with a parent profile's identity."""

    _fields = (
        "profile_name",
        "parent_profile_name",
        "aws_role_arn",
        "aws_default_region",
        "aws_output_format",
    )

    def __init__(
        self,
        profile_name,
        parent_profile_name,
        aws_role_arn,
        aws_default_region=None,
        aws_output_format=None,
    ):
        self.profile_name = profile_name
        self.parent_profile_name = parent_profile_name
        self.aws_role_arn = aws_role_arn
        self.aws_default_region = aws_default_region
        self.aws_output_format = aws_output_format


class TemporaryCredentials(_Record):
    """Credentials to be written to the AWS credentials file for a profile.

    `aws_session_token` is `None` for the static keys of a plain profile.
    """

    _fields = (
        "profile_name",
        "aws_access_key_id",
        "aws_secret_access_key",
        "aws_session_token",
    )

    def __init__(
        self,
        profile_name,
        aws_access_key_id,
        aws_secret_access_key,
        aws_session_token=None,
    ):
        self.profile_name = profile_name
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key
        self.aws_session_token = aws_session_token


def credentials_section(creds):
    """Returns the AWS credentials file section for `creds`."""
    section = {
        "aws_access_key_id": creds.aws_access_key_id,
        "aws_secret_access_key": creds.aws_secret_access_key,
    }
    if creds.aws_session_token:
        section["aws_session_token"] = creds.aws_session_token
    return section


def credentials_from_section(profile_name, section):
    """Returns `TemporaryCredentials` read from a credentials file section.

    Returns `None` if the section does not contain an access key pair.
    """
    access_key = section.get("aws_access_key_id")
    secret_key = section.get("aws_secret_access_key")
    if not access_key or not secret_key:
        return None
    return TemporaryCredentials(
        profile_name, access_key, secret_key, section.get("aws_session_token") or None
    )


def assume_role_section(record):
    """Returns the AWS config file section for an assume-role profile."""
    return {
        "role_arn": record.aws_role_arn,
        "source_profile": record.parent_profile_name,
        "region": record.aws_default_region,
        "output": record.aws_output_format,
    }


def validate_mfa_expiry(seconds):
    """Returns `True` if `seconds` is a valid MFA session length.

    Otherwise returns a message describing the problem, which makes this
    function suitable as a prompt validator.
    """
    if seconds <= 0:
        return "mfaExpiry must be greater than 0"
    if seconds > MAX_SESSION_LENGTH:
        return f"mfaExpiry must be less than or equal to {MAX_SESSION_LENGTH}"
    return True


def assumed_role_name(arn):
    """Returns the role name from an assumed-role ARN, or `None`.

        >>> assumed_role_name('arn:aws:sts::111111111111:assumed-role/foo-bar/session')
        'foo-bar'
    """
    if not arn or ":assumed-role/" not in arn:
        return None
    return arn.split("/")[1]
