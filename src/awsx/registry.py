#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Provides a unified view of the profiles stored across the three stores.

## Overview

The `ProfileRegistry` joins the AWS credentials file, the AWS config file, and
the awsx profiles file on profile name to build `awsx.models.ProfileRecord`
objects. Every section of the AWS credentials file is a profile. If the awsx
profiles file has a section of the same name with `mfaEnabled = true`, the
profile is an `awsx.models.MfaProfile` whose long-lived keys are read from the
awsx profiles file, because the credentials file then holds the keys of the
current MFA session. All other profiles are `awsx.models.PlainProfile` objects
read from the credentials file. Region and output format always come from the
AWS config file and are `None` if the profile has no section there.

Assume-role profiles are the sections of the AWS config file with a `role_arn`.
Their `source_profile` names the parent profile.

The registry holds no state of its own. Every query reads the stores again, so
derived values such as `MfaProfile.mfa_session_valid` are never stale. Every
mutation reads the current stores, modifies them in memory, and writes whole
files back via `awsx.store.FileStore.write_many`.

## MFA Sessions

An MFA session is valid if it was started `sessionLengthInSeconds` ago or less,
minus a safety margin of `SESSION_SAFETY_MARGIN` seconds:

    lastLoginTimeInSeconds + (sessionLengthInSeconds - 30) > now

The margin keeps awsx from handing out credentials that expire while the
request using them is in flight.
"""

import logging
import time

from awsx.errors import ProfileNameCollision, ProfileNotFound
from awsx.models import (
    AssumeRoleProfileRecord,
    MfaProfile,
    PlainProfile,
    assume_role_section,
    credentials_from_section,
    credentials_section,
)
from awsx.store import (
    AWS_CONFIG,
    AWS_CREDENTIALS,
    PROFILES,
    config_section,
    config_sections,
    profile_name_from_section,
)

LOG = logging.getLogger(__name__)

SESSION_SAFETY_MARGIN = 30

# Keys used in the awsx profiles file.
PROFILE_NAME = "profileName"
ACCESS_KEY_ID = "awsAccessKeyId"
SECRET_ACCESS_KEY = "awsSecretAccessKey"
MFA_ENABLED = "mfaEnabled"
MFA_DEVICE_ARN = "mfaDeviceArn"
LAST_LOGIN = "lastLoginTimeInSeconds"
SESSION_LENGTH = "sessionLengthInSeconds"
KEY_MAX_AGE = "awsAccessKeyMaxAge"
SECRET_KEY_EXPIRY = "awsSecretAccessKeyExpiry"


def mfa_session_valid(last_login, session_length, now):
    """Returns `True` if an MFA session started at `last_login` is usable.

    All values are in epoch seconds. Never raises: a missing or malformed value
    means the session is not valid.
    """
    try:
        return int(last_login) + (int(session_length) - SESSION_SAFETY_MARGIN) > now
    except (TypeError, ValueError):
        return False


def _as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_bool(value):
    return str(value).strip().lower() in ("true", "yes", "1")


def _region_and_output(profile_name, config):
    for section in config_sections(profile_name):
        if section in config:
            values = config[section]
            return values.get("region") or None, values.get("output") or None
    return None, None


def read_profile(profile_name, credentials, config, profiles, now):
    """Returns the `ProfileRecord` for `profile_name` from the three stores.

    `credentials`, `config`, and `profiles` are the contents of the respective
    stores as returned by `awsx.store.FileStore.read`.
    """
    creds = credentials.get(profile_name, {})
    meta = profiles.get(profile_name, {})
    region, output = _region_and_output(profile_name, config)

    common = {
        "aws_default_region": region,
        "aws_output_format": output,
        "aws_access_key_max_age": _as_int(meta.get(KEY_MAX_AGE)),
        "aws_secret_access_key_expiry": _as_int(meta.get(SECRET_KEY_EXPIRY)),
    }

    if _as_bool(meta.get(MFA_ENABLED)):
        last_login = _as_int(meta.get(LAST_LOGIN))
        session_length = _as_int(meta.get(SESSION_LENGTH))
        return MfaProfile(
            profile_name,
            meta.get(ACCESS_KEY_ID),
            meta.get(SECRET_ACCESS_KEY),
            mfa_device_arn=meta.get(MFA_DEVICE_ARN),
            session_length_in_seconds=session_length,
            last_login_time_in_seconds=last_login,
            mfa_session_valid=mfa_session_valid(last_login, session_length, now),
            **common,
        )

    return PlainProfile(
        profile_name,
        creds.get("aws_access_key_id"),
        creds.get("aws_secret_access_key"),
        **common,
    )


def read_assume_role_profile(section, values):
    """Returns an `AssumeRoleProfileRecord` from an AWS config file section."""
    return AssumeRoleProfileRecord(
        profile_name_from_section(section),
        values.get("source_profile"),
        values.get("role_arn"),
        aws_default_region=values.get("region") or None,
        aws_output_format=values.get("output") or None,
    )


def profile_metadata_section(record):
    """Returns the awsx profiles file section for `record`, or `None`.

    Plain profiles only have a section if they carry awsx metadata.
    """
    section = {
        PROFILE_NAME: record.profile_name,
        KEY_MAX_AGE: record.aws_access_key_max_age,
        SECRET_KEY_EXPIRY: record.aws_secret_access_key_expiry,
    }

    if record.mfa_enabled:
        section.update(
            {
                ACCESS_KEY_ID: record.aws_access_key_id,
                SECRET_ACCESS_KEY: record.aws_secret_access_key,
                MFA_ENABLED: True,
                MFA_DEVICE_ARN: record.mfa_device_arn,
                SESSION_LENGTH: record.session_length_in_seconds,
                LAST_LOGIN: record.last_login_time_in_seconds,
            }
        )
        return section

    if record.aws_access_key_max_age is None and record.aws_secret_access_key_expiry is None:
        return None

    section[MFA_ENABLED] = False
    return section


class ProfileRegistry:
    """Reads and modifies profiles through a `awsx.store.FileStore`.

    `clock` is a function of no arguments returning the current time in epoch
    seconds. It is used to decide whether MFA sessions are still valid.
    """

    def __init__(self, store, clock=time.time):
        self.store = store
        self.clock = clock

    def _load(self, *kinds):
        kinds = kinds or (AWS_CREDENTIALS, AWS_CONFIG, PROFILES)
        return {kind: self.store.read(kind) for kind in kinds}

    def profiles(self):
        """Returns a list of all plain and MFA profiles."""
        stores = self._load()
        now = self.clock()
        return [
            read_profile(
                name,
                stores[AWS_CREDENTIALS],
                stores[AWS_CONFIG],
                stores[PROFILES],
                now,
            )
            for name in stores[AWS_CREDENTIALS]
        ]

    def profile_names(self):
        """Returns the names of all plain and MFA profiles."""
        return list(self.store.read(AWS_CREDENTIALS))

    def profile(self, profile_name):
        """Returns the profile called `profile_name` or `None`."""
        stores = self._load()
        if profile_name not in stores[AWS_CREDENTIALS]:
            return None
        return read_profile(
            profile_name,
            stores[AWS_CREDENTIALS],
            stores[AWS_CONFIG],
            stores[PROFILES],
            self.clock(),
        )

    def assume_role_profiles(self, parent=None):
        """Returns the assume-role profiles, optionally only those of `parent`."""
        config = self.store.read(AWS_CONFIG)
        records = [
            read_assume_role_profile(section, values)
            for section, values in config.items()
            if values.get("role_arn")
        ]
        if parent:
            records = [r for r in records if r.parent_profile_name == parent]
        return records

    def assume_role_profile(self, profile_name):
        """Returns the assume-role profile called `profile_name` or `None`."""
        for record in self.assume_role_profiles():
            if record.profile_name == profile_name:
                return record
        return None

    def exists(self, profile_name):
        """Returns `True` if any kind of profile is called `profile_name`."""
        return (
            profile_name in self.profile_names()
            or self.assume_role_profile(profile_name) is not None
        )

    def cached_credentials(self, profile_name):
        """Returns the credentials in the AWS credentials file for a profile."""
        section = self.store.read(AWS_CREDENTIALS).get(profile_name)
        if section is None:
            return None
        return credentials_from_section(profile_name, section)

    def create_profile(self, record):
        """Adds a new plain or MFA profile.

        Raises `ProfileNameCollision` if any profile already uses the name.
        """
        if self.exists(record.profile_name):
            raise ProfileNameCollision(record.profile_name)

        stores = self._load()
        self._apply_profile(stores, record)
        self.store.write_many(stores)
        LOG.info("created profile %s", record.profile_name)

    def replace_profile(self, record):
        """Replaces an existing plain or MFA profile with `record`.

        An MFA profile keeps the session in the AWS credentials file if
        `record` still has a login time, so updating its settings does not end
        the current session.
        """
        stores = self._load()
        if record.profile_name not in stores[AWS_CREDENTIALS]:
            raise ProfileNotFound(record.profile_name)

        self._apply_profile(stores, record)
        self.store.write_many(stores)
        LOG.info("replaced profile %s", record.profile_name)

    def delete_profile(self, profile_name):
        """Removes a plain or MFA profile from all three stores."""
        stores = self._load()
        if profile_name not in stores[AWS_CREDENTIALS]:
            raise ProfileNotFound(profile_name, f"No profile '{profile_name}' found.")

        del stores[AWS_CREDENTIALS][profile_name]
        stores[PROFILES].pop(profile_name, None)
        for section in config_sections(profile_name):
            stores[AWS_CONFIG].pop(section, None)

        self.store.write_many(stores)
        LOG.info("deleted profile %s", profile_name)

    def create_assume_role_profile(self, record):
        """Adds an assume-role profile under an existing parent profile.

        Raises `ProfileNotFound` if the parent does not exist, and
        `ProfileNameCollision` if the name is taken. No file is modified if the
        profile is rejected.
        """
        parent = record.parent_profile_name
        if parent not in self.profile_names():
            raise ProfileNotFound(parent, f"No parent profile '{parent}' found.")
        if self.exists(record.profile_name):
            raise ProfileNameCollision(record.profile_name)

        config = self.store.read(AWS_CONFIG)
        config[config_section(record.profile_name)] = assume_role_section(record)
        self.store.write(AWS_CONFIG, config)
        LOG.info("created assume role profile %s", record.profile_name)

    def delete_assume_role_profile(self, profile_name):
        """Removes an assume-role profile from the AWS config file."""
        config = self.store.read(AWS_CONFIG)
        sections = [
            s
            for s in config_sections(profile_name)
            if s in config and config[s].get("role_arn")
        ]
        if not sections:
            raise ProfileNotFound(
                profile_name, f"No assumed role profile '{profile_name}' found."
            )

        for section in sections:
            del config[section]
        self.store.write(AWS_CONFIG, config)
        LOG.info("deleted assume role profile %s", profile_name)

    def record_mfa_login(self, profile, credentials, now=None):
        """Persists a new MFA session for `profile`.

        Writes the login time to the awsx profiles file and `credentials` to
        the AWS credentials file as a single `write_many`, so either both are
        persisted or neither is. Returns the login time written.
        """
        now = int(self.clock() if now is None else now)
        stores = self._load(PROFILES, AWS_CREDENTIALS)

        meta = stores[PROFILES].get(profile.profile_name)
        if meta is None:
            raise ProfileNotFound(profile.profile_name)

        meta[LAST_LOGIN] = now
        stores[AWS_CREDENTIALS][profile.profile_name] = credentials_section(credentials)
        self.store.write_many(stores)
        LOG.info("recorded MFA login for %s at %d", profile.profile_name, now)
        return now

    @staticmethod
    def _apply_profile(stores, record):
        """Writes `record` into the in-memory `stores`, replacing any entry."""
        name = record.profile_name
        credentials = stores[AWS_CREDENTIALS]
        config = stores[AWS_CONFIG]
        profiles = stores[PROFILES]

        for section in config_sections(name):
            config.pop(section, None)
        config[config_section(name)] = {
            "region": record.aws_default_region,
            "output": record.aws_output_format,
        }

        existing = credentials.get(name, {})
        keep_session = (
            record.mfa_enabled
            and record.last_login_time_in_seconds is not None
            and existing.get("aws_session_token")
        )
        if not keep_session:
            credentials[name] = {
                "aws_access_key_id": record.aws_access_key_id,
                "aws_secret_access_key": record.aws_secret_access_key,
            }

        meta = profile_metadata_section(record)
        if meta is None:
            profiles.pop(name, None)
        else:
            profiles[name] = meta
