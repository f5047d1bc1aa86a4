#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Talks to AWS STS and IAM with boto3.

## Overview

`IdentityService` wraps the handful of AWS calls awsx makes:

`IdentityService.mint_session_token`
:  Exchanges the long-lived keys of an MFA profile and an MFA token for
session credentials via `sts:GetSessionToken`.

`IdentityService.get_caller_identity`
:  Returns the account, ARN, and user ID of a set of credentials or a profile.

`IdentityService.verify_credentials`
:  Like `get_caller_identity`, but returns `None` instead of raising, which is
how `awsx whoami` detects an expired session.

`IdentityService.list_access_keys` and `IdentityService.list_account_aliases`
:  IAM lookups used by the key-age check and `awsx whoami`.

Every call is bounded by a timeout. Identity lookups use a short one (1.5
seconds by default) because they run on every switch and whoami. Any error or
timeout is raised as `awsx.errors.CredentialExchangeFailed`.

Credentials are given either as `awsx.models.TemporaryCredentials` or as the
name of a profile in the AWS files, which lets boto3 resolve assume-role
profiles through their `source_profile`.
"""

import concurrent.futures
import logging

import boto3
import botocore.config
import botocore.exceptions

from awsx.errors import CredentialExchangeFailed
from awsx.models import TemporaryCredentials

LOG = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 1.5
"""Seconds allowed for identity lookups."""

DEFAULT_MINT_TIMEOUT = 10
"""Seconds allowed for exchanging an MFA token for session credentials."""


class IdentityService:
    """Makes STS and IAM calls on behalf of awsx.

    `timeout` bounds identity lookups and `mint_timeout` bounds MFA token
    exchanges, both in seconds. `session_factory` is called with the keyword
    arguments of `boto3.Session` and defaults to it.
    """

    def __init__(
        self,
        timeout=DEFAULT_TIMEOUT,
        mint_timeout=DEFAULT_MINT_TIMEOUT,
        session_factory=boto3.Session,
    ):
        self.timeout = timeout
        self.mint_timeout = mint_timeout
        self._session_factory = session_factory

    def _client(self, service, credentials=None, profile_name=None, timeout=None):
        if credentials is not None:
            session = self._session_factory(
                aws_access_key_id=credentials.aws_access_key_id,
                aws_secret_access_key=credentials.aws_secret_access_key,
                aws_session_token=credentials.aws_session_token,
            )
        else:
            session = self._session_factory(profile_name=profile_name)

        timeout = timeout or self.timeout
        config = botocore.config.Config(
            connect_timeout=timeout,
            read_timeout=timeout,
            retries={"max_attempts": 1},
        )
        return session.client(service, config=config)

    @staticmethod
    def _call(description, func, timeout):
        """Runs `func` and returns its result within `timeout` seconds.

        The botocore timeouts apply per connection attempt, so the whole call
        is also bounded here, which covers slow credential resolution.
        """
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        future = executor.submit(func)
        try:
            return future.result(timeout=timeout)

        except concurrent.futures.TimeoutError as e:
            LOG.info("%s timed out after %ss", description, timeout)
            raise CredentialExchangeFailed(f"{description} timed out") from e

        except (
            botocore.exceptions.ClientError,
            botocore.exceptions.BotoCoreError,
        ) as e:
            LOG.info("%s failed: %s", description, e)
            raise CredentialExchangeFailed(f"{description} failed: {e}") from e

        finally:
            # Do not wait on a call that has timed out.
            executor.shutdown(wait=False)

    def mint_session_token(self, profile, duration, serial_number, token_code):
        """Returns `TemporaryCredentials` for an MFA profile.

        `profile` is an `awsx.models.MfaProfile` whose long-lived keys are used
        to call STS, `duration` the session length in seconds, `serial_number`
        the ARN of the MFA device, and `token_code` the code it displays.
        """
        long_lived = TemporaryCredentials(
            profile.profile_name,
            profile.aws_access_key_id,
            profile.aws_secret_access_key,
        )

        def get_session_token():
            sts = self._client("sts", long_lived, timeout=self.mint_timeout)
            return sts.get_session_token(
                DurationSeconds=duration,
                SerialNumber=serial_number,
                TokenCode=token_code,
            )

        LOG.info("requesting %ss session for %s", duration, profile.profile_name)
        response = self._call(
            "Requesting MFA session credentials", get_session_token, self.mint_timeout
        )

        creds = response["Credentials"]
        return TemporaryCredentials(
            profile.profile_name,
            creds["AccessKeyId"],
            creds["SecretAccessKey"],
            creds["SessionToken"],
        )

    def get_caller_identity(self, credentials=None, profile_name=None):
        """Returns the `sts:GetCallerIdentity` response as a dict."""

        def call():
            sts = self._client("sts", credentials, profile_name)
            return sts.get_caller_identity()

        response = self._call("Looking up caller identity", call, self.timeout)
        return {k: response.get(k) for k in ("Account", "Arn", "UserId")}

    def verify_credentials(self, credentials=None, profile_name=None):
        """Returns the caller identity, or `None` if the credentials do not work."""
        try:
            return self.get_caller_identity(credentials, profile_name)
        except CredentialExchangeFailed as e:
            LOG.info("credentials could not be verified: %s", e)
            return None

    def list_access_keys(self, credentials=None, profile_name=None):
        """Returns the access key metadata of the calling IAM user."""

        def call():
            iam = self._client("iam", credentials, profile_name)
            return iam.list_access_keys()

        response = self._call("Listing access keys", call, self.timeout)
        return response.get("AccessKeyMetadata", [])

    def list_account_aliases(self, credentials=None, profile_name=None):
        """Returns the aliases of the account."""

        def call():
            iam = self._client("iam", credentials, profile_name)
            return iam.list_account_aliases()

        response = self._call("Listing account aliases", call, self.timeout)
        return response.get("AccountAliases", [])
