#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Reports on the age of access keys.

## Overview

Long-lived IAM access keys should be rotated regularly. After every successful
switch, awsx looks up when the profile's access key was created and prints a
reminder if the key is getting old. The severity of the reminder is one of
`CRITICAL`, `WARNING`, or `INFO`.

If the profile has a maximum key age (`awsx set-key-max-age`), the status is
based on the number of days left before that age is reached:

| days left | severity | message |
|-----------|----------|---------|
| < 0       | CRITICAL | has expired |
| 0         | WARNING  | expires today |
| 1         | WARNING  | expires tomorrow |
| 2 to 6    | WARNING  | expires in N days |
| 7 to 29   | INFO     | expires in N days |
| >= 30     | none     | |

A maximum age of `0` turns the check off for the profile. If no maximum age
has been configured, the absolute age of the key is compared against
`DEFAULT_AGE_THRESHOLDS`, which can be overridden with the `KeyAge: thresholds`
setting of the user configuration.

The functions that compute a status are pure. `check_key_age` is the only one
that talks to AWS, and it never raises, so a failed lookup can never get in the
way of a switch.
"""

import logging
import math
import time
from datetime import datetime, timezone

LOG = logging.getLogger(__name__)

CRITICAL = "CRITICAL"
WARNING = "WARNING"
INFO = "INFO"

DEFAULT_AGE_THRESHOLDS = (10, 90, 180)
"""Key ages, in days, reported as info, warning, and critical."""

SECONDS_PER_DAY = 86400


class KeyAgeStatus:
    """The outcome of a key age check: a `severity` and a `message`."""

    def __init__(self, severity, message):
        self.severity = severity
        self.message = message

    def __eq__(self, other):
        return (
            isinstance(other, KeyAgeStatus)
            and self.severity == other.severity
            and self.message == other.message
        )

    def __hash__(self):
        return hash((self.severity, self.message))

    def __repr__(self):
        return f"KeyAgeStatus({self.severity!r}, {self.message!r})"

    def __str__(self):
        return self.message


def age_in_days(created_at, now):
    """Returns the number of whole days between two datetimes."""
    return math.floor((now - created_at).total_seconds() / SECONDS_PER_DAY)


def _days_left_text(days_left):
    if days_left < 0:
        return "has expired"
    if days_left == 0:
        return "expires today"
    if days_left == 1:
        return "expires tomorrow"
    return f"expires in {days_left} days"


def expiry_status(age_days, max_age, thresholds=DEFAULT_AGE_THRESHOLDS):
    """Returns the `KeyAgeStatus` of a key that is `age_days` old, or `None`.

    `max_age` is the maximum age in days configured for the key. `None` means
    no maximum was configured, in which case `thresholds` is used. `0` means
    the key is not monitored.
    """
    if max_age == 0:
        return None

    if max_age is not None:
        days_left = max_age - age_days
        message = f"Your access key {_days_left_text(days_left)}"

        if days_left < 0:
            return KeyAgeStatus(CRITICAL, message + ", rotate it now")
        if days_left < 7:
            return KeyAgeStatus(WARNING, message)
        if days_left < 30:
            return KeyAgeStatus(INFO, message)
        return None

    info, warning, critical = thresholds
    if age_days < info:
        return None

    message = (
        f"Your access key is {age_days} days old. Run 'awsx set-key-max-age' "
        "to configure a maximum age, or set it to 0 to silence this message"
    )
    if age_days < warning:
        return KeyAgeStatus(INFO, message)
    if age_days <= critical:
        return KeyAgeStatus(WARNING, message)
    return KeyAgeStatus(CRITICAL, message)


def check_key_age(
    identity, profile, credentials, now=None, thresholds=DEFAULT_AGE_THRESHOLDS
):
    """Looks up the creation date of the profile's access key and rates it.

    `identity` is an `awsx.session.aws.IdentityService` and `credentials` the
    `awsx.models.TemporaryCredentials` used to call IAM. Returns a
    `KeyAgeStatus` or `None`. Any error is logged and results in `None`.
    """
    if profile.aws_access_key_max_age == 0:
        return None

    try:
        now = now or datetime.now(timezone.utc)
        keys = identity.list_access_keys(credentials)
        created = next(
            (
                k["CreateDate"]
                for k in keys
                if k.get("AccessKeyId") == profile.aws_access_key_id
            ),
            None,
        )
        if created is None:
            LOG.debug("no access key metadata for %s", profile.profile_name)
            return None

        age = age_in_days(created, now)
        LOG.debug("access key of %s is %d days old", profile.profile_name, age)
        return expiry_status(age, profile.aws_access_key_max_age, thresholds)

    except Exception as e:  # pylint: disable=broad-except
        LOG.debug("cannot check key age of %s: %s", profile.profile_name, e)
        return None


def secret_key_expiry_status(expiry, now=None):
    """Returns the `KeyAgeStatus` of a secret key expiring at `expiry`.

    Both `expiry` and `now` are epoch seconds.
    """
    now = time.time() if now is None else now
    days_left = math.floor((expiry - now) / SECONDS_PER_DAY)
    message = _days_left_text(days_left)

    if days_left < 0:
        return KeyAgeStatus(CRITICAL, message)
    if days_left < 2:
        return KeyAgeStatus(WARNING, message)
    return KeyAgeStatus(INFO, message)


def check_secret_key_expiry(profiles, now=None):
    """Returns a list of `(profile, KeyAgeStatus)` for profiles with an expiry."""
    return [
        (p, secret_key_expiry_status(p.aws_secret_access_key_expiry, now))
        for p in profiles
        if p.aws_secret_access_key_expiry
    ]
