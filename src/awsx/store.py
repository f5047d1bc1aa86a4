#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Reads and writes the INI files that hold awsx profiles.

## Overview

awsx keeps its state in three INI-formatted files:

`AWS_CONFIG` (`~/.aws/config`)
:  Region and output format of each profile, and the `role_arn` /
`source_profile` pair of assume-role profiles. Owned by the AWS CLI.

`AWS_CREDENTIALS` (`~/.aws/credentials`)
:  Access keys of each profile and, for MFA profiles, the session token of
the current MFA session. Owned by the AWS CLI.

`PROFILES` (`~/.awsx/profiles`)
:  awsx metadata: MFA device, session length, last login time, and the access
key policy of each profile. The long-lived keys of MFA profiles live here
because the credentials file holds the rotating session keys instead.

The locations of the AWS files honor the `AWS_CONFIG_FILE` and
`AWS_SHARED_CREDENTIALS_FILE` environment variables used by the AWS CLI. The
awsx home directory can be moved with `AWSX_HOME`.

`FileStore.read` returns a store as a dict of section name to a dict of key
and value strings. Reads fail soft: a missing or unparsable file is returned as
an empty dict, so a damaged file never blocks unrelated operations. The store
remembers which files it could not read, and refuses to write over them until
they are fixed, so a mutation never replaces a damaged file with a nearly empty
one.
`FileStore.write` and `FileStore.write_many` replace whole files. There is no
merging on write and no locking between concurrent awsx invocations, so the
last writer wins. Callers read, modify, and write within a single operation.

## Config Section Names

The AWS CLI names the sections of its config file `[default]` and
`[profile NAME]`, but names the sections of its credentials file `[NAME]`.
`config_section` and `profile_name_from_section` convert between profile names
and config file section names. Older awsx releases wrote bare `[NAME]`
sections to the config file, which `profile_name_from_section` still accepts.
"""

import configparser
import contextlib
import io
import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path

from awsx.errors import ConfigurationMissing, MalformedStore

LOG = logging.getLogger(__name__)

AWS_CONFIG = "aws_config"
AWS_CREDENTIALS = "aws_credentials"
PROFILES = "profiles"

KINDS = (AWS_CONFIG, AWS_CREDENTIALS, PROFILES)

DEFAULT_PROFILE = "default"
PROFILE_PREFIX = "profile "

BACKUP_SUFFIX_FORMAT = "%Y%m%d%H%M%S"

# Keep configparser from treating any section as a source of defaults for the
# others. The AWS files have a real section called "default".
_NO_DEFAULTS = "__awsx_no_defaults__"


def config_section(profile_name):
    """Returns the AWS config file section name for `profile_name`."""
    if profile_name == DEFAULT_PROFILE:
        return DEFAULT_PROFILE
    return PROFILE_PREFIX + profile_name


def profile_name_from_section(section):
    """Returns the profile name of an AWS config file section name."""
    if section.startswith(PROFILE_PREFIX):
        return section[len(PROFILE_PREFIX) :]
    return section


def config_sections(profile_name):
    """Returns every config file section name that may hold `profile_name`."""
    preferred = config_section(profile_name)
    return [preferred] if preferred == profile_name else [preferred, profile_name]


def _new_parser():
    parser = configparser.ConfigParser(
        interpolation=None, default_section=_NO_DEFAULTS
    )
    # Preserve case as the awsx profiles file uses camelCase keys.
    parser.optionxform = str
    return parser


def _to_str(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_store(mapping):
    """Returns the INI text for `mapping`.

    `mapping` is a dict of section name to a dict of keys and values. Keys with
    a value of `None` are omitted, booleans are written as `true` / `false`,
    and all other values are converted with `str`.
    """
    parser = _new_parser()
    for section, values in mapping.items():
        parser[section] = {k: _to_str(v) for k, v in values.items() if v is not None}

    out = io.StringIO()
    parser.write(out)
    return out.getvalue()


def parse_store(text, source="<string>"):
    """Returns the dict of sections parsed from INI `text`.

    Raises `MalformedStore` if the text cannot be parsed.
    """
    parser = _new_parser()
    try:
        parser.read_string(text, source=source)
    except configparser.Error as e:
        raise MalformedStore(f"Cannot parse {source}: {e}") from e
    return {s: dict(parser.items(s)) for s in parser.sections()}


class FileStore:
    """Access to the AWS config, AWS credentials, and awsx profiles files."""

    def __init__(self, aws_config_path, aws_credentials_path, awsx_home):
        self.awsx_home = Path(awsx_home)
        self._paths = {
            AWS_CONFIG: Path(aws_config_path),
            AWS_CREDENTIALS: Path(aws_credentials_path),
            PROFILES: self.awsx_home / "profiles",
        }
        self._unreadable = set()

    @classmethod
    def default(cls):
        """Returns a `FileStore` using the standard or overridden locations."""
        home = Path.home()
        aws_home = home / ".aws"
        return cls(
            Path(os.environ.get("AWS_CONFIG_FILE", aws_home / "config")).expanduser(),
            Path(
                os.environ.get("AWS_SHARED_CREDENTIALS_FILE", aws_home / "credentials")
            ).expanduser(),
            Path(os.environ.get("AWSX_HOME", home / ".awsx")).expanduser(),
        )

    def path(self, kind):
        """Returns the path of the store identified by `kind`."""
        return self._paths[kind]

    def read(self, kind):
        """Returns the sections of the store identified by `kind`.

        A missing or malformed file yields an empty dict.
        """
        path = self.path(kind)
        self._unreadable.discard(kind)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            LOG.debug("%s does not exist, treating as empty", path)
            return {}
        except (OSError, UnicodeDecodeError) as e:
            LOG.warning("cannot read %s, treating as empty: %s", path, e)
            self._unreadable.add(kind)
            return {}

        try:
            return parse_store(text, source=str(path))
        except MalformedStore as e:
            LOG.warning("%s, treating as empty", e)
            self._unreadable.add(kind)
            return {}

    def write(self, kind, mapping):
        """Replaces the store identified by `kind` with `mapping`."""
        self.write_many({kind: mapping})

    def write_many(self, updates):
        """Replaces several stores as one operation.

        `updates` is a dict of store kind to mapping. Every file is first
        written to a temporary sibling. Only when all of them have been written
        are they moved over the originals, so a failure while writing leaves
        every store as it was.

        Raises `MalformedStore`, without writing anything, if the last read of
        any of the stores failed.
        """
        for kind in updates:
            if kind in self._unreadable:
                raise MalformedStore(
                    f"Cannot update {self.path(kind)} because it could not be read. "
                    "Fix or remove the file and try again."
                )

        staged = []
        committed = False
        try:
            for kind, mapping in updates.items():
                path = self.path(kind)
                path.parent.mkdir(parents=True, exist_ok=True)
                tmp = path.with_name(path.name + ".tmp")
                staged.append(tmp)

                tmp.write_text(format_store(mapping), encoding="utf-8")
                if path.exists():
                    shutil.copymode(path, tmp)
                elif kind != AWS_CONFIG:
                    tmp.chmod(0o600)

            # Path.replace uses os.replace, which is atomic on POSIX systems.
            for tmp, kind in zip(staged, updates):
                LOG.debug("saving %s", self.path(kind))
                tmp.replace(self.path(kind))
                self._unreadable.discard(kind)
            committed = True

        finally:
            if not committed:
                for tmp in staged:
                    with contextlib.suppress(FileNotFoundError):
                        tmp.unlink()

    def backup_all(self, now=None):
        """Copies each existing store file to a timestamped sibling.

        Backups are named `FILE.YYYYMMDDHHMMSS` (UTC). Files that do not exist
        are skipped. Two backups within the same second write the same backup
        files. Returns the list of backup paths written.
        """
        now = now or datetime.now(timezone.utc)
        suffix = now.strftime(BACKUP_SUFFIX_FORMAT)

        backups = []
        for kind in KINDS:
            source = self.path(kind)
            if not source.is_file():
                continue
            dest = source.with_name(f"{source.name}.{suffix}")
            shutil.copyfile(source, dest)
            LOG.info("backed up %s to %s", source, dest)
            backups.append(dest)

        return backups

    def ensure_initialized(self):
        """Creates the AWS and awsx home directories if they are missing.

        The first time the awsx home is created, all existing files are backed
        up. Returns `True` if this was the first run.
        """
        for kind in (AWS_CONFIG, AWS_CREDENTIALS):
            self.path(kind).parent.mkdir(parents=True, exist_ok=True)

        if self.awsx_home.exists():
            return False

        LOG.info("first run, creating %s", self.awsx_home)
        self.awsx_home.mkdir(parents=True)
        self.backup_all()
        return True

    def require_aws_files_present(self):
        """Raises `ConfigurationMissing` unless both AWS files exist."""
        missing = [
            self.path(kind)
            for kind in (AWS_CREDENTIALS, AWS_CONFIG)
            if not self.path(kind).is_file()
        ]
        if missing:
            raise ConfigurationMissing(missing)
