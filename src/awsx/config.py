#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Reads the awsx user configuration file with type-checked values.

## Overview

awsx reads optional user preferences from `$HOME/.awsx.yaml`, or from the file
named by the `AWSX_CONFIG` environment variable. The file is not required; if
it does not exist, every setting falls back to its built-in default. This is
unrelated to the AWS configuration files that awsx manages, which are handled
by `awsx.store`.

The file may contain the following top-level sections:

    CLI:
      log_level: ("DEBUG" | "INFO" | "WARN" | "ERROR")

    Session:
      mfa_expiry: INTEGER
      sts_timeout: NUMBER

    KeyAge:
      thresholds:
        - INTEGER
        - INTEGER
        - INTEGER
      default_max_age: INTEGER

    Commands:
      COMMAND_NAME:
        ARG: VALUE

`Session: mfa_expiry` is the session length, in seconds, offered when a new
MFA profile is created. `Session: sts_timeout` bounds the identity lookups made
after a switch. `KeyAge: thresholds` are the age, in days, at which an access
key without a configured maximum age is reported as info, warning, and
critical respectively. The `Commands` block provides default values for the
options of individual commands.

## Reading Values

`Config.get` follows a path of keys into the loaded document and optionally
type-checks the value found:

    c = Config.from_file('~/.awsx.yaml')
    c.get('CLI', 'log_level', type=Choice('DEBUG', 'INFO'), default='ERROR')
    c.get('KeyAge', 'thresholds', type=List(Int), default=[10, 90, 180])

If a value does not match the expected type, a `TypeError` is raised that
names the offending key path.
"""

import json
import logging
import os
from functools import reduce
from pathlib import Path

import yaml

LOG = logging.getLogger(__name__)

# pylint: disable=unidiomatic-typecheck
#
# isinstance(True, int) is true, so exact type comparisons are used throughout
# this module. A boolean must never satisfy an Int.


def config_filename():
    """Returns the path to the user configuration file."""
    return os.environ.get("AWSX_CONFIG", Path.home() / ".awsx.yaml")


class Config:
    """A `Config` reads type-checked values from a nested dictionary.

    Parsers for file formats register themselves by extension, so
    `Config.from_file` can pick the right one.
    """

    _filetypes = {}

    @classmethod
    def register_filetype(cls, config_class, *extensions):
        """Register `config_class` as the parser for the given extensions."""
        for ext in extensions:
            cls._filetypes[ext] = config_class

    @classmethod
    def from_file(cls, filename, must_exist=False):
        """Load a `Config` from `filename`.

        A missing file yields an empty `Config` unless `must_exist` is set, in
        which case `FileNotFoundError` is raised.
        """
        path = Path(filename).expanduser()

        if not path.is_file():
            if must_exist:
                raise FileNotFoundError(f"Config file not found: {filename}")
            LOG.debug("no user config at %s, using defaults", path)
            return cls({})

        if path.suffix not in cls._filetypes:
            raise ValueError(f"Unregistered file type extension: {path.suffix}")

        LOG.info("loading user config from %s", path)
        with path.open(encoding="utf-8") as f:
            return cls._filetypes[path.suffix](f)

    def __init__(self, d):
        # An empty YAML document loads as None.
        self.conf = d or {}

    def get(self, *keys, default=None, type=None, must_exist=False):
        """Return the value found by following `keys` into the config.

        Missing values return `default`, or raise `ValueError` if `must_exist`
        is set. If `type` is given, the value (or default) must satisfy it or a
        `TypeError` is raised.
        """
        # pylint: disable=redefined-builtin
        try:
            value = reduce(lambda a, p: a.get(p, {}), keys, self.conf)
        except AttributeError as e:
            raise ValueError(
                f"Error in config: {'->'.join(keys[:-1])}: not a dictionary"
            ) from e

        if value == {}:
            if must_exist:
                raise ValueError(f"Error in config: {'->'.join(keys)}: must be set")
            value = default

        if value is None or not type:
            return value

        if type.type_check(value):
            return value

        raise TypeError(
            f"Error in config: {'->'.join(keys)}: not a {type}: {repr(value)}"
        )

    def section(self, *keys):
        """Returns a callable that reads values relative to `keys`.

        This is a convenience for commands, which only see their own block of
        the `Commands` section:

            cfg = config.section('Commands', 'switch')
            cfg('force_mfa', type=Bool, default=False)
        """

        def lookup(*more_keys, **kwargs):
            return self.get(*keys, *more_keys, **kwargs)

        return lookup


class YAMLConfig(Config):
    """Loads a YAML configuration from a stream."""

    def __init__(self, stream):
        super().__init__(yaml.safe_load(stream))


class JSONConfig(Config):
    """Loads a JSON configuration from a stream."""

    def __init__(self, stream):
        super().__init__(json.load(stream))


Config.register_filetype(YAMLConfig, ".yaml", ".yml")
Config.register_filetype(JSONConfig, ".json")


class Type:
    """Represents a type that can be used in type-check comparisons."""

    def type_check(self, obj):
        """Returns true if obj is a type matching this `Type`."""
        raise NotImplementedError

    def __str__(self):
        raise NotImplementedError


class Or(Type):
    """Matches if any of `config_types` match."""

    def __init__(self, *config_types):
        self.config_types = config_types

    def type_check(self, obj):
        return any(t.type_check(obj) for t in self.config_types)

    def __str__(self):
        return "(" + " or ".join(str(t) for t in self.config_types) + ")"


class Const(Type):
    """Matches a single constant value of the same type."""

    def __init__(self, const):
        self.const = const

    def type_check(self, obj):
        # True == 1, so equality alone is not enough.
        if type(obj) != type(self.const):  # noqa: E721
            return False
        return obj == self.const

    def __str__(self):
        return f"constant '{self.const}'"


class Choice(Or):
    """Matches one of several constants."""

    def __init__(self, *constants):
        super().__init__(*[Const(c) for c in constants])


class Scalar(Type):
    """Matches a builtin scalar type exactly."""

    def __init__(self, type_):
        self.type = type_

    def type_check(self, obj):
        return type(obj) == self.type  # noqa: E721

    def __str__(self):
        return self.type.__name__


class Positive(Type):
    """Matches an int or float greater than zero."""

    def type_check(self, obj):
        return type(obj) in (int, float) and obj > 0  # noqa: E721

    def __str__(self):
        return "positive number"


class List(Type):
    """Matches a list whose elements all match `element_type`."""

    def __init__(self, element_type):
        self.element_type = element_type

    def type_check(self, obj):
        if type(obj) != list:  # noqa: E721
            return False
        return all(self.element_type.type_check(e) for e in obj)

    def __str__(self):
        return f"list of {self.element_type}"


Str = Scalar(str)
"""Singleton representing a str."""

Int = Scalar(int)
"""Singleton representing an int."""

Bool = Scalar(bool)
"""Singleton representing a bool."""

Number = Positive()
"""Singleton representing a positive int or float."""

LogLevel = Choice("DEBUG", "INFO", "WARN", "ERROR")
"""Valid values for the `CLI: log_level` setting."""
