#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""CLI to manage AWS profiles and switch the shell between them.

## Overview

`awsx` manages named AWS profiles kept in the standard AWS CLI config and
credentials files. Profiles may use long-lived access keys directly, obtain
MFA session credentials from their keys, or assume a role using the identity
of a parent profile. Switching to a profile exports it to the calling shell.

### CLI Usage

The awsx CLI command is documented on the `awsx.cli` page, including how to
install the shell function that applies the exported variables.

### Library Usage

The package is layered. Each submodule contains an overview of the module and
how to use it:

`awsx.store`
:  Reads and writes the AWS config, AWS credentials, and awsx profiles files.

`awsx.registry`
:  Joins the three files into profile records and modifies them.

`awsx.session`
:  Decides between reusing an MFA session and asking for an MFA token, and
resolves assume-role profiles, when switching.

`awsx.keyage`
:  Rates the age of access keys.

For example, to list the profiles with a valid MFA session:

    from awsx.registry import ProfileRegistry
    from awsx.store import FileStore

    registry = ProfileRegistry(FileStore.default())
    for p in registry.profiles():
        if p.mfa_enabled and p.mfa_session_valid:
            print(p.profile_name)
"""

name = "awsx"
__version__ = "1.0.0"
