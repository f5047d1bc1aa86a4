#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Show what AWS account and identity you're using.

This is another name for `awsx whoami`.
"""

from awsx.commands import whoami


class CLICommand(whoami.CLICommand):
    """Same as whoami."""
