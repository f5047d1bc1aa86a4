#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Provides additional types and formatters for the builtin argparse module."""

import argparse


class RawAndDefaultsFormatter(
    argparse.ArgumentDefaultsHelpFormatter, argparse.RawDescriptionHelpFormatter
):
    """Mixin of ArgumentDefaultsHelpFormatter and RawDescriptionHelpFormatter.

    The argparse module does not allow for easy combinations of help formatters.
    This class combines the raw formatter along with the default args formatter,
    which is used by the awsx CLI and its commands.
    """


def bounded_int(lo=None, hi=None):
    """Returns an argparse type that accepts integers between `lo` and `hi`.

    Both bounds are inclusive and either may be `None`:

        >>> parser = argparse.ArgumentParser()
        >>> parser.add_argument('--max-age', type=bounded_int(0, 3650))
        >>> parser.parse_args(['--max-age', '90'])
        Namespace(max_age=90)
        >>> parser.parse_args(['--max-age', '-1'])
        usage: ...
        error: argument --max-age: must be greater than or equal to 0
    """

    def parse(value):
        try:
            number = int(value)
        except ValueError as e:
            raise argparse.ArgumentTypeError(f"invalid int value: '{value}'") from e

        if lo is not None and number < lo:
            raise argparse.ArgumentTypeError(f"must be greater than or equal to {lo}")
        if hi is not None and number > hi:
            raise argparse.ArgumentTypeError(f"must be less than or equal to {hi}")
        return number

    parse.__name__ = "int"
    return parse
