#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#

# pylint: disable=redefined-outer-name,missing-docstring

import io

import pytest

from awsx.errors import PromptCancelled
from awsx.prompts import Prompter


def answers(*values):
    """Returns an input function that returns `values` one at a time."""
    it = iter(values)

    def read(_prompt):
        value = next(it)
        if isinstance(value, BaseException):
            raise value
        return value

    return read


def prompter(*values, secrets=()):
    return Prompter(
        input_func=answers(*values), secret_func=answers(*secrets), out=io.StringIO()
    )


@pytest.mark.parametrize(
    "replies, expected",
    [
        (["1"], "dev"),
        (["2"], "prod"),
        (["prod"], "prod"),
        (["0", "3", "staging", "2"], "prod"),
        ([""], "prod"),
    ],
)
def test_select(replies, expected):
    assert prompter(*replies).select("Choose", ["dev", "prod"], default="prod") == expected


def test_select_with_titles():
    p = prompter("root profile")
    choices = [("root profile", None), ("prod-readonly", "child")]
    assert p.select("Choose", choices) is None

    p = prompter("2")
    assert p.select("Choose", choices) == "child"


def test_select_shows_choices():
    out = io.StringIO()
    p = Prompter(input_func=answers("1"), out=out)
    p.select("Choose a profile", ["dev", "prod"], default="prod")
    text = out.getvalue()
    assert "Choose a profile" in text
    assert "  1) dev" in text
    assert "*  2) prod" in text


def test_select_without_choices():
    with pytest.raises(ValueError):
        prompter().select("Choose", [])


def test_text():
    assert prompter("value").text("Name") == "value"
    assert prompter("  padded  ").text("Name") == "padded"
    assert prompter("").text("Name", default="dev") == "dev"
    assert prompter("", "second").text("Name") == "second"
    assert prompter("").text("Name", required=False) is None


def test_text_validation():
    def digits(value):
        return True if value.isdigit() else "digits only"

    out = io.StringIO()
    p = Prompter(input_func=answers("abc", "123"), out=out)
    assert p.text("MFA token", validate=digits) == "123"
    assert "digits only" in out.getvalue()


def test_secret():
    assert prompter(secrets=["s3cret"]).secret("Secret") == "s3cret"
    assert prompter(secrets=["", "s3cret"]).secret("Secret") == "s3cret"
    assert prompter(secrets=[""]).secret("Secret", default="old") == "old"


def test_secret_never_shows_default():
    out = io.StringIO()
    p = Prompter(secret_func=answers(""), out=out)
    p.secret("Secret", default="topsecret")
    assert "topsecret" not in out.getvalue()
    assert "leave empty to keep the current value" in out.getvalue()


def test_number():
    assert prompter("3600").number("Seconds") == 3600
    assert prompter("").number("Seconds", default=3600) == 3600
    assert prompter("x", "10").number("Seconds") == 10


def test_number_validation():
    def positive(value):
        return True if value > 0 else "must be positive"

    assert prompter("0", "-1", "5").number("Days", validate=positive) == 5


@pytest.mark.parametrize(
    "reply, default, expected",
    [
        ("y", False, True),
        ("YES", False, True),
        ("n", True, False),
        ("no", True, False),
        ("", True, True),
        ("", False, False),
    ],
)
def test_confirm(reply, default, expected):
    assert prompter(reply).confirm("Sure?", default=default) is expected


def test_confirm_repeats():
    assert prompter("maybe", "y").confirm("Sure?") is True


@pytest.mark.parametrize("error", [KeyboardInterrupt(), EOFError()])
def test_cancelled(error):
    with pytest.raises(PromptCancelled):
        prompter(error).text("Name")
    with pytest.raises(PromptCancelled):
        prompter(error).select("Choose", ["a"])
    with pytest.raises(PromptCancelled):
        prompter(secrets=[error]).secret("Secret")
