#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#

# pylint: disable=redefined-outer-name,missing-docstring

import pytest

from awsx import store
from awsx.errors import (
    CredentialExchangeFailed,
    InvalidInput,
    ProfileNotFound,
    PromptCancelled,
)
from awsx.exporter import ShellExporter
from awsx.models import (
    AssumeRoleProfileRecord,
    MfaProfile,
    PlainProfile,
    TemporaryCredentials,
)
from awsx.prompts import Prompter
from awsx.registry import ProfileRegistry
from awsx.session import ROOT_PROFILE_TITLE, SessionEngine, validate_mfa_token
from awsx.session.aws import IdentityService

NOW = 1_700_000_000
DEVICE = "arn:aws:iam::111111111111:mfa/jane"
SESSION = TemporaryCredentials("prod", "ASIASESSION", "sessionsecret", "sessiontoken")


@pytest.fixture
def clock():
    return [NOW]


@pytest.fixture
def file_store(tmp_path):
    return store.FileStore(
        tmp_path / ".aws" / "config",
        tmp_path / ".aws" / "credentials",
        tmp_path / ".awsx",
    )


@pytest.fixture
def reg(file_store, clock):
    r = ProfileRegistry(file_store, clock=lambda: clock[0])
    r.create_profile(
        PlainProfile(
            "dev", "AKIADEV", "devsecret", aws_default_region="us-east-1", aws_output_format="json"
        )
    )
    r.create_profile(
        MfaProfile(
            "prod",
            "AKIAPROD",
            "prodsecret",
            mfa_device_arn=DEVICE,
            session_length_in_seconds=3600,
            aws_default_region="eu-west-1",
            aws_output_format="table",
        )
    )
    r.create_assume_role_profile(
        AssumeRoleProfileRecord(
            "prod-readonly",
            "prod",
            "arn:aws:iam::111111111111:role/ReadOnly",
            aws_output_format="json",
        )
    )
    return r


@pytest.fixture
def prompter(mocker):
    return mocker.MagicMock(spec=Prompter)


@pytest.fixture
def identity(mocker):
    m = mocker.MagicMock(spec=IdentityService)
    m.mint_session_token.return_value = SESSION
    return m


@pytest.fixture
def exporter(mocker):
    return mocker.MagicMock(spec=ShellExporter)


@pytest.fixture
def engine(reg, prompter, identity, exporter, clock):
    return SessionEngine(reg, prompter, identity, exporter, clock=lambda: clock[0])


def snapshot(file_store):
    return {
        kind: file_store.path(kind).read_text()
        if file_store.path(kind).exists()
        else None
        for kind in store.KINDS
    }


@pytest.mark.parametrize(
    "token, expected", [("123456", True), ("12a456", False), ("", False)]
)
def test_validate_mfa_token(token, expected):
    assert (validate_mfa_token(token) is True) == expected


def test_switch_plain_profile(engine, prompter, identity, exporter):
    result = engine.switch("dev")

    exporter.export.assert_called_once_with(
        "dev",
        TemporaryCredentials("dev", "AKIADEV", "devsecret"),
        "us-east-1",
        "json",
    )
    assert result.active_profile_name == "dev"
    assert not result.assumed_role
    assert not result.mfa_challenged
    prompter.select.assert_not_called()
    prompter.text.assert_not_called()
    identity.mint_session_token.assert_not_called()


def test_switch_prompts_for_profile(engine, prompter, exporter):
    prompter.select.return_value = "dev"

    result = engine.switch(current_profile="dev")

    prompter.select.assert_called_once_with(
        "Choose a profile", ["dev", "prod"], default="dev"
    )
    assert result.active_profile_name == "dev"
    exporter.export.assert_called_once()


def test_switch_prompt_defaults_to_parent_of_current_child(engine, prompter):
    prompter.select.return_value = "dev"

    engine.switch(current_profile="prod-readonly")

    prompter.select.assert_called_once_with(
        "Choose a profile", ["dev", "prod"], default="prod"
    )


def test_switch_prompt_without_current_profile(engine, prompter):
    prompter.select.return_value = "dev"

    engine.switch(current_profile="unknown")

    prompter.select.assert_called_once_with(
        "Choose a profile", ["dev", "prod"], default=None
    )


def test_switch_without_profiles(tmp_path, prompter, identity, exporter):
    empty = ProfileRegistry(
        store.FileStore(tmp_path / "config", tmp_path / "credentials", tmp_path / "home")
    )
    engine = SessionEngine(empty, prompter, identity, exporter)

    with pytest.raises(ProfileNotFound) as e:
        engine.switch()

    assert "awsx add-profile" in str(e.value)
    exporter.export.assert_not_called()


def test_switch_unknown_profile(engine, exporter):
    with pytest.raises(ProfileNotFound):
        engine.switch("staging")
    exporter.export.assert_not_called()


def test_switch_mfa_profile_first_time(engine, reg, prompter, identity, exporter):
    prompter.text.return_value = "123456"
    prompter.select.return_value = None
    before = reg.profile("prod")

    result = engine.switch("prod")

    identity.mint_session_token.assert_called_once_with(before, 3600, DEVICE, "123456")
    exporter.export.assert_called_once_with("prod", SESSION, "eu-west-1", "table")
    assert result.mfa_challenged
    assert result.credentials == SESSION

    prod = reg.profile("prod")
    assert prod.last_login_time_in_seconds == NOW
    assert prod.mfa_session_valid
    assert reg.cached_credentials("prod") == SESSION


def test_switch_mfa_profile_reuses_session(engine, reg, prompter, identity, exporter):
    reg.record_mfa_login(reg.profile("prod"), SESSION, NOW - 100)
    prompter.select.return_value = None

    result = engine.switch("prod")

    prompter.text.assert_not_called()
    identity.mint_session_token.assert_not_called()
    exporter.export.assert_called_once_with("prod", SESSION, "eu-west-1", "table")
    assert not result.mfa_challenged


@pytest.mark.parametrize(
    "offset, challenged", [(3600 - 31, False), (3600 - 30, True), (3600 - 29, True)]
)
def test_switch_mfa_session_boundary(engine, reg, prompter, identity, clock, offset, challenged):
    reg.record_mfa_login(reg.profile("prod"), SESSION, NOW)
    clock[0] = NOW + offset
    prompter.text.return_value = "123456"
    prompter.select.return_value = None

    result = engine.switch("prod")

    assert result.mfa_challenged == challenged
    assert identity.mint_session_token.called == challenged


def test_switch_force_mfa(engine, reg, prompter, identity):
    reg.record_mfa_login(reg.profile("prod"), SESSION, NOW - 100)
    prompter.text.return_value = "654321"
    prompter.select.return_value = None

    result = engine.switch("prod", force_mfa=True)

    assert result.mfa_challenged
    identity.mint_session_token.assert_called_once()
    assert reg.profile("prod").last_login_time_in_seconds == NOW


def test_switch_mfa_session_without_token_is_not_reused(engine, reg, file_store, prompter, identity):
    # Valid login time, but the credentials file holds long-lived keys.
    profiles = file_store.read(store.PROFILES)
    profiles["prod"]["lastLoginTimeInSeconds"] = NOW - 100
    file_store.write(store.PROFILES, profiles)
    prompter.text.return_value = "123456"
    prompter.select.return_value = None

    result = engine.switch("prod")

    assert result.mfa_challenged
    identity.mint_session_token.assert_called_once()


def test_switch_sts_failure_writes_nothing(engine, file_store, prompter, identity, exporter):
    before = snapshot(file_store)
    prompter.text.return_value = "123456"
    identity.mint_session_token.side_effect = CredentialExchangeFailed("denied")

    with pytest.raises(CredentialExchangeFailed):
        engine.switch("prod")

    assert snapshot(file_store) == before
    exporter.export.assert_not_called()


def test_switch_persistence_failure_does_not_export(engine, reg, prompter, exporter, mocker):
    prompter.text.return_value = "123456"
    mocker.patch.object(reg, "record_mfa_login", side_effect=OSError("disk full"))

    with pytest.raises(OSError):
        engine.switch("prod")

    exporter.export.assert_not_called()


def test_switch_cancelled_prompt(engine, prompter, exporter):
    prompter.text.side_effect = PromptCancelled()

    with pytest.raises(PromptCancelled):
        engine.switch("prod")

    exporter.export.assert_not_called()


def test_switch_mfa_profile_without_device(engine, reg, exporter):
    prod = reg.profile("prod")
    prod.mfa_device_arn = None
    reg.replace_profile(prod)

    with pytest.raises(InvalidInput):
        engine.switch("prod")

    exporter.export.assert_not_called()


def test_switch_named_assume_role_profile(engine, reg, prompter, exporter):
    reg.record_mfa_login(reg.profile("prod"), SESSION, NOW - 100)

    result = engine.switch("prod", "prod-readonly")

    prompter.select.assert_not_called()
    # Region is inherited from the parent, output is the child's own.
    exporter.export.assert_called_once_with("prod-readonly", None, "eu-west-1", "json")
    assert result.active_profile_name == "prod-readonly"
    assert result.assumed_role
    assert result.credentials is None
    assert result.profile_credentials == SESSION


def test_switch_assume_role_profile_of_other_parent(engine, exporter):
    with pytest.raises(ProfileNotFound) as e:
        engine.switch("dev", "prod-readonly")

    assert "for profile 'dev'" in str(e.value)
    exporter.export.assert_not_called()


def test_switch_prompts_for_assume_role_profile(engine, reg, prompter, exporter):
    reg.record_mfa_login(reg.profile("prod"), SESSION, NOW - 100)
    child = reg.assume_role_profile("prod-readonly")
    prompter.select.return_value = child

    result = engine.switch("prod", current_profile="prod-readonly")

    prompter.select.assert_called_once_with(
        "Choose an assume role profile",
        [(ROOT_PROFILE_TITLE, None), ("prod-readonly", child)],
        default=child,
    )
    assert result.active_profile_name == "prod-readonly"
    exporter.export.assert_called_once_with("prod-readonly", None, "eu-west-1", "json")


def test_switch_assume_role_prompt_has_no_default_after_challenge(engine, reg, prompter):
    prompter.text.return_value = "123456"
    prompter.select.return_value = None

    engine.switch("prod", current_profile="prod-readonly")

    _, kwargs = prompter.select.call_args
    assert kwargs["default"] is None


def test_switch_root_profile_chosen(engine, reg, prompter, exporter):
    reg.record_mfa_login(reg.profile("prod"), SESSION, NOW - 100)
    prompter.select.return_value = None

    result = engine.switch("prod")

    assert result.active_profile_name == "prod"
    assert not result.assumed_role
    exporter.export.assert_called_once_with("prod", SESSION, "eu-west-1", "table")


def test_switch_profile_without_children_does_not_prompt(engine, prompter):
    engine.switch("dev")
    prompter.select.assert_not_called()
