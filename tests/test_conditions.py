"""Tests for the #if condition evaluator."""

from unittest.mock import MagicMock

import pytest

from helpserv.conditions import ConditionEvaluator
from helpserv.context import LoadedModules, PrivilegeTable, ServiceInfo, SourceInfo
from helpserv.models import AuthMode, ServerFeatures

SERVICE = ServiceInfo(nick="NickServ")
OPER = SourceInfo(actor="jilles", service=SERVICE)
GUEST = SourceInfo(actor="guest", service=SERVICE)


def _make_evaluator(features=None, modules=()):
    privileges = PrivilegeTable(
        operclasses={"sra": ["general:admin", "user:mark"], "empty": []},
        operators={"Jilles": "sra", "nobody": "empty"},
    )
    return ConditionEvaluator(
        features or ServerFeatures(),
        privileges,
        LoadedModules(modules),
    )


@pytest.mark.parametrize("flag,keyword", [
    ("uses_halfops", "halfops"),
    ("uses_owner", "owner"),
    ("uses_protect", "protect"),
])
def test_feature_keywords_follow_server_flags(flag, keyword):
    on = _make_evaluator(ServerFeatures(**{flag: True}))
    off = _make_evaluator(ServerFeatures(**{flag: False}))
    assert on.evaluate(GUEST, keyword) is True
    assert off.evaluate(GUEST, keyword) is False


@pytest.mark.parametrize("halfops", [True, False])
def test_negation_inverts_result(halfops):
    ev = _make_evaluator(ServerFeatures(uses_halfops=halfops))
    assert ev.evaluate(GUEST, "!halfops") == (not ev.evaluate(GUEST, "halfops"))


def test_repeated_negation():
    ev = _make_evaluator(ServerFeatures(uses_owner=True))
    assert ev.evaluate(GUEST, "!!owner") is True
    assert ev.evaluate(GUEST, "!!!owner") is False
    assert ev.evaluate(OPER, "!!priv user:mark") is True


def test_leading_blanks_are_skipped():
    ev = _make_evaluator(ServerFeatures(uses_protect=True))
    assert ev.evaluate(GUEST, " \t protect") is True
    assert ev.evaluate(GUEST, "  ! protect") is False


def test_anyprivs():
    ev = _make_evaluator()
    assert ev.evaluate(OPER, "anyprivs") is True
    assert ev.evaluate(GUEST, "anyprivs") is False
    # An operclass with no privileges grants nothing
    nobody = SourceInfo(actor="nobody", service=SERVICE)
    assert ev.evaluate(nobody, "anyprivs") is False


def test_priv_takes_first_token_only():
    ev = _make_evaluator()
    assert ev.evaluate(OPER, "priv user:mark") is True
    assert ev.evaluate(OPER, "priv\tuser:mark trailing words") is True
    assert ev.evaluate(OPER, "priv   general:admin") is True
    assert ev.evaluate(OPER, "priv user:auspex") is False
    assert ev.evaluate(GUEST, "priv user:mark") is False


def test_priv_without_argument_is_false():
    ev = _make_evaluator()
    assert ev.evaluate(OPER, "priv") is False
    assert ev.evaluate(OPER, "priv   ") is False


def test_module_condition():
    ev = _make_evaluator(modules=["nickserv/register"])
    assert ev.evaluate(GUEST, "module nickserv/register") is True
    assert ev.evaluate(GUEST, "module nickserv/register extra") is True
    assert ev.evaluate(GUEST, "module chanserv/halfop") is False
    assert ev.evaluate(GUEST, "module") is False


@pytest.mark.parametrize("mode,expected", [
    (AuthMode.NONE, False),
    (AuthMode.SASL, True),
    (AuthMode.LDAP, True),
])
def test_auth_condition(mode, expected):
    ev = _make_evaluator(ServerFeatures(auth_mode=mode))
    assert ev.evaluate(GUEST, "auth") is expected


@pytest.mark.parametrize("expression", [
    "bogus", "", "   ", "HALFOPS", "halfops2", "#if owner",
])
def test_unknown_or_malformed_is_false(expression):
    ev = _make_evaluator(ServerFeatures(uses_halfops=True, uses_owner=True))
    assert ev.evaluate(OPER, expression) is False


def test_negated_unknown_is_true():
    ev = _make_evaluator()
    assert ev.evaluate(GUEST, "!bogus") is True


def test_collaborator_error_evaluates_false():
    capabilities = MagicMock()
    capabilities.has_priv.side_effect = RuntimeError("backend down")
    ev = ConditionEvaluator(ServerFeatures(), capabilities, LoadedModules())
    assert ev.evaluate(OPER, "priv user:mark") is False


def test_negated_collaborator_error_applies_negation_after_failing_closed():
    capabilities = MagicMock()
    capabilities.has_priv.side_effect = RuntimeError("backend down")
    ev = ConditionEvaluator(ServerFeatures(), capabilities, LoadedModules())
    assert ev.evaluate(OPER, "!priv user:mark") is True
    assert ev.evaluate(OPER, "!!priv user:mark") is False


@pytest.mark.parametrize("count, expected", [(5000, True), (5001, False)])
def test_long_negation_run_does_not_raise(count, expected):
    ev = _make_evaluator(ServerFeatures(uses_halfops=True))
    assert ev.evaluate(GUEST, "!" * count + "halfops") is expected


def test_negations_interleaved_with_blanks():
    ev = _make_evaluator(ServerFeatures(uses_halfops=True))
    assert ev.evaluate(GUEST, " ! \t! !halfops") is False
    assert ev.evaluate(GUEST, ("! " * 3000) + "halfops") is True
