from __future__ import annotations

from datetime import datetime

import pytest

from skillswap.core.exceptions import ContractStateError
from skillswap.orchestration.contract_transitions import (
    assert_can_terminate,
    assert_editable,
    content_hash,
    derive_status,
    next_version,
    plan_signature,
)

NOW = datetime(2026, 10, 17, 9, 30)


def test_status_follows_signatures():
    assert derive_status("Draft", False, False) == "Draft"
    assert derive_status("Draft", True, False) == "Pending"
    assert derive_status("Pending", True, True) == "Active"
    assert derive_status("Terminated", True, True) == "Terminated"


def test_first_signature_moves_to_pending():
    plan = plan_signature("Draft", False, False, "client", NOW, "10.0.0.1")
    assert plan.next_status == "Pending"
    assert plan.changes["client_signed"] is True
    assert plan.changes["client_signed_ip"] == "10.0.0.1"
    assert not plan.activated


def test_second_signature_activates():
    plan = plan_signature("Pending", True, False, "freelancer", NOW)
    assert plan.next_status == "Active"
    assert plan.activated
    assert plan.changes["status"] == "Active"


def test_signing_twice_is_idempotent():
    plan = plan_signature("Pending", True, False, "client", NOW)
    assert plan.already_signed
    assert plan.changes == {}
    assert plan.next_status == "Pending"


@pytest.mark.parametrize("status", ["Terminated", "Completed", "Disputed"])
def test_cannot_sign_closed_contract(status):
    with pytest.raises(ContractStateError):
        plan_signature(status, False, False, "client", NOW)


def test_termination_and_edit_guards():
    for status in ("Draft", "Pending", "Active"):
        assert_can_terminate(status)
        assert_editable(status)
    for status in ("Completed", "Terminated"):
        with pytest.raises(ContractStateError):
            assert_can_terminate(status)
        with pytest.raises(ContractStateError):
            assert_editable(status)


def test_content_hash_tracks_term_changes():
    fields = {"title": "A", "terms": "x", "amount": 10.0, "start_date": NOW}
    assert content_hash(fields) == content_hash(dict(fields))
    assert content_hash(fields) != content_hash({**fields, "terms": "y"})
    assert content_hash({**fields, "unrelated": 1}) == content_hash(fields)


def test_versions_are_numbered_sequentially():
    history = next_version([], "h1", "Initial contract", NOW)
    history = next_version(history, "h2", "Updated: terms", NOW)
    assert [entry["versionNumber"] for entry in history] == [1, 2]
    assert history[-1]["hash"] == "h2"
