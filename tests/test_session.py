"""Tests for the session lifecycle."""

from decimal import Decimal

import pytest

from config import DEFAULT_CURRENCY, OWNER_ID
from data_models import Phase
from errors import AnalysisError, EditError, NotFoundError, StateError, ValidationError
from session import (ANALYSIS_FAILED, ANALYSIS_TIMED_OUT, EDIT_FAILED, BillSession)


def test_new_session_is_idle_with_owner():
    session = BillSession()

    assert session.phase is Phase.IDLE
    assert [f.id for f in session.friends] == [OWNER_ID]
    assert session.items == []
    assert session.last_error is None


def test_successful_analysis_starts_splitting(receipt_payload, png_bytes, fake_analyzer):
    session = BillSession()
    analyzer = fake_analyzer(payload=receipt_payload)

    assert session.run_analysis(analyzer, png_bytes) is True

    assert session.phase is Phase.SPLITTING
    assert [i.id for i in session.items] == ["a", "b"]
    assert session.state.assignments == {"a": set(), "b": set()}
    assert session.state.totals.tax == Decimal("3")
    assert session.state.image == png_bytes
    assert analyzer.calls == 1


def test_analysis_error_returns_to_idle_with_message(png_bytes, fake_analyzer):
    session = BillSession()
    analyzer = fake_analyzer(error=AnalysisError("Receipt is blurry"))

    assert session.run_analysis(analyzer, png_bytes) is False

    assert session.phase is Phase.IDLE
    assert session.last_error == "Receipt is blurry"
    assert session.items == []
    assert session.state.image is None


def test_unexpected_service_error_becomes_readable_message(png_bytes, fake_analyzer):
    session = BillSession()

    session.run_analysis(fake_analyzer(error=RuntimeError("socket closed")), png_bytes)

    assert session.phase is Phase.IDLE
    assert session.last_error == ANALYSIS_FAILED


def test_malformed_payload_is_an_analysis_failure(png_bytes, fake_analyzer):
    session = BillSession()

    assert session.run_analysis(fake_analyzer(payload={"items": "nope"}), png_bytes) is False

    assert session.phase is Phase.IDLE
    assert session.last_error
    assert session.state.assignments == {}


def test_analysis_timeout_counts_as_failure(receipt_payload, png_bytes, fake_analyzer):
    session = BillSession()
    slow = fake_analyzer(payload=receipt_payload, delay=0.5)

    assert session.run_analysis(slow, png_bytes, timeout=0.05) is False

    assert session.phase is Phase.IDLE
    assert session.last_error == ANALYSIS_TIMED_OUT


def test_empty_upload_is_rejected(fake_analyzer):
    session = BillSession()
    with pytest.raises(ValidationError):
        session.run_analysis(fake_analyzer(payload={}), b"")
    assert session.phase is Phase.IDLE


def test_only_one_analysis_at_a_time(png_bytes):
    session = BillSession()
    session.begin_analysis(png_bytes)

    with pytest.raises(StateError):
        session.begin_analysis(png_bytes)


def test_splitting_operations_blocked_while_analyzing(png_bytes):
    session = BillSession()
    session.begin_analysis(png_bytes)

    with pytest.raises(StateError):
        session.add_friend("Ann")
    with pytest.raises(StateError):
        session.toggle_assignment("a", OWNER_ID)


def test_friends_can_be_added_before_upload():
    session = BillSession()
    ann = session.add_friend("Ann")

    assert ann in session.friends
    with pytest.raises(StateError):
        session.toggle_assignment("a", ann.id)


def test_result_arriving_after_reset_is_dropped(receipt_payload, png_bytes):
    session = BillSession()
    ticket = session.begin_analysis(png_bytes)
    session.reset()

    assert session.complete_analysis(ticket, receipt_payload) is False
    assert session.fail_analysis(ticket, "late") is False
    assert session.phase is Phase.IDLE
    assert session.items == []
    assert session.last_error is None


def test_reanalysis_replaces_batch_but_keeps_friends(splitting_session, png_bytes, fake_analyzer):
    ann = splitting_session.add_friend("Ann")
    splitting_session.toggle_assignment("a", ann.id)

    new_payload = {"items": [{"name": "Soup", "price": "7.25"}], "total": 7.25}
    assert splitting_session.run_analysis(fake_analyzer(payload=new_payload), png_bytes)

    assert [i.name for i in splitting_session.items] == ["Soup"]
    new_id = splitting_session.items[0].id
    assert splitting_session.state.assignments == {new_id: set()}
    assert ann in splitting_session.friends
    assert splitting_session.state.totals.currency == DEFAULT_CURRENCY


def test_scenario_remove_friend_after_assigning(splitting_session):
    f2 = splitting_session.add_friend("F2")
    splitting_session.toggle_assignment("a", OWNER_ID)
    splitting_session.toggle_assignment("a", f2.id)
    splitting_session.toggle_assignment("b", OWNER_ID)

    before = splitting_session.breakdown()
    assert before.share_for(OWNER_ID).rounded_total == Decimal("27.50")
    assert before.share_for(f2.id).rounded_total == Decimal("5.50")

    splitting_session.remove_friend(f2.id)

    assert splitting_session.state.assignments["a"] == {OWNER_ID}
    after = splitting_session.breakdown()
    assert after.share_for(OWNER_ID).item_share == 30
    assert after.share_for(OWNER_ID).rounded_total == Decimal("33.00")
    assert after.unassigned_total == 0
    assert after.share_for(f2.id) is None


def test_removing_last_assignee_moves_price_to_unassigned(splitting_session):
    splitting_session.toggle_assignment("b", OWNER_ID)
    splitting_session.toggle_assignment("b", OWNER_ID)

    breakdown = splitting_session.breakdown()
    assert breakdown.unassigned_total == 30
    assert breakdown.share_for(OWNER_ID).total == 0


def test_toggle_unknown_item_raises(splitting_session):
    with pytest.raises(NotFoundError):
        splitting_session.toggle_assignment("missing", OWNER_ID)


def test_edit_keeps_original_image(splitting_session, png_bytes, fake_editor):
    editor = fake_editor(result=b"new-image")

    assert splitting_session.run_edit(editor, "  make it black and white ") is True

    assert splitting_session.phase is Phase.SPLITTING
    assert splitting_session.state.image == png_bytes
    assert splitting_session.state.edited_image == b"new-image"
    assert splitting_session.state.display_image == b"new-image"
    assert editor.received == [(png_bytes, "make it black and white")]


def test_failed_edit_keeps_previous_images(splitting_session, png_bytes, fake_editor):
    splitting_session.run_edit(fake_editor(result=b"first"), "sepia")

    ok = splitting_session.run_edit(fake_editor(error=EditError("No image returned")), "sketch")

    assert ok is False
    assert splitting_session.phase is Phase.SPLITTING
    assert splitting_session.last_error == "No image returned"
    assert splitting_session.state.edited_image == b"first"
    assert splitting_session.state.image == png_bytes


def test_edit_returning_nothing_is_a_failure(splitting_session, fake_editor):
    assert splitting_session.run_edit(fake_editor(result=b""), "sepia") is False
    assert splitting_session.last_error == EDIT_FAILED
    assert splitting_session.state.edited_image is None


def test_edit_needs_a_receipt_and_an_instruction(splitting_session, fake_editor):
    with pytest.raises(StateError):
        BillSession().run_edit(fake_editor(), "sepia")
    with pytest.raises(ValidationError):
        splitting_session.run_edit(fake_editor(), "   ")
    assert splitting_session.phase is Phase.SPLITTING


def test_only_one_edit_at_a_time(splitting_session):
    splitting_session.begin_edit("sepia")
    with pytest.raises(StateError):
        splitting_session.begin_edit("sketch")


def test_assignments_allowed_while_editing(splitting_session):
    ticket = splitting_session.begin_edit("sepia")

    assert splitting_session.toggle_assignment("a", OWNER_ID) is True
    assert splitting_session.complete_edit(ticket, b"png")
    assert splitting_session.state.assignments["a"] == {OWNER_ID}


def test_reset_discards_everything_and_reseeds_owner(splitting_session, png_bytes, fake_analyzer):
    splitting_session.add_friend("Ann")
    splitting_session.state.last_error = "old"

    splitting_session.reset()

    assert splitting_session.phase is Phase.IDLE
    assert [f.id for f in splitting_session.friends] == [OWNER_ID]
    assert splitting_session.items == []
    assert splitting_session.state.totals is None
    assert splitting_session.state.assignments == {}
    assert splitting_session.state.image is None
    assert splitting_session.last_error is None


def test_breakdown_when_idle_is_all_zero():
    breakdown = BillSession().breakdown()

    assert breakdown.unassigned_total == 0
    assert [s.total for s in breakdown.per_friend] == [0]
