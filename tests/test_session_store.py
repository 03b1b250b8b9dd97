from datetime import timedelta

import pytest

from meetbot.core.errors import CallerContractError, SessionStateError
from meetbot.models.intent import Intent
from meetbot.models.session import Session, SessionStatus

from conftest import START


def test_get_or_create_reuses_active_session(store):
    first = store.get_or_create("alice")
    assert store.get_or_create("alice") is first
    assert first.status is SessionStatus.ACTIVE
    assert first.started_at == START


def test_users_get_distinct_sessions(store):
    assert store.get_or_create("alice").session_id != store.get_or_create("bob").session_id


@pytest.mark.parametrize("user_id", ["", "   ", None])
def test_blank_user_is_a_contract_error(store, user_id):
    with pytest.raises(CallerContractError):
        store.get_or_create(user_id)


def test_session_requires_ids():
    with pytest.raises(CallerContractError):
        Session(session_id="", user_id="alice", started_at=START, last_activity_at=START)


def test_idle_session_times_out_lazily(store, clock):
    old = store.get_or_create("alice")
    clock.advance(minutes=31)

    new = store.get_or_create("alice")

    assert new.session_id != old.session_id
    assert old.status is SessionStatus.TIMED_OUT
    assert old.ended_at == clock.now
    assert new.status is SessionStatus.ACTIVE


def test_activity_keeps_session_alive(store, clock):
    session = store.get_or_create("alice")
    for _ in range(5):
        clock.advance(minutes=20)
        store.update_activity(session.session_id)
    assert store.get_or_create("alice") is session
    assert session.message_count == 5


def test_update_activity_counts_messages(store):
    session = store.get_or_create("alice")
    assert store.update_activity(session.session_id) == 1
    assert store.update_activity(session.session_id) == 2


def test_update_activity_on_unknown_session_is_harmless(store):
    assert store.update_activity("missing") == 0


def test_context_round_trip(store):
    store.set_context("alice", "favouriteColour", "teal")
    assert store.get_context("alice", "favouriteColour") == "teal"
    assert store.has_context("alice", "favouriteColour")
    assert store.get_context("alice", "other") is None
    assert not store.has_context("bob", "favouriteColour")


def test_clear_context(store):
    store.set_context("alice", "k", "v")
    assert store.clear_context("alice")
    assert not store.has_context("alice", "k")
    assert not store.clear_context("nobody")


def test_context_does_not_survive_timeout(store, clock):
    store.set_context("alice", "meetingDate", "2024-01-16")
    clock.advance(hours=1)
    store.get_or_create("alice")
    assert store.get_context("alice", "meetingDate") is None


def test_end_session(store):
    session = store.get_or_create("alice")
    ended = store.end_session("alice")
    assert ended is session
    assert session.status is SessionStatus.ENDED
    assert store.end_session("alice") is None
    assert store.get_or_create("alice").session_id != session.session_id


def test_terminal_session_is_read_only(store):
    session = store.get_or_create("alice")
    store.end_session("alice")
    with pytest.raises(SessionStateError):
        session.set_value("k", "v")
    with pytest.raises(SessionStateError):
        session.transition(SessionStatus.ERROR, START)


def test_record_intent(store):
    session = store.get_or_create("alice")
    store.record_intent(session.session_id, Intent.HELP)
    assert session.last_intent is Intent.HELP


def test_cleanup_removes_timed_out_and_expired(store, clock):
    store.get_or_create("idle")
    store.get_or_create("ended")
    store.end_session("ended")
    clock.advance(minutes=45)
    live = store.get_or_create("live")

    # idle is past timeout; ended is only 45 minutes into its retention
    assert store.cleanup_inactive() == 1
    assert store.get_current("idle") is None
    assert store.get_current("ended") is not None

    clock.advance(minutes=20)
    assert store.cleanup_inactive() == 1
    assert store.get_current("ended") is None
    assert store.get_by_id(live.session_id) is live


def test_cleanup_never_removes_live_sessions(store, clock):
    sessions = [store.get_or_create(f"user{i}") for i in range(10)]
    clock.advance(minutes=29)
    assert store.cleanup_inactive() == 0
    assert len(store) == len(sessions)


def test_active_session_count(store, clock):
    store.get_or_create("a")
    store.get_or_create("b")
    store.end_session("b")
    assert store.active_session_count() == 1
    clock.advance(minutes=31)
    assert store.active_session_count() == 0
    assert len(store) == 2


def test_all_sessions_returns_snapshots(store):
    store.set_context("alice", "k", "v")
    snapshot = store.all_sessions()[0]
    snapshot.context["k"] = "changed"
    assert store.get_context("alice", "k") == "v"


def test_to_dict(store):
    session = store.get_or_create("alice")
    data = session.to_dict()
    assert data["status"] == "active"
    assert data["user_id"] == "alice"
    assert data["ended_at"] is None
    assert data["started_at"] == START.isoformat()


def test_touch_keeps_latest_timestamp():
    session = Session.create("alice", START)
    session.touch(START - timedelta(minutes=5))
    assert session.last_activity_at == START
