import asyncio
import threading
from datetime import timedelta

from meetbot.orchestrator.session_store import SessionStore

from conftest import FakeClock, make_engine

USERS = 8
MESSAGES = 100


def test_store_counts_are_exact_under_threads():
    store = SessionStore(timeout=timedelta(minutes=30))
    counts: dict[str, list[int]] = {f"user{i}": [] for i in range(USERS)}
    errors = []

    def worker(user_id: str):
        try:
            for i in range(MESSAGES):
                session = store.get_or_create(user_id)
                session.set_value("last", f"{user_id}:{i}")
                counts[user_id].append(store.update_activity(session.session_id))
        except Exception as e:  # surfaced by the assert below
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(u,)) for u in counts]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    for user_id, seen in counts.items():
        assert seen == list(range(1, MESSAGES + 1))
        assert store.get_context(user_id, "last") == f"{user_id}:{MESSAGES - 1}"


def test_cleanup_during_traffic_keeps_live_sessions():
    clock = FakeClock()
    store = SessionStore(timeout=timedelta(minutes=30), retention=timedelta(0), clock=clock)
    live_ids = {f"user{i}": store.get_or_create(f"user{i}").session_id for i in range(USERS)}

    # Stale entries the sweeper is allowed to take
    for i in range(USERS):
        store.get_or_create(f"gone{i}")
        store.end_session(f"gone{i}")

    removed = []
    stop = threading.Event()

    def sweeper():
        while not stop.is_set():
            removed.append(store.cleanup_inactive())

    def traffic(user_id: str):
        for _ in range(MESSAGES):
            store.update_activity(live_ids[user_id])

    threads = [threading.Thread(target=traffic, args=(u,)) for u in live_ids]
    sweep_threads = [threading.Thread(target=sweeper) for _ in range(3)]
    for t in sweep_threads + threads:
        t.start()
    for t in threads:
        t.join()
    stop.set()
    for t in sweep_threads:
        t.join()
    removed.append(store.cleanup_inactive())

    assert sum(removed) == USERS
    for user_id, session_id in live_ids.items():
        session = store.get_by_id(session_id)
        assert session is not None
        assert session.message_count == MESSAGES


def test_engine_serializes_turns_per_user(store, provider):
    engine = make_engine(store, provider)

    async def run():
        return await asyncio.gather(*(engine.process_message("alice", "hello") for _ in range(50)))

    responses = asyncio.run(run())
    assert len({r.session_id for r in responses}) == 1
    assert store.get_current("alice").message_count == 50


def test_engine_keeps_users_apart(store, provider):
    engine = make_engine(store, provider)

    async def conversation(user_id: str):
        await engine.process_message(user_id, "schedule a meeting")
        await engine.process_message(user_id, "tomorrow")
        return await engine.process_message(user_id, "2pm")

    async def run():
        return await asyncio.gather(*(conversation(f"user{i}") for i in range(USERS)))

    results = asyncio.run(run())
    assert all(r.success and "Meeting scheduled successfully!" in r.message for r in results)
    assert len(provider.calls) == USERS
    for i in range(USERS):
        assert store.get_current(f"user{i}").message_count == 3
