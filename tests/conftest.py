"""
Shared fixtures. Time is always injected; nothing here sleeps.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from meetbot.nlu.classifier import IntentClassifier
from meetbot.nlu.entities import EntityExtractor
from meetbot.orchestrator.orchestrator import ChatbotEngine
from meetbot.orchestrator.registry import build_registry
from meetbot.orchestrator.session_store import SessionStore
from meetbot.services.actions import InMemoryActionProvider
from meetbot.services.credentials import LocalCredentialProvider

# Monday, mid-morning UTC
START = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def today() -> date:
    return START.date()


@pytest.fixture
def classifier():
    return IntentClassifier()


@pytest.fixture
def extractor():
    return EntityExtractor()


@pytest.fixture
def store(clock):
    return SessionStore(timeout=timedelta(minutes=30), retention=timedelta(hours=1), clock=clock)


@pytest.fixture
def provider():
    return InMemoryActionProvider()


def make_engine(store, provider, credentials=None, **kwargs) -> ChatbotEngine:
    extractor = EntityExtractor()
    registry = build_registry(provider, credentials or LocalCredentialProvider(), extractor)
    return ChatbotEngine(
        store=store,
        classifier=IntentClassifier(),
        extractor=extractor,
        registry=registry,
        **kwargs,
    )


@pytest.fixture
def engine(store, provider):
    return make_engine(store, provider)
