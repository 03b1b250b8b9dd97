import logging

import pytest

from meetbot.models.chat import ClassificationResult
from meetbot.models.intent import Intent
from meetbot.nlu.classifier import ClassifierConfig, IntentClassifier, INTENT_PATTERNS
from meetbot.core.errors import CallerContractError


@pytest.mark.parametrize("text,expected", [
    ("Schedule a meeting tomorrow at 2pm", Intent.SCHEDULE_MEETING),
    ("Can you set up a call with the team", Intent.SCHEDULE_MEETING),
    ("book a conference for friday", Intent.SCHEDULE_MEETING),
    ("show my meetings", Intent.LIST_MEETINGS),
    ("what meetings do I have today", Intent.LIST_MEETINGS),
    ("list upcoming calls", Intent.LIST_MEETINGS),
    ("get meeting 1", Intent.GET_MEETING),
    ("tell me about the meeting", Intent.GET_MEETING),
    ("reschedule meeting 1 to 3pm", Intent.UPDATE_MEETING),
    ("move my call to friday", Intent.UPDATE_MEETING),
    ("cancel the meeting", Intent.DELETE_MEETING),
    ("delete meeting 2", Intent.DELETE_MEETING),
    ("show my recordings", Intent.LIST_RECORDINGS),
    ("get recording 1", Intent.GET_RECORDING),
    ("download recording 1", Intent.DOWNLOAD_RECORDING),
    ("list all users", Intent.LIST_USERS),
    ("show user john@example.com", Intent.GET_USER),
    ("add user jane@example.com", Intent.CREATE_USER),
    ("help", Intent.HELP),
    ("what can you do", Intent.HELP),
    ("hello", Intent.GREETING),
    ("Hey there", Intent.GREETING),
])
def test_classify_intents(classifier, text, expected):
    assert classifier.classify(text).intent is expected


def test_destructive_intents_win_over_broad_ones(classifier):
    # "cancel ... meeting" also matches GET_MEETING-ish and SCHEDULE patterns
    assert classifier.classify("cancel my meeting tomorrow").intent is Intent.DELETE_MEETING
    assert classifier.classify("change the meeting tomorrow").intent is Intent.UPDATE_MEETING


def test_unknown_has_zero_confidence(classifier):
    result = classifier.classify("xyz foo bar baz")
    assert result == ClassificationResult(Intent.UNKNOWN, 0.0)


@pytest.mark.parametrize("text", [None, "", "   "])
def test_blank_input_is_unknown(classifier, text):
    assert classifier.classify(text) == ClassificationResult(Intent.UNKNOWN, 0.0)


def test_confidence_by_word_count(classifier):
    assert classifier.classify("hello").confidence == 0.95
    assert classifier.classify("Schedule a meeting tomorrow at 2pm").confidence == 0.85
    long_text = "could you please schedule a meeting with the whole design team for tomorrow afternoon"
    assert classifier.classify(long_text).confidence == 0.75


def test_case_insensitive(classifier):
    assert classifier.classify("SHOW MY MEETINGS").intent is Intent.LIST_MEETINGS


def test_deterministic(classifier):
    results = {classifier.classify("schedule a meeting next monday") for _ in range(20)}
    assert len(results) == 1


def test_custom_thresholds():
    config = ClassifierConfig(short_message_words=1, short_message_confidence=0.99,
                              medium_message_words=2, medium_message_confidence=0.5,
                              long_message_confidence=0.1)
    classifier = IntentClassifier(config)
    assert classifier.classify("hello").confidence == 0.99
    assert classifier.classify("hello there").confidence == 0.5
    assert classifier.classify("hello there friend").confidence == 0.1


def test_low_confidence_is_logged(caplog):
    classifier = IntentClassifier(ClassifierConfig(long_message_confidence=0.3))
    with caplog.at_level(logging.WARNING, logger="meetbot.nlu.classifier"):
        classifier.classify("hi " * 12)
    assert "Low confidence" in caplog.text


def test_table_covers_every_actionable_intent():
    covered = {intent for intent, _ in INTENT_PATTERNS}
    assert covered == set(Intent) - {Intent.UNKNOWN}


def test_classification_result_validates_range():
    with pytest.raises(CallerContractError):
        ClassificationResult(Intent.HELP, 1.5)
    with pytest.raises(CallerContractError):
        ClassificationResult(None, 0.5)
