from datetime import date, timedelta

import pytest

from meetbot.nlu.entities import EntityExtractor, ExtractorConfig, next_weekday

TODAY = date(2024, 1, 15)  # Monday


@pytest.fixture
def extract(extractor):
    return lambda text: extractor.extract(text, TODAY)


def test_full_message(extract):
    entities = extract("meeting on 2024-01-15 at 14:00 with a@b.com for 30 minutes")
    assert entities == {"date": "2024-01-15", "time": "14:00", "email": "a@b.com", "duration": "30"}


def test_nothing_found(extract):
    assert extract("hello there") == {}
    assert extract("") == {}
    assert extract(None) == {}


# ── Email ────────────────────────────────────────────────────────────

def test_email_first_match(extract):
    assert extract("invite bob@example.com and amy@example.org")["email"] == "bob@example.com"


def test_overlong_email_rejected():
    extractor = EntityExtractor(ExtractorConfig(max_email_length=10))
    assert "email" not in extractor.extract("ping someone@example.com", TODAY)


# ── Date ─────────────────────────────────────────────────────────────

@pytest.mark.parametrize("text,expected", [
    ("on 2024-03-05", "2024-03-05"),
    ("on March 5", "2024-03-05"),
    ("on mar 5th", "2024-03-05"),
    ("on 3/5/2024", "2024-03-05"),
    ("on 1/15/24", "2024-01-15"),
    ("on 1/15/70", "1970-01-15"),
])
def test_explicit_dates(extract, text, expected):
    assert extract(text)["date"] == expected


def test_month_name_in_the_past_rolls_to_next_year(extract):
    assert extract("on January 3")["date"] == "2025-01-03"


def test_invalid_calendar_date_is_skipped(extract):
    assert "date" not in extract("on 2024-02-30")


def test_year_threshold_is_configurable():
    extractor = EntityExtractor(ExtractorConfig(two_digit_year_threshold=80))
    assert extractor.extract("1/15/70", TODAY)["date"] == "2070-01-15"


@pytest.mark.parametrize("text,expected", [
    ("today", TODAY),
    ("tomorrow", TODAY + timedelta(days=1)),
    ("next monday", date(2024, 1, 22)),
    ("next friday", date(2024, 1, 19)),
    ("next sunday", date(2024, 1, 21)),
    ("next week", date(2024, 1, 22)),
])
def test_relative_dates(extract, text, expected):
    assert extract(text)["date"] == expected.isoformat()


def test_relative_date_overrides_explicit(extract):
    assert extract("2024-03-05, no wait, tomorrow")["date"] == "2024-01-16"


def test_relative_words_need_word_boundaries(extract):
    assert "date" not in extract("todays agenda")


def test_next_weekday_never_returns_today():
    assert next_weekday(TODAY, TODAY.weekday()) == TODAY + timedelta(days=7)


# ── Time ─────────────────────────────────────────────────────────────

@pytest.mark.parametrize("text,expected", [
    ("at 14:00", "14:00"),
    ("at 09:30", "09:30"),
    ("at 2pm", "14:00"),
    ("at 2 PM", "14:00"),
    ("at 2:30pm", "14:30"),
    ("at 12am", "00:00"),
    ("at 12pm", "12:00"),
    ("at 11 a.m.", "11:00"),
])
def test_times(extract, text, expected):
    assert extract(text)["time"] == expected


def test_ambiguous_single_digit_24h_time_is_ignored(extract):
    assert "time" not in extract("at 9:30")


# ── Duration ─────────────────────────────────────────────────────────

@pytest.mark.parametrize("text,expected", [
    ("for 30 minutes", "30"),
    ("for 45 mins", "45"),
    ("for 2 hours", "120"),
    ("for 1 hr", "60"),
])
def test_durations(extract, text, expected):
    assert extract(text)["duration"] == expected


# ── Validation ───────────────────────────────────────────────────────

def test_validate(extractor):
    yesterday = (TODAY - timedelta(days=1)).isoformat()
    assert extractor.validate({}, TODAY)
    assert extractor.validate(None, TODAY)
    assert extractor.validate({"date": TODAY.isoformat(), "time": "14:00", "duration": "30"}, TODAY)
    assert not extractor.validate({"date": yesterday}, TODAY)
    assert not extractor.validate({"duration": "0"}, TODAY)
    assert not extractor.validate({"duration": "1441"}, TODAY)
    assert not extractor.validate({"time": "25:00"}, TODAY)
    assert not extractor.validate({"date": "not-a-date"}, TODAY)


def test_invalid_entities_order(extractor):
    bad = {"duration": "0", "time": "9", "date": "2000-01-01"}
    assert extractor.invalid_entities(bad, TODAY) == ["date", "time", "duration"]


def test_unrelated_keys_are_not_validated(extractor):
    assert extractor.validate({"email": "not an email"}, TODAY)
