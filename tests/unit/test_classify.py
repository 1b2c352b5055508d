"""
Unit tests for field classification.

Covers the priority rules for weight class and gender, the fight status
mapping, winner selection and the record breakdown parser.
"""

from datetime import datetime

import pytest

from fightwatch.classify import (
    RecordBreakdown,
    classify_bout_weight_class,
    classify_event_type,
    classify_fight_status,
    classify_gender,
    classify_stance,
    classify_weight_class,
    determine_winner,
    explicit_gender,
    inches_to_cm,
    parse_record_breakdown,
)
from fightwatch.statuses import (
    CANCELLED,
    COMPLETED,
    EVENT_FIGHT_NIGHT,
    EVENT_PPV,
    FEMALE,
    MALE,
    ORTHODOX,
    SCHEDULED,
    SOUTHPAW,
    STANCE_UNKNOWN,
    SWITCH,
)
from fightwatch.weight_classes import (
    CATCHWEIGHT,
    FLYWEIGHT,
    LIGHT_HEAVYWEIGHT,
    LIGHTWEIGHT,
    WELTERWEIGHT,
)

NOW = datetime(2024, 5, 1, 12, 0)


class TestWeightClass:
    def test_profile_label_wins(self):
        assert classify_weight_class("Welterweight", ["Flyweight Bout"], "UFC 300") == WELTERWEIGHT

    def test_notes_then_event_name(self):
        assert classify_weight_class(None, ["Women's Flyweight Bout"]) == FLYWEIGHT
        assert classify_weight_class(None, [], "UFC Fight Night: Lightweight Showcase") == LIGHTWEIGHT

    def test_no_signal_is_none(self):
        assert classify_weight_class(None, [], "UFC Fight Night: Smith vs. Jones") is None

    def test_bout_uses_first_classified_fighter(self):
        assert classify_bout_weight_class([None, LIGHT_HEAVYWEIGHT], [], None) == LIGHT_HEAVYWEIGHT

    def test_bout_falls_back_to_notes(self):
        assert classify_bout_weight_class([None, None], ["Flyweight Bout"], None) == FLYWEIGHT

    def test_bout_catchweight_only_without_any_signal(self):
        assert classify_bout_weight_class([None, ""], [], "UFC Fight Night") == CATCHWEIGHT


class TestGender:
    def test_explicit_profile_value_wins(self):
        assert classify_gender("Male", competition_name="Women's Flyweight") == MALE
        assert classify_gender("female") == FEMALE

    def test_women_in_competition_or_event_name(self):
        assert classify_gender(None, competition_name="Women's Bantamweight") == FEMALE
        assert classify_gender(None, event_name="UFC Fight Night: Women's Showcase") == FEMALE

    def test_women_in_notes(self):
        assert classify_gender(None, notes=["Women's Strawweight Bout"]) == FEMALE

    def test_feminine_weight_class(self):
        assert classify_gender(None, profile_weight_class="Women's Flyweight") == FEMALE
        assert classify_gender(None, profile_weight_class="Strawweight") == FEMALE

    def test_default_male(self):
        assert classify_gender(None, "Lightweight", "UFC 300", ["Main Event"], "Lightweight") == MALE

    @pytest.mark.parametrize("value,expected", [
        ("F", FEMALE),
        ("Female", FEMALE),
        ("M", MALE),
        ("male", MALE),
        ("unknown", None),
        (None, None),
    ])
    def test_explicit_gender(self, value, expected):
        assert explicit_gender(value) == expected


class TestStance:
    @pytest.mark.parametrize("value,expected", [
        ("Orthodox", ORTHODOX),
        ("southpaw", SOUTHPAW),
        ("SWITCH", SWITCH),
        ("Open Stance", STANCE_UNKNOWN),
        (None, STANCE_UNKNOWN),
    ])
    def test_classify_stance(self, value, expected):
        assert classify_stance(value) == expected


class TestFightStatus:
    def test_post_state_completed(self):
        assert classify_fight_status("post") == COMPLETED

    def test_final_detail_completed(self):
        assert classify_fight_status("in", detail="STATUS_FINAL") == COMPLETED

    def test_completed_flag(self):
        assert classify_fight_status("pre", completed=True) == COMPLETED

    def test_past_date_completed(self):
        assert classify_fight_status("pre", event_date=datetime(2024, 4, 13, 22), now=NOW) == COMPLETED

    def test_future_date_scheduled(self):
        assert classify_fight_status("pre", event_date=datetime(2024, 6, 29, 22), now=NOW) == SCHEDULED

    def test_no_signal_scheduled(self):
        assert classify_fight_status(None) == SCHEDULED

    def test_cancel_wins_over_everything(self):
        assert classify_fight_status("pre", detail="STATUS_CANCELED") == CANCELLED
        assert classify_fight_status(
            "post", completed=True, event_date=datetime(2024, 4, 13), now=NOW, detail="STATUS_CANCELLED"
        ) == CANCELLED


class TestWinner:
    def test_flagged_competitor(self):
        assert determine_winner([False, True], [11, 22]) == 22
        assert determine_winner([True, False], [11, 22]) == 11

    def test_no_winner(self):
        assert determine_winner([False, False], [11, 22]) is None
        assert determine_winner([None, None], [11, 22]) is None

    def test_only_real_true_counts(self):
        assert determine_winner(["true", 1], [11, 22]) is None


class TestEventAndPhysical:
    def test_event_type(self):
        assert classify_event_type("UFC 300: Pereira vs. Hill") == EVENT_PPV
        assert classify_event_type("UFC Fight Night: Moreno vs. Royval 2") == EVENT_FIGHT_NIGHT
        assert classify_event_type(None) == EVENT_FIGHT_NIGHT

    @pytest.mark.parametrize("value,expected", [
        (76, 193),
        (72.5, 184),
        ("70", 178),
        (0, None),
        (None, None),
        ("tall", None),
    ])
    def test_inches_to_cm(self, value, expected):
        assert inches_to_cm(value) == expected


class TestRecordBreakdown:
    def test_full_document(self):
        doc = {
            "items": [
                {"name": "overall", "type": "total", "summary": "20-3-0-1"},
                {"name": "ko", "displayName": "KO/TKO", "stats": [{"name": "wins", "value": 12.0}]},
                {"displayName": "Submissions", "wins": 3},
                {"name": "decision", "wins": "5"},
            ]
        }
        assert parse_record_breakdown(doc) == RecordBreakdown(
            wins=20, losses=3, draws=0, no_contests=1,
            wins_by_ko=12, wins_by_sub=3, wins_by_dec=5,
        )

    def test_summary_without_no_contests(self):
        doc = {"items": [{"type": "total", "summary": "27-1-0"}]}
        result = parse_record_breakdown(doc)
        assert (result.wins, result.losses, result.draws, result.no_contests) == (27, 1, 0, 0)

    @pytest.mark.parametrize("doc", [
        None,
        "not a dict",
        {},
        {"items": "nope"},
        {"items": [{"name": "overall", "summary": "abc"}]},
        {"items": [None, 5]},
    ])
    def test_malformed_input_gives_zeros(self, doc):
        assert parse_record_breakdown(doc) == RecordBreakdown()
