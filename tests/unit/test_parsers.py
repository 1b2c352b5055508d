"""Unit tests for ESPN payload parsers."""

from datetime import datetime

from espn_payloads import athlete_doc, athlete_ref, competition_doc, event_doc

from fightwatch.espn.parsers import (
    PLACEHOLDER_LOCATION,
    athlete_id_from_ref,
    parse_athlete,
    parse_competition,
    parse_espn_datetime,
    parse_event,
)


class TestDates:
    def test_zulu_time(self):
        assert parse_espn_datetime("2024-04-13T22:00Z") == datetime(2024, 4, 13, 22, 0)

    def test_offset_converted_to_utc(self):
        assert parse_espn_datetime("2024-04-13T18:00-04:00") == datetime(2024, 4, 13, 22, 0)

    def test_unparseable(self):
        assert parse_espn_datetime("TBD") is None
        assert parse_espn_datetime(None) is None
        assert parse_espn_datetime("") is None


def test_athlete_id_from_ref():
    assert athlete_id_from_ref(athlete_ref("2504169")) == "2504169"
    assert athlete_id_from_ref("http://example.test/nothing") is None
    assert athlete_id_from_ref(None) is None


class TestParseCompetition:
    def test_full_competition(self):
        doc = competition_doc(
            "401650001", "2504169", "3029097",
            state="post", completed=True, winner="2504169",
            notes=("Light Heavyweight Championship",), name="Light Heavyweight",
            detail="STATUS_FINAL", rounds=5,
        )

        competition = parse_competition(doc, position=1)

        assert competition.espn_id == "401650001"
        assert competition.name == "Light Heavyweight"
        assert competition.notes == ["Light Heavyweight Championship"]
        assert competition.state == "post"
        assert competition.status_detail == "STATUS_FINAL"
        assert competition.completed is True
        assert competition.rounds == 5
        assert [c.athlete_id for c in competition.competitors] == ["2504169", "3029097"]
        assert [c.winner for c in competition.competitors] == [True, False]

    def test_competitor_without_ref_dropped(self):
        doc = competition_doc("1", "10", "20")
        doc["competitors"][1].pop("athlete")

        competition = parse_competition(doc, position=3)

        assert len(competition.competitors) == 1
        assert competition.card_position == 3

    def test_missing_format_defaults_to_three_rounds(self):
        doc = competition_doc("1", "10", "20")
        doc.pop("format")

        assert parse_competition(doc, position=1).rounds == 3

    def test_not_a_dict(self):
        assert parse_competition(None, position=1) is None


class TestParseEvent:
    def test_event(self):
        doc = event_doc("600041", "UFC 300: Pereira vs. Hill", "2024-04-13T22:00Z", [
            competition_doc("1", "10", "20"),
            competition_doc("2", "30", "40"),
        ])

        event = parse_event(doc)

        assert event.espn_id == "600041"
        assert event.name == "UFC 300: Pereira vs. Hill"
        assert event.date == datetime(2024, 4, 13, 22, 0)
        assert event.venue == "T-Mobile Arena"
        assert event.city == "Las Vegas"
        assert event.country == "USA"
        assert [c.card_position for c in event.competitions] == [1, 2]

    def test_missing_venue_uses_placeholder(self):
        doc = event_doc("1", "UFC Fight Night", "2024-04-13T22:00Z", [])
        doc.pop("venue")

        event = parse_event(doc)

        assert event.venue == PLACEHOLDER_LOCATION
        assert event.city == PLACEHOLDER_LOCATION
        assert event.country is None

    def test_venues_list_fallback(self):
        doc = event_doc("1", "UFC Fight Night", "2024-04-13T22:00Z", [])
        doc["venues"] = [doc.pop("venue")]

        assert parse_event(doc).venue == "T-Mobile Arena"

    def test_missing_required_fields(self):
        doc = event_doc("1", "UFC Fight Night", "2024-04-13T22:00Z", [])
        assert parse_event({**doc, "name": None}) is None
        assert parse_event({**doc, "id": None}) is None
        assert parse_event({k: v for k, v in doc.items() if k != "competitions"}) is None
        assert parse_event("not a dict") is None


class TestParseAthlete:
    def test_athlete(self):
        doc = athlete_doc("2504169", "Alex", "Pereira", weight_class="Light Heavyweight", gender="MALE")

        athlete = parse_athlete(doc)

        assert athlete.espn_id == "2504169"
        assert athlete.full_name == "Alex Pereira"
        assert athlete.weight_class == "Light Heavyweight"
        assert athlete.gender == "MALE"
        assert athlete.stance == "Orthodox"
        assert athlete.height_in == 76.0
        assert athlete.date_of_birth == datetime(1987, 7, 7, 7, 0)
        assert athlete.image_url.endswith("/2504169.png")

    def test_missing_names_fall_back(self):
        athlete = parse_athlete({"id": "1"})

        assert athlete.first_name == "Unknown"
        assert athlete.last_name == "Fighter"
        assert athlete.stance is None

    def test_dict_shaped_gender_and_weight_class(self):
        doc = athlete_doc("1", "Zhang", "Weili")
        doc["gender"] = {"type": "F"}
        doc["weightClass"] = {"shortName": "Strawweight"}

        athlete = parse_athlete(doc)

        assert athlete.gender == "F"
        assert athlete.weight_class == "Strawweight"
