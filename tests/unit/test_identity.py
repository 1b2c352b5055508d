"""
Unit tests for FighterIdentityService.

Each cascade step is exercised on its own, plus the guarantees the sync
relies on: the same input always resolves to the same row, and a fighter
found by name adopts the incoming ESPN id instead of being duplicated.
"""

import pytest

from fightwatch.db.models import Event, Fighter, Organization
from fightwatch.fighters.identity import FighterIdentityService


def make_fighter(db, organization, first_name, last_name, espn_id=None):
    fighter = Fighter(
        organization_id=organization.id,
        first_name=first_name,
        last_name=last_name,
        espn_id=espn_id,
    )
    db.add(fighter)
    db.flush()
    return fighter


@pytest.fixture
def identity(db_session, organization):
    return FighterIdentityService(db_session, organization.id)


class TestFindFighter:
    def test_external_id_step(self, db_session, organization, identity):
        jones = make_fighter(db_session, organization, "Jon", "Jones", espn_id="2335639")

        match = identity.find_fighter("Jonathan", "Jones", external_id="2335639")

        assert match.fighter_id == jones.id
        assert match.match_type == "external_id"

    def test_case_insensitive_exact_name(self, db_session, organization, identity):
        adesanya = make_fighter(db_session, organization, "Israel", "Adesanya")

        match = identity.find_fighter("israel", "ADESANYA")

        assert match.fighter_id == adesanya.id
        assert match.match_type == "exact_name"

    def test_normalized_name(self, db_session, organization, identity):
        prochazka = make_fighter(db_session, organization, "Jiří", "Procházka")

        match = identity.find_fighter("Jiri", "Prochazka")

        assert match.fighter_id == prochazka.id
        assert match.match_type == "normalized"

    def test_compact_name(self, db_session, organization, identity):
        waldo = make_fighter(db_session, organization, "Waldo", "Cortes-Acosta")

        match = identity.find_fighter("Waldo", "CortesAcosta")

        assert match.fighter_id == waldo.id
        assert match.match_type == "compact"

    def test_compact_name_with_surname_split_differently(self, db_session, organization, identity):
        waldo = make_fighter(db_session, organization, "Waldo Cortes", "Acosta")

        match = identity.find_fighter("Waldo", "CortesAcosta")

        assert match.fighter_id == waldo.id
        assert match.match_type == "compact"

    def test_first_name_prefix(self, db_session, organization, identity):
        volk = make_fighter(db_session, organization, "Alexander", "Volkanovski")

        match = identity.find_fighter("Alex", "Volkanovski")

        assert match.fighter_id == volk.id
        assert match.match_type == "prefix"

    def test_ambiguous_prefix_is_not_found(self, db_session, organization, identity):
        make_fighter(db_session, organization, "Alexander", "Volkov")
        make_fighter(db_session, organization, "Alexey", "Volkov")

        assert identity.find_fighter("Alex", "Volkov") is None

    def test_not_found(self, db_session, organization, identity):
        make_fighter(db_session, organization, "Jon", "Jones")

        assert identity.find_fighter("Stipe", "Miocic") is None
        assert identity.find_fighter("", "") is None

    def test_scoped_to_organization(self, db_session, organization, identity):
        bellator = Organization(name="Bellator MMA", short_name="BELLATOR")
        db_session.add(bellator)
        db_session.flush()
        make_fighter(db_session, bellator, "Patricio", "Pitbull", espn_id="3000")

        assert identity.find_fighter("Patricio", "Pitbull") is None
        assert identity.find_fighter("Patricio", "Pitbull", external_id="3000") is None

    def test_adopts_external_id_when_found_by_name(self, db_session, organization, identity):
        pereira = make_fighter(db_session, organization, "Alex", "Pereira")

        match = identity.find_fighter("Alex", "Pereira", external_id="2504169")
        db_session.flush()

        assert match.fighter_id == pereira.id
        assert pereira.espn_id == "2504169"
        again = identity.find_fighter("Alex", "Pereira", external_id="2504169")
        assert again.match_type == "external_id"
        assert db_session.query(Fighter).count() == 1

    def test_replaces_stale_external_id(self, db_session, organization, identity):
        fighter = make_fighter(db_session, organization, "Alex", "Pereira", espn_id="111")

        match = identity.find_fighter("Alex", "Pereira", external_id="222")

        assert match.fighter_id == fighter.id
        assert fighter.espn_id == "222"

    @pytest.mark.parametrize("first,last,external_id", [
        ("Israel", "Adesanya", None),
        ("israel", "adesanya", "3000001"),
        ("Izzy", "Adesanya", None),
    ])
    def test_idempotent(self, db_session, organization, identity, first, last, external_id):
        make_fighter(db_session, organization, "Israel", "Adesanya")

        first_result = identity.find_fighter(first, last, external_id=external_id)
        db_session.flush()
        second_result = identity.find_fighter(first, last, external_id=external_id)

        if first_result is None:
            assert second_result is None
        else:
            assert second_result.fighter_id == first_result.fighter_id


class TestFullNameAndSuggestions:
    def test_find_by_full_name(self, db_session, organization, identity):
        adesanya = make_fighter(db_session, organization, "Israel", "Adesanya")
        dos_anjos = make_fighter(db_session, organization, "Rafael", "dos Anjos")

        assert identity.find_fighter_by_full_name("Israel Adesanya").fighter_id == adesanya.id
        assert identity.find_fighter_by_full_name("  Rafael   Dos Anjos ").fighter_id == dos_anjos.id

    def test_full_name_does_not_write(self, db_session, organization, identity):
        fighter = make_fighter(db_session, organization, "Israel", "Adesanya")

        identity.find_fighter_by_full_name("Israel Adesanya")

        assert fighter.espn_id is None

    def test_suggest_ranks_close_names(self, db_session, organization, identity):
        jones = make_fighter(db_session, organization, "Jon", "Jones")
        make_fighter(db_session, organization, "Islam", "Makhachev")

        suggestions = identity.suggest("Jon Jnes")

        assert suggestions
        assert suggestions[0][0].id == jones.id
        assert all(score >= 0.8 for _, score in suggestions)


class TestFindEvent:
    def test_by_external_id(self, db_session, organization, identity):
        event = Event(organization_id=organization.id, espn_id="600041", name="UFC 300", event_type="PPV")
        db_session.add(event)
        db_session.flush()

        assert identity.find_event("600041", "Renamed") is event

    def test_by_name_adopts_id(self, db_session, organization, identity):
        event = Event(organization_id=organization.id, name="UFC 300", event_type="PPV")
        db_session.add(event)
        db_session.flush()

        found = identity.find_event("600041", "UFC 300")

        assert found is event
        assert event.espn_id == "600041"

    def test_not_found(self, identity):
        assert identity.find_event("1", "Nothing") is None
        assert identity.find_event(None, None) is None
