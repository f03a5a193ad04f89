"""Tests for the list query engine against an in-memory SQLite database."""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ella_rises.models import Donation, ParticipantRole
from ella_rises.services.list_query_engine import (
    ListAccessDenied,
    ListParams,
    ListQueryEngine,
    ListQueryError,
    RequestContext,
)
from ella_rises.services.listings import DONATIONS, EVENTS, MILESTONES, PARTICIPANTS, SURVEYS

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

engine = ListQueryEngine(page_size=50)


def run(db, descriptor, context, **query):
    return engine.run(db, descriptor, ListParams.from_query(query), context, now=NOW)


@pytest.fixture
def donor(make_participant):
    return make_participant("Dana", "Giver")


@pytest.fixture
def many_donations(db, donor):
    # Amounts 2.50, 5.00, ... 300.00
    db.add_all([
        Donation(participant_id=donor.id, amount=Decimal("2.5") * i, donated_on=date(2024, 1, 1) + timedelta(days=i))
        for i in range(1, 121)
    ])
    db.commit()


def test_out_of_range_page_clamps_to_last(db, admin_context, many_donations):
    result = run(db, DONATIONS, admin_context, page="999")
    assert result.total_count == 120
    assert result.total_pages == 3
    assert result.current_page == 3
    assert len(result.rows) == 20
    assert result.has_next_page is False
    assert result.has_previous_page is True


def test_empty_listing_has_one_page(db, admin_context):
    result = run(db, DONATIONS, admin_context, page="5")
    assert result.total_count == 0
    assert result.total_pages == 1
    assert result.current_page == 1
    assert result.rows == []
    assert result.aggregates["total_amount"] == 0.0
    assert result.aggregates["average_amount"] is None


def test_min_amount_sorted_desc_last_page(db, admin_context, many_donations):
    result = run(db, DONATIONS, admin_context,
                 filterMinAmount="100", sort="DonationAmount", sortDir="desc", page="3")
    # Amounts >= 100 are i = 40..120 -> 81 rows -> 2 pages
    assert result.total_count == 81
    assert result.total_pages == 2
    assert result.current_page == 2
    amounts = [Decimal(row["donation_amount"]) for row in result.rows]
    assert len(amounts) == 31
    assert amounts == sorted(amounts, reverse=True)
    assert amounts[0] == Decimal("175.00")
    assert amounts[-1] == Decimal("100.00")
    assert result.normalized_sort == {"column": "DonationAmount", "direction": "desc"}
    assert result.normalized_filters == {"filterMinAmount": "100"}


def test_aggregates_match_manual_recomputation(db, admin_context, many_donations):
    query = {"filterMinAmount": "50", "filterMaxAmount": "200", "filterStartDate": "2024-02-01"}
    result = run(db, DONATIONS, admin_context, **query)

    expected = [
        d.amount for d in db.query(Donation).all()
        if Decimal("50") <= d.amount <= Decimal("200") and d.donated_on >= date(2024, 2, 1)
    ]
    assert result.total_count == len(expected)
    assert result.aggregates["count"] == len(expected)
    assert result.aggregates["total_amount"] == pytest.approx(float(sum(expected)), abs=0.01)
    assert result.aggregates["average_amount"] == pytest.approx(float(sum(expected)) / len(expected), abs=0.01)


def test_unknown_sort_falls_back_to_default(db, admin_context, many_donations):
    result = run(db, DONATIONS, admin_context, sort="DonationAmount; DROP TABLE donations", sortDir="sideways")
    assert result.normalized_sort == {"column": "DonationDate", "direction": "desc"}
    dates = [datetime.strptime(row["donation_date"], "%m/%d/%Y").date() for row in result.rows]
    assert dates == sorted(dates, reverse=True)
    assert db.query(Donation).count() == 120


def test_sort_direction_is_case_insensitive(db, admin_context, many_donations):
    result = run(db, DONATIONS, admin_context, sort="DonationAmount", sortDir="ASC")
    assert result.normalized_sort == {"column": "DonationAmount", "direction": "asc"}
    assert result.rows[0]["donation_amount"] == "2.50"


def test_equal_sort_values_tie_break_on_id_desc(db, admin_context, donor, make_donation):
    ids = [make_donation(donor, 50, date(2024, 5, 1)).id for _ in range(5)]
    first = run(db, DONATIONS, admin_context, sort="DonationAmount", sortDir="asc")
    second = run(db, DONATIONS, admin_context, sort="DonationAmount", sortDir="asc")
    assert [r["donation_id"] for r in first.rows] == sorted(ids, reverse=True)
    assert [r["donation_id"] for r in first.rows] == [r["donation_id"] for r in second.rows]


def test_unparseable_numeric_filter_is_skipped(db, admin_context, many_donations):
    result = run(db, DONATIONS, admin_context, filterMinAmount="lots", filterMaxAmount="10")
    assert result.total_count == 4
    assert result.normalized_filters == {"filterMaxAmount": "10"}


def test_age_filters_use_birth_date_cutoffs(db, admin_context, make_participant):
    exactly_25 = make_participant("Ann", "Exact", date_of_birth=date(2000, 6, 15))
    turns_25_tomorrow = make_participant("Ben", "Tomorrow", date_of_birth=date(2000, 6, 16))
    no_birthday = make_participant("Cal", "Unknown")
    older = make_participant("Dee", "Older", date_of_birth=date(1980, 1, 1))

    def ids(**query):
        return {row["participant_id"] for row in run(db, PARTICIPANTS, admin_context, **query).rows}

    assert ids(filterMinAge="25") == {exactly_25.id, older.id}
    assert ids(filterMaxAge="30") == {exactly_25.id, turns_25_tomorrow.id}
    assert ids(filterMinAge="25", filterMaxAge="30") == {exactly_25.id}
    assert no_birthday.id not in ids(filterMinAge="0")
    assert no_birthday.id in ids()


def test_search_matches_first_last_and_full_name(db, admin_context, make_participant):
    first = make_participant("Smith", "Alvarez")
    last = make_participant("Anna", "Smith")
    make_participant("Carl", "Jones")

    def ids(term):
        return {row["participant_id"] for row in run(db, PARTICIPANTS, admin_context, search=term).rows}

    assert ids("smith") == {first.id, last.id}
    assert ids("SMITH") == {first.id, last.id}
    assert ids("smith alv") == {first.id}
    assert ids("anna smi") == {last.id}


def test_search_matches_participant_id_as_text(db, admin_context, make_participant):
    target = make_participant("Zed", "Zulu")
    rows = run(db, PARTICIPANTS, admin_context, search=str(target.id)).rows
    assert target.id in {row["participant_id"] for row in rows}


def test_text_filters(db, admin_context, make_participant):
    provo = make_participant("Eve", "One", city="Provo", state="UT", field_of_interest="STEM")
    make_participant("Fay", "Two", city="Orem", state="UT", field_of_interest="Arts")
    make_participant("Gus", "Three", city="Boise", state="ID", role=ParticipantRole.ADMIN)

    assert run(db, PARTICIPANTS, admin_context, filterCity="pro").total_count == 1
    assert run(db, PARTICIPANTS, admin_context, filterState="ut").total_count == 2
    assert run(db, PARTICIPANTS, admin_context, filterInterest="STEM").rows[0]["participant_id"] == provo.id
    assert run(db, PARTICIPANTS, admin_context, filterRole="admin").total_count == 1


def test_non_admin_only_sees_own_rows(db, make_participant, make_donation, context_of):
    me = make_participant("Me", "Myself")
    other = make_participant("Other", "Person")
    mine = make_donation(me, 25)
    make_donation(other, 500)

    result = run(db, DONATIONS, context_of(me))
    assert [row["donation_id"] for row in result.rows] == [mine.id]
    assert result.aggregates["total_amount"] == 25.0

    people = run(db, PARTICIPANTS, context_of(me))
    assert [row["participant_id"] for row in people.rows] == [me.id]


def test_survey_listing_visibility_and_nps_counts(db, admin_context, make_participant, make_occurrence,
                                                  make_survey, context_of):
    me = make_participant("Me", "Myself")
    other = make_participant("Other", "Person")
    occurrence = make_occurrence("Robotics Night")
    make_survey(me, occurrence, scores=(5, 5, 5, 2))
    make_survey(other, occurrence, scores=(3, 3, 3, 5))

    everything = run(db, SURVEYS, admin_context)
    assert everything.aggregates["promoters"] == 1
    assert everything.aggregates["detractors"] == 1
    assert everything.aggregates["passives"] == 0
    assert everything.aggregates["average_overall"] == pytest.approx(3.875, abs=0.01)

    mine = run(db, SURVEYS, context_of(me))
    assert mine.total_count == 1
    row = mine.rows[0]
    assert row["overall_score"] == "4.25"
    assert row["nps_bucket"] == "Detractor"
    assert row["event_name"] == "Robotics Night"
    assert row["participant_name"] == "Me Myself"

    promoters = run(db, SURVEYS, admin_context, filterNPSBucket="Promoter")
    assert promoters.total_count == 1


def test_milestone_category_filter_and_projection(db, admin_context, make_participant, make_milestone):
    p = make_participant("Mia", "Lopez")
    make_milestone(p, "Graduated high school", "Education", date(2024, 5, 30))
    make_milestone(p, "First internship", "Career", date(2024, 8, 1))

    result = run(db, MILESTONES, admin_context, filterCategory="Education")
    assert result.total_count == 1
    assert result.rows[0]["milestone_date"] == "05/30/2024"
    assert result.rows[0]["participant_email"] == p.email


def test_events_hide_finished_occurrences_for_participants(db, admin_context, make_participant,
                                                           make_occurrence, context_of):
    me = make_participant("Me", "Myself")
    past = make_occurrence("Past Workshop", starts_at=NOW - timedelta(days=3))
    upcoming = make_occurrence("Upcoming Workshop", starts_at=NOW + timedelta(days=3))

    visible = {row["occurrence_id"] for row in run(db, EVENTS, context_of(me)).rows}
    assert visible == {upcoming.id}

    all_ids = {row["occurrence_id"] for row in run(db, EVENTS, admin_context).rows}
    assert all_ids == {past.id, upcoming.id}


def test_projection_formats_age_and_dates(db, admin_context, make_participant):
    make_participant("Ivy", "Young", date_of_birth=date(2010, 12, 31))
    row = run(db, PARTICIPANTS, admin_context).rows[0]
    assert row["age"] == 14
    assert row["date_of_birth"] == "12/31/2010"
    assert row["full_name"] == "Ivy Young"


def test_unauthenticated_context_is_rejected(db):
    with pytest.raises(ListAccessDenied):
        run(db, DONATIONS, RequestContext.anonymous())


def test_query_failure_becomes_list_query_error(admin_context):
    bare = create_engine("sqlite://")
    session = sessionmaker(bind=bare)()
    try:
        with pytest.raises(ListQueryError, match="error loading donations"):
            run(session, DONATIONS, admin_context)
    finally:
        session.close()
        bare.dispose()


@pytest.mark.parametrize("param,value", [
    ("filterMinAge", "2025"),
    ("filterMinAge", "99999"),
    ("filterMaxAge", "99999"),
])
def test_age_beyond_calendar_is_skipped(db, admin_context, make_participant, param, value):
    make_participant("Ann", "Exact", date_of_birth=date(2000, 6, 15))
    make_participant("Cal", "Unknown")

    result = run(db, PARTICIPANTS, admin_context, **{param: value})
    assert result.total_count == 2
    assert result.normalized_filters == {}


def test_oldest_usable_age_still_filters(db, admin_context, make_participant):
    make_participant("Ann", "Exact", date_of_birth=date(2000, 6, 15))
    result = run(db, PARTICIPANTS, admin_context, filterMinAge="2024")
    assert result.total_count == 0
    assert result.normalized_filters == {"filterMinAge": "2024"}


def test_end_date_on_last_calendar_day(db, admin_context, make_participant, make_occurrence, make_survey):
    p = make_participant()
    make_survey(p, make_occurrence())

    for descriptor in (PARTICIPANTS, SURVEYS, EVENTS):
        result = run(db, descriptor, admin_context, filterEndDate="9999-12-31")
        assert result.total_count >= 1
        assert result.normalized_filters == {"filterEndDate": "9999-12-31"}


def test_end_date_includes_the_whole_day(db, admin_context, make_participant, make_occurrence, make_survey):
    make_survey(make_participant(), make_occurrence(), submitted_at=datetime(2025, 6, 15, 23, 30))

    assert run(db, SURVEYS, admin_context, filterEndDate="2025-06-15").total_count == 1
    assert run(db, SURVEYS, admin_context, filterEndDate="2025-06-14").total_count == 0


def test_unknown_role_filter_is_skipped(db, admin_context, make_participant):
    make_participant("Ada", "Admin", role=ParticipantRole.ADMIN)
    make_participant("Pat", "Person")

    result = run(db, PARTICIPANTS, admin_context, filterRole="superuser")
    assert result.total_count == 2
    assert result.normalized_filters == {}

    admins = run(db, PARTICIPANTS, admin_context, filterRole="admin")
    assert admins.total_count == 1
    assert admins.normalized_filters == {"filterRole": "admin"}


def test_nps_filter_by_dashboard_name(db, admin_context, make_participant, make_occurrence, make_survey):
    occurrence = make_occurrence()
    make_survey(make_participant(), occurrence, scores=(5, 5, 5, 5))
    make_survey(make_participant(), occurrence, scores=(1, 1, 1, 1))

    promoters = run(db, SURVEYS, admin_context, filterNPS="Promoter")
    assert promoters.total_count == 1
    assert promoters.rows[0]["nps_bucket"] == "Promoter"
    assert promoters.normalized_filters == {"filterNPS": "Promoter"}

    unknown = run(db, SURVEYS, admin_context, filterNPS="Fan")
    assert unknown.total_count == 2
    assert unknown.normalized_filters == {}
