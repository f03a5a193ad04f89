"""Unit tests for request parameter parsing and date helpers used by listings."""
from datetime import date
from decimal import Decimal

from ella_rises.services.list_query_engine import (
    FilterKind,
    FilterSpec,
    ListParams,
    age_on,
    parse_page,
    total_pages_for,
    years_before,
)
from ella_rises.models import Donation, Participant


def test_from_query_reads_known_keys_and_filters():
    params = ListParams.from_query({
        "search": "  smith ",
        "sort": "DonationAmount",
        "sortDir": "DESC",
        "page": "3",
        "filterMinAmount": "100",
        "filterCity": "   ",
        "unrelated": "x",
    })
    assert params.search == "smith"
    assert params.sort == "DonationAmount"
    assert params.sort_dir == "DESC"
    assert params.page == "3"
    assert params.filters == {"filterMinAmount": "100"}


def test_blank_search_is_absent():
    assert ListParams.from_query({"search": "   "}).search is None


def test_parse_page():
    assert parse_page(None) == 1
    assert parse_page("4") == 4
    assert parse_page("0") == 1
    assert parse_page("-3") == 1
    assert parse_page("2.5") == 1
    assert parse_page("abc") == 1


def test_total_pages_never_below_one():
    assert total_pages_for(0, 50) == 1
    assert total_pages_for(50, 50) == 1
    assert total_pages_for(51, 50) == 2
    assert total_pages_for(120, 50) == 3


def test_years_before_handles_leap_day():
    assert years_before(date(2025, 6, 15), 25) == date(2000, 6, 15)
    assert years_before(date(2024, 2, 29), 1) == date(2023, 2, 28)


def test_age_on_birthday_boundary():
    today = date(2025, 6, 15)
    assert age_on(date(2000, 6, 15), today) == 25
    assert age_on(date(2000, 6, 16), today) == 24
    assert age_on(None, today) is None


def test_unparseable_filter_values_are_absent():
    amount = FilterSpec("filterMinAmount", Donation.amount, FilterKind.NUMBER_MIN)
    assert amount.parse("12.50") == Decimal("12.50")
    assert amount.parse("lots") is None
    assert amount.parse("NaN") is None

    start = FilterSpec("filterStartDate", Donation.donated_on, FilterKind.DATE_MIN)
    assert start.parse("2024-01-31") == date(2024, 1, 31)
    assert start.parse("2024-02-31") is None

    age = FilterSpec("filterMinAge", None, FilterKind.AGE_MIN)
    assert age.parse("18") == 18
    assert age.parse("-1") is None
    assert age.parse("eighteen") is None


def test_out_of_calendar_bounds_produce_no_condition():
    today = date(2025, 6, 15)
    min_age = FilterSpec("filterMinAge", Participant.date_of_birth, FilterKind.AGE_MIN)
    assert min_age.condition(2025, today) is None
    assert min_age.condition(2024, today) is not None

    end = FilterSpec("filterEndDate", Participant.created_at, FilterKind.DATE_MAX, is_datetime=True)
    assert end.condition(date.max, today) is not None


def test_choices_reject_unknown_values():
    role = FilterSpec("filterRole", Participant.role, FilterKind.EXACT, choices=frozenset({"admin", "participant"}))
    assert role.parse("admin") == "admin"
    assert role.parse("Admin") is None
    assert role.parse("superuser") is None
