# tests/test_query.py
from datetime import datetime, timedelta, timezone

from billager.query import query_listings
from billager.schemas import Listing

T0 = datetime(2024, 5, 1, tzinfo=timezone.utc)


def make_listing(id, year, price, km=0, brand="Volvo", model="V70", minutes=0):
    created = T0 + timedelta(minutes=minutes)
    return Listing(
        id=id, brand=brand, model=model, year=year, km=km, price=price,
        owner_name="Ola", owner_phone="123", created_at=created, updated_at=created,
    )


def volvos():
    return [
        make_listing("a", 2018, 100000, km=150000, minutes=0),
        make_listing("b", 2020, 300000, km=30000, minutes=1),
        make_listing("c", 2019, 200000, km=90000, minutes=2),
    ]


def test_search_by_brand_sorted_by_price():
    result = query_listings(volvos(), "volvo", "price")
    assert [l.price for l in result] == [300000, 200000, 100000]


def test_search_by_year_ignores_created_order():
    result = query_listings(volvos(), "2020", "date")
    assert [l.id for l in result] == ["b"]


def test_empty_search_matches_everything_newest_first():
    assert [l.id for l in query_listings(volvos())] == ["c", "b", "a"]


def test_search_is_trimmed_and_case_insensitive():
    cars = volvos() + [make_listing("d", 2015, 5000, brand="Toyota", model="Corolla")]
    assert [l.id for l in query_listings(cars, "  COROLLA ")] == ["d"]
    assert [l.id for l in query_listings(cars, "toy")] == ["d"]


def test_km_sorts_ascending():
    assert [l.id for l in query_listings(volvos(), "", "km")] == ["b", "c", "a"]


def test_unknown_sort_key_falls_back_to_date():
    assert [l.id for l in query_listings(volvos(), "", "colour")] == ["c", "b", "a"]


def test_ties_keep_input_order():
    cars = [make_listing(str(i), 2018, 1000) for i in range(5)]
    assert [l.id for l in query_listings(cars, "", "price")] == ["0", "1", "2", "3", "4"]
    assert [l.id for l in query_listings(cars, "", "date")] == ["0", "1", "2", "3", "4"]


def test_input_is_not_mutated():
    cars = volvos()
    query_listings(cars, "", "price")
    assert [l.id for l in cars] == ["a", "b", "c"]


def test_no_match_returns_empty():
    assert query_listings(volvos(), "saab", "date") == []
