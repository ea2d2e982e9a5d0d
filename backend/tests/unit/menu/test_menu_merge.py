"""Unit tests for cross-page merging of extracted menu items"""

import pytest

from menuflow.domain.extraction.merge import (
    bucket_for_confidence,
    build_dedupe_key,
    merge_page_results,
)
from menuflow.domain.ingestion.models import MergeOptions, PageResult, StagingRow

from fixtures.pipeline import menu_page


def _page(number, *categories, currency="EUR"):
    return PageResult(page=number, payload=menu_page(*categories, currency=currency))


class TestDedupeKey:

    def test_key_is_case_and_whitespace_insensitive(self):
        row = StagingRow(name="  Pizza ", price_cents=1000, currency="EUR")
        assert build_dedupe_key(row) == "pizza::1000::EUR"

    def test_missing_price_and_currency(self):
        row = StagingRow(name="Soup")
        assert build_dedupe_key(row) == "soup::-1::"
        assert build_dedupe_key(row, fallback_currency="USD") == "soup::-1::USD"


class TestMergePageResults:

    def test_duplicate_across_pages_keeps_higher_confidence(self):
        """Pizza (0.6) on page 1 and pizza (0.9) on page 2 merge into one row"""
        pages = [
            _page(1, ("Mains", [{"name": "Pizza", "price": 10.00, "confidence": 0.6}])),
            _page(2, ("Mains", [{"name": "pizza", "price": 10.00, "confidence": 0.9,
                                 "description": "Wood fired"}])),
        ]

        result = merge_page_results(pages, MergeOptions(ingestion_currency="EUR"))

        assert result.items_count == 1
        item = result.items[0]
        assert item.name == "pizza"
        assert item.confidence == 0.9
        assert item.description == "Wood fired"
        assert result.confidence_buckets == {"ge_90": 1, "ge_75": 0, "ge_55": 0, "lt_55": 0}

    def test_lower_confidence_row_does_not_replace_fields(self):
        pages = [
            _page(1, ("Mains", [{"name": "Lasagne", "price": 14, "confidence": 0.9,
                                 "description": "Beef ragu"}])),
            _page(2, ("Mains", [{"name": "LASAGNE", "price": 14, "confidence": 0.4,
                                 "description": "garbled"}])),
        ]

        result = merge_page_results(pages)

        assert result.items_count == 1
        assert result.items[0].name == "Lasagne"
        assert result.items[0].description == "Beef ragu"

    def test_flags_are_union_of_both_rows(self):
        """The discarded low-confidence row still contributes its flags"""
        pages = [
            _page(1, ("Mains", [{"name": "Risotto", "price": 12, "confidence": 0.3}])),
            _page(2, ("Mains", [{"name": "Risotto", "price": 12, "confidence": 0.8}])),
        ]

        result = merge_page_results(pages)

        assert result.items_count == 1
        assert result.items[0].confidence == 0.8
        assert result.items[0].flags["low_confidence"] is True

    def test_equal_confidence_keeps_earlier_page(self):
        pages = [
            _page(2, ("Mains", [{"name": "gnocchi", "price": 9, "confidence": 0.7}])),
            _page(1, ("Mains", [{"name": "Gnocchi", "price": 9, "confidence": 0.7}])),
        ]

        result = merge_page_results(pages)

        assert result.items[0].name == "Gnocchi"

    def test_same_name_different_price_is_not_a_duplicate(self):
        pages = [
            _page(1, ("Wine", [
                {"name": "House Red", "price": 6, "confidence": 0.9},
                {"name": "House Red", "price": 24, "confidence": 0.9},
            ])),
        ]

        result = merge_page_results(pages)

        assert result.items_count == 2

    def test_sorted_by_category_then_name_with_null_category_last(self):
        pages = [
            _page(1,
                  (None, [{"name": "Zed", "price": 1}]),
                  ("Mains", [{"name": "Pizza", "price": 10}, {"name": "Calzone", "price": 11}]),
                  ("Drinks", [{"name": "Ale", "price": 4.5}])),
        ]

        result = merge_page_results(pages)

        assert [(item.category_name, item.name) for item in result.items] == [
            ("Drinks", "Ale"),
            ("Mains", "Calzone"),
            ("Mains", "Pizza"),
            (None, "Zed"),
        ]

    def test_raw_text_and_structured_projection(self):
        pages = [
            _page(1,
                  ("Drinks", [{"name": "Ale", "price": 4.5, "confidence": 0.95, "is_alcohol": True,
                               "allergens": ["gluten"]}]),
                  (None, [{"name": "Bread"}])),
        ]

        result = merge_page_results(pages, MergeOptions(ingestion_currency="EUR"))

        assert result.raw_text == "Drinks :: Ale :: 4.50 EUR\nUncategorised :: Bread :: n/a"
        assert result.structured == {
            "currency": "EUR",
            "categories": [
                {"name": "Drinks", "items": [{
                    "name": "Ale",
                    "price": 4.5,
                    "currency": "EUR",
                    "is_alcohol": True,
                    "allergens": ["gluten"],
                    "confidence": 0.95,
                }]},
                {"name": "Uncategorised", "items": [{
                    "name": "Bread",
                    "price": 0,
                    "currency": "EUR",
                    "is_alcohol": False,
                }]},
            ],
        }

    def test_structured_prices_round_trip_to_cents(self):
        pages = [_page(1, ("Mains", [
            {"name": "A", "price": 12.345},
            {"name": "B", "price": 0.1},
            {"name": "C", "price": 1099.99},
        ]))]

        result = merge_page_results(pages)

        cents_by_name = {item.name: item.price_cents for item in result.items}
        for entry in result.structured["categories"][0]["items"]:
            assert round(entry["price"] * 100) == cents_by_name[entry["name"]]

    def test_structured_currency_falls_back_to_first_page(self):
        pages = [_page(1, ("Mains", [{"name": "Taco", "price": 3}]), currency="mxn")]

        result = merge_page_results(pages)

        assert result.structured["currency"] == "MXN"
        assert result.items[0].currency is None
        assert result.structured["categories"][0]["items"][0]["currency"] == "XXX"

    def test_structured_currency_unknown_without_any_source(self):
        result = merge_page_results([PageResult(page=1, payload={"categories": []})])

        assert result.structured == {"currency": "XXX", "categories": []}
        assert result.items_count == 0
        assert result.max_price_cents == 0

    def test_max_price_and_price_flags(self):
        pages = [_page(1, ("Mains", [
            {"name": "A", "price": 10},
            {"name": "B", "price": 10},
            {"name": "C", "price": 10},
            {"name": "D", "price": 500},
            {"name": "E"},
        ]))]

        result = merge_page_results(pages, MergeOptions(price_ceiling_cents=40_000))

        flags = {item.name: item.flags for item in result.items}
        assert result.max_price_cents == 50_000
        assert flags["D"] == {"high_price": True, "price_threshold_cents": 40_000}
        assert flags["E"] == {"missing_price": True}
        assert flags["A"] == {}

    def test_malformed_payloads_are_ignored(self):
        pages = [
            PageResult(page=1, payload={"categories": "nope"}),
            PageResult(page=2, payload={"categories": [None, {"name": "Mains", "items": [
                "junk", {"price": 3}, {"name": "   "}, {"name": "Real", "price": 3},
            ]}]}),
        ]

        result = merge_page_results(pages)

        assert [item.name for item in result.items] == ["Real"]


@pytest.mark.parametrize("confidence,bucket", [
    (0.95, "ge_90"),
    (0.90, "ge_90"),
    (0.8, "ge_75"),
    (0.55, "ge_55"),
    (0.2, "lt_55"),
    (None, "lt_55"),
])
def test_bucket_for_confidence(confidence, bucket):
    assert bucket_for_confidence(confidence) == bucket
