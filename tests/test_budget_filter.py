from conftest import make_item
from telco_reco.schemas.user_schema import BudgetTier
from telco_reco.services.budget_filter import BudgetFilter


def test_low_budget_keeps_only_cheap_items(policy):
    items = [make_item("a", price=40_000), make_item("b", price=150_000), make_item("c", price=500_000)]
    filtered = BudgetFilter(policy).filter(items, BudgetTier.LOW)
    assert [item.id for item in filtered] == ["a"]


def test_relaxes_to_input_when_nothing_fits(policy):
    items = [make_item("b", price=150_000), make_item("c", price=500_000)]
    filtered = BudgetFilter(policy).filter(items, BudgetTier.LOW)
    assert filtered == items


def test_ranges_are_inclusive(policy):
    budget_filter = BudgetFilter(policy)
    medium = [make_item("lo", price=30_000), make_item("hi", price=200_000), make_item("out", price=200_001)]
    assert [i.id for i in budget_filter.filter(medium, BudgetTier.MEDIUM)] == ["lo", "hi"]

    high = [make_item("edge", price=80_000), make_item("below", price=79_999), make_item("huge", price=9_000_000)]
    assert [i.id for i in budget_filter.filter(high, BudgetTier.HIGH)] == ["edge", "huge"]


def test_no_budget_passes_through(policy):
    items = [make_item("a", price=1), make_item("b", price=10_000_000)]
    assert BudgetFilter(policy).filter(items, None) == items


def test_never_empties_non_empty_input(policy):
    budget_filter = BudgetFilter(policy)
    prices = [0, 29_999, 30_000, 100_000, 100_001, 200_000, 250_000]
    for tier in (None, BudgetTier.LOW, BudgetTier.MEDIUM, BudgetTier.HIGH):
        for price in prices:
            assert budget_filter.filter([make_item("x", price=price)], tier)


def test_empty_input_stays_empty(policy):
    assert BudgetFilter(policy).filter([], BudgetTier.HIGH) == []
