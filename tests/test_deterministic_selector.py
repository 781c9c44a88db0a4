import pytest

from conftest import make_item
from telco_reco.schemas.user_schema import BudgetTier
from telco_reco.services.deterministic_selector import select_one


def _items():
    return [
        make_item("pricey-popular", price=90_000, purchase_count=900),
        make_item("cheap", price=20_000, purchase_count=10),
        make_item("cheap-popular", price=20_000, purchase_count=300),
        make_item("mid", price=50_000, purchase_count=900),
    ]


def test_default_prefers_price_then_popularity():
    assert select_one(_items(), None).id == "cheap-popular"
    assert select_one(_items(), BudgetTier.MEDIUM).id == "cheap-popular"


def test_low_budget_is_cheapest_first():
    # 同价时按 id
    assert select_one(_items(), BudgetTier.LOW).id == "cheap"


def test_high_budget_prefers_popularity_then_price():
    assert select_one(_items(), BudgetTier.HIGH).id == "mid"


def test_choice_does_not_depend_on_input_order():
    items = _items()
    for budget in (None, BudgetTier.LOW, BudgetTier.MEDIUM, BudgetTier.HIGH):
        assert select_one(items, budget) == select_one(list(reversed(items)), budget)


def test_repeated_calls_are_identical():
    items = _items()
    assert {select_one(items, BudgetTier.HIGH).id for _ in range(20)} == {"mid"}


def test_empty_input_raises():
    with pytest.raises(ValueError):
        select_one([], None)
