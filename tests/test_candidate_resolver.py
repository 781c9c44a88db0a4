from conftest import make_item
from telco_reco.schemas.catalog_schema import Category
from telco_reco.services.candidate_resolver import CandidateResolver


def test_exact_target_offer_match(policy, mixed_catalog):
    candidates = CandidateResolver(policy).resolve(mixed_catalog, "Data Booster", set())
    assert {item.id for item in candidates} == {"data-10gb", "data-25gb"}


def test_excluded_ids_are_removed(policy, mixed_catalog):
    candidates = CandidateResolver(policy).resolve(mixed_catalog, "Data Booster", {"data-10gb"})
    assert [item.id for item in candidates] == ["data-25gb"]


def test_falls_back_to_category_mapping(policy):
    catalog = [
        make_item("voice-a", Category.VOICE, target_offer=None),
        make_item("voice-b", Category.VOICE, target_offer="Something Else"),
        make_item("data-a", Category.DATA),
    ]
    candidates = CandidateResolver(policy).resolve(catalog, "Voice Bundle", set())
    assert {item.id for item in candidates} == {"voice-a", "voice-b"}


def test_category_fallback_when_exact_matches_all_used(policy, mixed_catalog):
    candidates = CandidateResolver(policy).resolve(mixed_catalog, "Data Booster", {"data-10gb", "data-25gb"})
    assert candidates == []

    catalog = mixed_catalog + [make_item("data-extra", Category.DATA)]
    candidates = CandidateResolver(policy).resolve(catalog, "Data Booster", {"data-10gb", "data-25gb"})
    assert [item.id for item in candidates] == ["data-extra"]


def test_unknown_label_returns_empty(policy, mixed_catalog):
    assert CandidateResolver(policy).resolve(mixed_catalog, "Crypto Miner", set()) == []


def test_inactive_items_are_ignored(policy):
    catalog = [
        make_item("off", Category.ROAMING, target_offer="Roaming Pass", is_active=False),
        make_item("on", Category.ROAMING),
    ]
    candidates = CandidateResolver(policy).resolve(catalog, "Roaming Pass", set())
    assert [item.id for item in candidates] == ["on"]
