import pytest

from telco_reco.schemas.classifier_schema import OfferSource, PairedOfferResponse, TopOffersResponse
from telco_reco.services.response_normalizer import (AGREEMENT_REASON, SOCIAL_PROOF_REASON, ResponseNormalizer,
                                                     detect_shape)
from telco_reco.utils.exceptions import ClassifierUnavailableError


def test_detect_shape_top_offers():
    reply = detect_shape({"top_offers": ["Data Booster"], "confidence_score": 0.8})
    assert isinstance(reply, TopOffersResponse)


def test_detect_shape_paired():
    reply = detect_shape({"recommendation": {"primary_offer": "Voice Bundle", "confidence_score": 0.7}})
    assert isinstance(reply, PairedOfferResponse)


def test_detect_shape_unknown_returns_none():
    assert detect_shape({"offers": "Data Booster"}) is None
    assert detect_shape(["Data Booster"]) is None
    assert detect_shape(None) is None


def test_detect_shape_invalid_fields_raise():
    with pytest.raises(ClassifierUnavailableError):
        detect_shape({"top_offers": [1, {"x": 2}], "confidence_score": "high"})


def test_top_offers_decay_and_floor(policy):
    labels = ["Data Booster", "Voice Bundle", "Roaming Pass"]
    offers = ResponseNormalizer(policy).normalize({"top_offers": labels, "confidence_score": 0.9})

    assert [o.label for o in offers] == labels
    assert [o.rank for o in offers] == [0, 1, 2]
    assert offers[0].confidence_score == pytest.approx(0.9)
    assert offers[1].confidence_score == pytest.approx(0.873)
    assert offers[2].confidence_score == pytest.approx(0.9 * 0.97 ** 2, abs=1e-4)
    assert all(o.source == OfferSource.CLASSIFIER for o in offers)
    assert offers[0].explanation.endswith("(Top recommendation)")
    assert offers[1].explanation == "Alternative recommendation (Rank 2)"


def test_top_offers_scores_monotonic_and_floored(policy):
    labels = [f"Offer {i}" for i in range(60)]
    offers = ResponseNormalizer(policy).normalize({"top_offers": labels, "confidence_score": 0.5})

    scores = [o.confidence_score for o in offers]
    assert scores == sorted(scores, reverse=True)
    assert min(scores) == pytest.approx(policy.score_floor)
    assert max(scores) == scores[0]


def test_top_offers_primary_is_prepended_and_deduplicated(policy):
    offers = ResponseNormalizer(policy).normalize({
        "primary_offer": "Voice Bundle",
        "top_offers": ["Voice Bundle", "Data Booster", "Data Booster"],
        "confidence_score": 0.8,
    })
    assert [o.label for o in offers] == ["Voice Bundle", "Data Booster"]


def test_percentage_confidence_is_scaled(policy):
    offers = ResponseNormalizer(policy).normalize({"top_offers": ["Data Booster"], "confidence_score": 85})
    assert offers[0].confidence_score == pytest.approx(0.85)


def test_missing_confidence_uses_default(policy):
    offers = ResponseNormalizer(policy).normalize({"top_offers": ["Data Booster"]})
    assert offers[0].confidence_score == pytest.approx(policy.default_confidence)


def test_paired_secondary_is_scaled(policy):
    offers = ResponseNormalizer(policy).normalize({
        "recommendation": {
            "primary_offer": "Data Booster",
            "social_proof_offer": "Streaming Partner Pack",
            "confidence_score": 0.8,
        },
        "message": "Heavy data user",
    })
    assert [(o.label, o.rank) for o in offers] == [("Data Booster", 0), ("Streaming Partner Pack", 1)]
    assert offers[0].confidence_score == pytest.approx(0.8)
    assert offers[0].explanation == "Heavy data user"
    assert offers[1].confidence_score == pytest.approx(0.68)
    assert offers[1].explanation == SOCIAL_PROOF_REASON


def test_paired_agreement_folds_and_boosts(policy):
    offers = ResponseNormalizer(policy).normalize({
        "recommendation": {"primary_offer": "Voice Bundle", "social_proof_offer": "Voice Bundle",
                           "confidence_score": 0.7},
    })
    assert len(offers) == 1
    assert offers[0].confidence_score == pytest.approx(0.77)
    assert offers[0].explanation == AGREEMENT_REASON


def test_paired_agreement_boost_capped(policy):
    offers = ResponseNormalizer(policy).normalize({
        "recommendation": {"primary_offer": "Voice Bundle", "social_proof_offer": "Voice Bundle",
                           "confidence_score": 0.95},
    })
    assert offers[0].confidence_score == 1.0


def test_unknown_or_empty_shapes_normalize_to_empty(policy):
    normalizer = ResponseNormalizer(policy)
    assert normalizer.normalize({"foo": "bar"}) == []
    assert normalizer.normalize({}) == []
    assert normalizer.normalize({"top_offers": []}) == []
    assert normalizer.normalize({"recommendation": {}}) == []
