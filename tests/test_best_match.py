import pytest

from places_enricher.matchers import overall_similarity, select_best_candidate


def test_overall_similarity_is_mean_of_name_and_address():
    cand = {"name": "Acme Clinic", "formatted_address": "1 Main Street"}
    # "1 main st" -> "1 main street" is 4 insertions over 13 characters
    assert overall_similarity("Acme Clinic", "1 Main St", cand) == pytest.approx((1.0 + 9 / 13) / 2)


def test_selects_highest_scoring_candidate():
    candidates = [
        {"name": "Acme Dental", "formatted_address": "99 Elm Rd"},
        {"name": "Acme Clinic", "formatted_address": "1 Main St"},
        {"name": "Acme Clinic Annex", "formatted_address": "3 Main St"},
    ]
    best, score = select_best_candidate("Acme Clinic", "1 Main St", candidates)
    assert best is candidates[1]
    assert score == 1.0


def test_exact_tie_returns_first_in_input_order():
    first = {"name": "Acme Clinic", "formatted_address": "1 Main St", "place_id": "first"}
    second = {"name": "Acme Clinic", "formatted_address": "1 Main St", "place_id": "second"}
    best, _ = select_best_candidate("Acme Clinic", "1 Main St", [first, second])
    assert best["place_id"] == "first"


def test_poor_match_is_still_returned():
    cand = {"name": "Zzyzx Hardware", "formatted_address": "77 Q Ave"}
    best, score = select_best_candidate("Acme Clinic", "1 Main St", [cand])
    assert best is cand
    assert score < 0.3


def test_all_zero_scores_return_first_candidate():
    candidates = [
        {"name": "qqq", "formatted_address": "zzz"},
        {"name": "www", "formatted_address": "yyy"},
    ]
    best, score = select_best_candidate("abc", "def", candidates)
    assert best is candidates[0]
    assert score == pytest.approx(0.0)


def test_missing_fields_are_treated_as_empty():
    best, score = select_best_candidate("Acme", "1 Main St", [{"place_id": "x"}])
    assert best == {"place_id": "x"}
    assert score == 0.0


def test_no_candidates():
    assert select_best_candidate("Acme", "1 Main St", []) == (None, 0.0)
