"""Tests for evaluation score validation and totals."""

import pytest

from utils.evaluations import (
    EvaluationScoreError,
    category_totals,
    overall_percentage,
    validate_scores,
)


def test_valid_scores_pass_through(evaluation_structure):
    scores = [{"criterion_id": 11, "score": 7}, {"criterion_id": 21, "score": 5}]
    assert validate_scores(evaluation_structure, scores) == scores


@pytest.mark.parametrize("scores,message", [
    ([{"criterion_id": 99, "score": 1}], "Unknown criterion"),
    ([{"criterion_id": 11, "score": 1}, {"criterion_id": 11, "score": 2}], "Duplicate"),
    ([{"criterion_id": 21, "score": 6}], "between 0 and 5"),
    ([{"criterion_id": 21, "score": -1}], "between 0 and 5"),
    ([{"criterion_id": 11, "score": "7"}], "must be a number"),
    ([{"criterion_id": 11, "score": True}], "must be a number"),
])
def test_invalid_scores(evaluation_structure, scores, message):
    with pytest.raises(EvaluationScoreError, match=message):
        validate_scores(evaluation_structure, scores)


def test_category_totals_only_count_scored_criteria(evaluation_structure):
    totals = category_totals(evaluation_structure, [{"criterion_id": 11, "score": 8}])
    technique, attitude = totals
    assert technique["score"] == 8
    assert technique["max_score"] == 10
    assert technique["percentage"] == pytest.approx(80.0)
    assert attitude["max_score"] == 0
    assert attitude["percentage"] == 0.0


def test_overall_percentage(evaluation_structure):
    scores = [
        {"criterion_id": 11, "score": 10},
        {"criterion_id": 12, "score": 5},
        {"criterion_id": 21, "score": 5},
    ]
    assert overall_percentage(evaluation_structure, scores) == pytest.approx(80.0)
    assert overall_percentage(evaluation_structure, []) == 0.0
