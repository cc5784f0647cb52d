"""Helpers for the player evaluation rubric.

The rubric is a list of categories, each carrying its ``criteria`` (as
returned by ``utils.db.get_evaluation_structure``). Scores are dictionaries
with ``criterion_id`` and ``score``.
"""

from typing import Dict, Iterable, List


class EvaluationScoreError(ValueError):
    pass


def criteria_by_id(structure: Iterable[dict]) -> Dict:
    return {
        criterion["id"]: criterion
        for category in structure
        for criterion in category.get("criteria", [])
    }


def validate_scores(structure: Iterable[dict], scores: Iterable[dict]) -> List[dict]:
    """Check every score against its criterion and return them unchanged.

    Raises ``EvaluationScoreError`` for unknown criteria, duplicates, or
    scores outside ``0..max_score``.
    """
    criteria = criteria_by_id(structure)
    seen = set()
    checked = []
    for entry in scores:
        criterion_id = entry.get("criterion_id")
        criterion = criteria.get(criterion_id)
        if criterion is None:
            raise EvaluationScoreError(f"Unknown criterion: {criterion_id}")
        if criterion_id in seen:
            raise EvaluationScoreError(f"Duplicate score for criterion: {criterion['name']}")
        seen.add(criterion_id)

        score = entry.get("score")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise EvaluationScoreError(f"Score for {criterion['name']} must be a number")
        if score < 0 or score > criterion["max_score"]:
            raise EvaluationScoreError(
                f"Score for {criterion['name']} must be between 0 and {criterion['max_score']}"
            )
        checked.append(entry)
    return checked


def category_totals(structure: Iterable[dict], scores: Iterable[dict]) -> List[dict]:
    """Score and maximum per category, in rubric order."""
    score_map = {s["criterion_id"]: s["score"] for s in scores}
    totals = []
    for category in structure:
        criteria = category.get("criteria", [])
        scored = [c for c in criteria if c["id"] in score_map]
        total = sum(score_map[c["id"]] for c in scored)
        maximum = sum(c["max_score"] for c in scored)
        totals.append({
            "category_id": category["id"],
            "name": category["name"],
            "score": total,
            "max_score": maximum,
            "percentage": (total / maximum) * 100 if maximum else 0.0,
        })
    return totals


def overall_percentage(structure: Iterable[dict], scores: Iterable[dict]) -> float:
    """Overall score as a percentage of the maximum over scored criteria."""
    totals = category_totals(structure, scores)
    score = sum(t["score"] for t in totals)
    maximum = sum(t["max_score"] for t in totals)
    return (score / maximum) * 100 if maximum else 0.0
