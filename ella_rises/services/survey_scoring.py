"""
Survey scoring: overall score and NPS bucket.
Both values are derived from the four 0-5 sub-scores and are always computed together.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple

from ella_rises.models.survey import NPSBucket

SCORE_MIN = 0
SCORE_MAX = 5
PROMOTER_THRESHOLD = 4
PASSIVE_SCORE = 3


def validate_score(name: str, value) -> int:
    """Return the score as int or raise ValueError if it is not a whole number in 0-5."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be a whole number")
    if value < SCORE_MIN or value > SCORE_MAX:
        raise ValueError(f"{name} must be between {SCORE_MIN} and {SCORE_MAX}")
    return value


def nps_bucket(recommendation_score: int) -> NPSBucket:
    """Bucket from the recommendation score alone: >=4 Promoter, 3 Passive, else Detractor."""
    if recommendation_score >= PROMOTER_THRESHOLD:
        return NPSBucket.PROMOTER
    if recommendation_score == PASSIVE_SCORE:
        return NPSBucket.PASSIVE
    return NPSBucket.DETRACTOR


def overall_score(satisfaction: int, usefulness: int, instructor: int, recommendation: int) -> Decimal:
    total = Decimal(satisfaction + usefulness + instructor + recommendation)
    return (total / Decimal(4)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def score_survey(satisfaction: int, usefulness: int, instructor: int, recommendation: int) -> Tuple[Decimal, NPSBucket]:
    """Validate the sub-scores and return (overall, bucket)."""
    validate_score("satisfaction_score", satisfaction)
    validate_score("usefulness_score", usefulness)
    validate_score("instructor_score", instructor)
    validate_score("recommendation_score", recommendation)
    return (
        overall_score(satisfaction, usefulness, instructor, recommendation),
        nps_bucket(recommendation),
    )


def apply_scores(survey, satisfaction: int, usefulness: int, instructor: int, recommendation: int):
    """Set the four sub-scores on a Survey row and recompute the derived fields."""
    overall, bucket = score_survey(satisfaction, usefulness, instructor, recommendation)
    survey.satisfaction_score = satisfaction
    survey.usefulness_score = usefulness
    survey.instructor_score = instructor
    survey.recommendation_score = recommendation
    survey.overall_score = overall
    survey.nps_bucket = bucket.value
    return survey


def nps_score(promoters: int, passives: int, detractors: int) -> int:
    total = promoters + passives + detractors
    if total == 0:
        return 0
    return round(100 * (promoters - detractors) / total)
