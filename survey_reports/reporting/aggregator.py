"""Aggregate raw answers into per-group rating statistics.

The aggregator assumes its input has already been validated at the ingestion
boundary (see :mod:`survey_reports.records`).  It never rounds: rounding is a
presentation concern handled in :mod:`survey_reports.reporting.context`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction
from typing import Callable, Dict, Hashable, Iterable, TypeVar

from survey_reports.records import RATING_SCALE, Answer

K = TypeVar("K", bound=Hashable)


def empty_distribution() -> Dict[int, int]:
    """Return a distribution with every rating on the scale set to zero."""
    return {rating: 0 for rating in RATING_SCALE}


@dataclass(slots=True)
class RatingAggregate:
    """Running totals for one group of answers."""

    sum: int = 0
    count: int = 0
    distribution: Dict[int, int] = field(default_factory=empty_distribution)

    def add(self, rating: int) -> None:
        self.distribution[rating] += 1
        self.sum += rating
        self.count += 1

    @property
    def average(self) -> float:
        """Unrounded mean rating, ``0.0`` for an empty group."""
        return self.sum / self.count if self.count > 0 else 0.0

    @property
    def exact_average(self) -> Fraction:
        return Fraction(self.sum, self.count) if self.count > 0 else Fraction(0)


def aggregate_ratings(
    answers: Iterable[Answer], key_fn: Callable[[Answer], K]
) -> Dict[K, RatingAggregate]:
    """Group *answers* by ``key_fn(answer)`` in a single pass.

    Empty input yields an empty mapping.  Sums, counts and distributions do
    not depend on the order of *answers*.
    """
    groups: Dict[K, RatingAggregate] = {}
    for answer in answers:
        key = key_fn(answer)
        group = groups.get(key)
        if group is None:
            group = groups[key] = RatingAggregate()
        group.add(answer.rating)
    return groups


def aggregate_all(answers: Iterable[Answer]) -> RatingAggregate:
    """Aggregate every answer into one group."""
    total = RatingAggregate()
    for answer in answers:
        total.add(answer.rating)
    return total


def mean_rating(answers: Iterable[Answer]) -> float:
    """Direct mean over the raw ratings in *answers* (``0.0`` if none)."""
    return aggregate_all(answers).average


def by_question(answer: Answer) -> str:
    return answer.question_id


def by_response(answer: Answer) -> str:
    return answer.response_id
