"""Data structures for the reporting pipeline.

All values are unrounded; :mod:`survey_reports.reporting.context` rounds them
for display.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class QuestionReport:
    question_id: str
    question_text: str
    average_rating: float
    distribution: Dict[int, int]


@dataclass(slots=True)
class EmployeeReport:
    employee_id: str
    employee_name: str
    average_rating: float


@dataclass(slots=True)
class TrendPoint:
    """Mean rating and response count for one calendar month (``YYYY-MM``)."""

    period: str
    average_rating: float
    responses: int


@dataclass(slots=True)
class DepartmentComparison:
    department: str
    average_rating: float
    response_rate: float  # 0‒100


@dataclass(slots=True)
class SurveyReport:
    """Aggregated statistics derived from one survey's responses."""

    average_rating: float = 0.0
    total_responses: int = 0
    question_ratings: List[QuestionReport] = field(default_factory=list)
    employee_ratings: List[EmployeeReport] = field(default_factory=list)
    progress_over_time: List[TrendPoint] = field(default_factory=list)
    department_comparison: List[DepartmentComparison] = field(default_factory=list)
    completion_rate: float = 0.0
    survey_id: Optional[str] = None
    survey_name: Optional[str] = None
    comments: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:  # noqa: D401 – simple helper
        """Return a *plain* ``dict`` (recursively)."""
        return asdict(self)


@dataclass(slots=True)
class DashboardReport:
    """Cross-survey overview: status counts, totals, distribution and trends."""

    total_surveys: int = 0
    status_counts: Dict[str, int] = field(default_factory=dict)
    total_responses: int = 0
    average_rating: float = 0.0
    rating_distribution: Dict[int, int] = field(default_factory=dict)
    question_ratings: List[QuestionReport] = field(default_factory=list)
    progress_over_time: List[TrendPoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
