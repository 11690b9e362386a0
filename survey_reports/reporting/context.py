"""Context dataclasses for rendering survey reports.

This module turns the unrounded :class:`SurveyReport` /
:class:`DashboardReport` values into the display-ready values expected by
the Jinja2 templates in ``survey_reports/reporting/templates``.  Rounding
happens here and nowhere earlier.
"""
from __future__ import annotations

import datetime
import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from survey_reports.analysis.themes import extract_comment_themes
from survey_reports.records import RATING_SCALE
from survey_reports.reporting import config
from survey_reports.reporting.assembler import distribution_percentages
from survey_reports.reporting.models import (
    DashboardReport,
    QuestionReport,
    SurveyReport,
    TrendPoint,
)

__all__ = [
    "Stats",
    "QuestionRow",
    "ReportContext",
    "DashboardContext",
    "build_report_context",
    "build_dashboard_context",
]

logger = logging.getLogger(__name__)

RATING_LABELS: Dict[int, str] = {
    1: "Poor",
    2: "Fair",
    3: "Good",
    4: "Excellent",
}


@dataclass(slots=True)
class Stats:
    """Participation statistics displayed in the report header."""

    total_responses: int
    completion_rate: float
    low_completion: bool = False

    def to_dict(self) -> Dict[str, Any]:  # noqa: D401 – simple helper
        """Return a *plain* ``dict`` representation suitable for Jinja."""
        return asdict(self)


@dataclass(slots=True)
class QuestionRow:
    """One question line: rounded average, counts and percentages per rating."""

    text: str
    average: float
    bar: str
    distribution: Dict[int, int]
    percentages: Dict[int, float]


@dataclass(slots=True)
class ReportContext:
    """Container with all fields used by the survey report template."""

    # Header & meta
    survey_id: Optional[str]
    survey_name: str
    date: str  # ISO-8601 date string (UTC)

    stats: Stats
    average_rating: float

    questions: List[QuestionRow] = field(default_factory=list)
    employees: List[Dict[str, Any]] = field(default_factory=list)
    trend: List[Dict[str, Any]] = field(default_factory=list)
    departments: List[Dict[str, Any]] = field(default_factory=list)

    # Comment digest
    themes: List[str] = field(default_factory=list)
    comments: List[str] = field(default_factory=list)

    version: str = "1"

    def to_dict(self) -> Dict[str, Any]:  # noqa: D401 – simple helper
        """Return a *plain* ``dict`` (recursively) for Jinja rendering."""
        return asdict(self)

    # Alias for convenience (e.g. template kwargs)
    __call__ = to_dict


@dataclass(slots=True)
class DashboardContext:
    """Fields used by the dashboard overview template."""

    date: str
    total_surveys: int
    status_counts: Dict[str, int]
    total_responses: int
    average_rating: float
    distribution: List[Dict[str, Any]] = field(default_factory=list)
    questions: List[Dict[str, Any]] = field(default_factory=list)
    trend: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Local helpers
# ---------------------------------------------------------------------------
def _round(value: float) -> float:
    return round(value, config.DECIMALS)


def rating_bar(average: float, width: int = config.RATING_BAR_WIDTH) -> str:
    """Return a text bar filled in proportion to *average* on the 0–4 scale."""
    top = RATING_SCALE[-1]
    clamped = max(0.0, min(float(top), average))
    filled = round(clamped / top * width)
    return "█" * filled + "░" * (width - filled)


def _question_row(question: QuestionReport, total_responses: int) -> QuestionRow:
    percentages = distribution_percentages(question.distribution, total_responses)
    return QuestionRow(
        text=question.question_text,
        average=_round(question.average_rating),
        bar=rating_bar(question.average_rating),
        distribution=dict(question.distribution),
        percentages={r: _round(p) for r, p in percentages.items()},
    )


def _trend_rows(points: List[TrendPoint]) -> List[Dict[str, Any]]:
    return [
        {
            "period": p.period,
            "average": _round(p.average_rating),
            "responses": p.responses,
        }
        for p in points
    ]


def _today(date: Optional[datetime.date]) -> str:
    if date is None:
        date = datetime.datetime.now(tz=datetime.timezone.utc).date()
    return date.isoformat()


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------
def build_report_context(
    report: SurveyReport,
    *,
    date: Optional[datetime.date] = None,
    with_themes: bool = True,
) -> ReportContext:
    """Convert ``SurveyReport`` into :class:`ReportContext`.

    The function does not mutate *report*.  Theme extraction is optional and
    any failure there is logged and swallowed so rendering always succeeds.
    """

    comments = report.comments[: config.MAX_COMMENTS]

    themes: List[str] = []
    if with_themes and comments:
        try:
            themes = extract_comment_themes(comments, max_themes=config.MAX_THEMES)
        except Exception as exc:  # noqa: BLE001 – themes are optional
            logger.warning(
                "Theme extraction failed for survey %s: %s", report.survey_id, exc
            )

    stats = Stats(
        total_responses=report.total_responses,
        completion_rate=_round(report.completion_rate),
        low_completion=(
            report.total_responses > 0
            and report.completion_rate < config.LOW_COMPLETION_THRESHOLD
        ),
    )

    return ReportContext(
        survey_id=report.survey_id,
        survey_name=report.survey_name or report.survey_id or "Survey",
        date=_today(date),
        stats=stats,
        average_rating=_round(report.average_rating),
        questions=[
            _question_row(q, report.total_responses) for q in report.question_ratings
        ],
        employees=[
            {
                "name": e.employee_name,
                "average": _round(e.average_rating),
                "bar": rating_bar(e.average_rating),
            }
            for e in report.employee_ratings[: config.MAX_EMPLOYEES]
        ],
        trend=_trend_rows(report.progress_over_time),
        departments=[
            {
                "department": d.department,
                "average": _round(d.average_rating),
                "response_rate": _round(d.response_rate),
            }
            for d in report.department_comparison
        ],
        themes=themes[: config.MAX_THEMES],
        comments=comments,
        version=os.getenv("REPORT_VERSION", "0.1"),
    )


def build_dashboard_context(
    dashboard: DashboardReport, *, date: Optional[datetime.date] = None
) -> DashboardContext:
    """Convert ``DashboardReport`` into :class:`DashboardContext`."""

    total_ratings = sum(dashboard.rating_distribution.values())
    # Overall distribution is shown as a share of all ratings, not responses.
    shares = distribution_percentages(dashboard.rating_distribution, total_ratings)
    return DashboardContext(
        date=_today(date),
        total_surveys=dashboard.total_surveys,
        status_counts=dict(dashboard.status_counts),
        total_responses=dashboard.total_responses,
        average_rating=_round(dashboard.average_rating),
        distribution=[
            {
                "rating": rating,
                "label": RATING_LABELS[rating],
                "count": dashboard.rating_distribution.get(rating, 0),
                "share": _round(shares[rating]),
            }
            for rating in RATING_SCALE
        ],
        questions=[
            {
                "text": q.question_text,
                "average": _round(q.average_rating),
                "bar": rating_bar(q.average_rating),
            }
            for q in dashboard.question_ratings
        ],
        trend=_trend_rows(dashboard.progress_over_time),
    )
