"""Assemble :class:`SurveyReport` and :class:`DashboardReport` from a snapshot.

Every function here is pure: it reads an immutable
:class:`~survey_reports.records.ReportSnapshot` and returns fresh report
objects.  Data-quality problems (answers pointing at deleted questions,
responses from people who are no longer employees) are skipped, never raised.
"""

from __future__ import annotations

import datetime
import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Set

from survey_reports.records import (
    RATING_SCALE,
    Answer,
    Question,
    ReportSnapshot,
    Response,
    SurveyStatus,
)
from survey_reports.reporting.aggregator import (
    RatingAggregate,
    aggregate_all,
    aggregate_ratings,
    by_question,
)
from survey_reports.reporting.models import (
    DashboardReport,
    DepartmentComparison,
    EmployeeReport,
    QuestionReport,
    SurveyReport,
    TrendPoint,
)

__all__ = [
    "build_survey_report",
    "build_dashboard_report",
    "distribution_percentages",
]

logger = logging.getLogger(__name__)


def distribution_percentages(
    distribution: Dict[int, int], total_responses: int
) -> Dict[int, float]:
    """Return ``count / total_responses * 100`` per rating (all zero if no responses)."""
    if total_responses <= 0:
        return {rating: 0.0 for rating in RATING_SCALE}
    return {
        rating: distribution.get(rating, 0) / total_responses * 100
        for rating in RATING_SCALE
    }


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


def _question_ratings(
    answers: Sequence[Answer],
    questions: Sequence[Question],
    *,
    include_unanswered: bool = True,
) -> List[QuestionReport]:
    groups = aggregate_ratings(answers, by_question)

    known = {q.id for q in questions}
    orphaned = sorted(set(groups) - known)
    if orphaned:
        logger.debug(
            "Skipping answers for %d unknown question(s): %s",
            len(orphaned),
            ", ".join(orphaned),
        )

    reports: List[QuestionReport] = []
    seen: Set[str] = set()
    for question in questions:
        if question.id in seen:
            continue
        seen.add(question.id)
        group = groups.get(question.id)
        if group is None:
            if not include_unanswered:
                continue
            group = RatingAggregate()
        reports.append(
            QuestionReport(
                question_id=question.id,
                question_text=question.text,
                average_rating=group.average,
                distribution=dict(group.distribution),
            )
        )
    return reports


def _respondent_groups(
    answers: Sequence[Answer], responses: Iterable[Response]
) -> Dict[str, RatingAggregate]:
    """Aggregate answers per named respondent; anonymous answers are dropped."""
    respondent_of = {r.id: r.respondent_id for r in responses if r.respondent_id}
    named = [a for a in answers if a.response_id in respondent_of]
    return aggregate_ratings(named, lambda a: respondent_of[a.response_id])


def _employee_ratings(
    groups: Dict[str, RatingAggregate], snapshot: ReportSnapshot
) -> List[EmployeeReport]:
    employees = {e.id: e for e in snapshot.employees}
    ratings = [
        EmployeeReport(
            employee_id=employee_id,
            employee_name=employees[employee_id].name,
            average_rating=group.average,
        )
        for employee_id, group in groups.items()
        if employee_id in employees and employees[employee_id].active
    ]
    # Ranking: best first, ties broken by name then id for a stable order.
    ratings.sort(key=lambda r: (-r.average_rating, r.employee_name, r.employee_id))
    return ratings


def _period(timestamp: datetime.datetime) -> str:
    return timestamp.astimezone(datetime.timezone.utc).strftime("%Y-%m")


def _progress_over_time(
    answers: Sequence[Answer], responses: Sequence[Response]
) -> List[TrendPoint]:
    period_of = {r.id: _period(r.submitted_at) for r in responses}
    response_counts = Counter(period_of.values())
    groups = aggregate_ratings(answers, lambda a: period_of.get(a.response_id))

    points = []
    for period in sorted(response_counts):
        group = groups.get(period)
        points.append(
            TrendPoint(
                period=period,
                average_rating=group.average if group else 0.0,
                responses=response_counts[period],
            )
        )
    return points


def _assigned_ids(snapshot: ReportSnapshot) -> Set[str]:
    survey_id: Optional[str] = snapshot.survey.id if snapshot.survey else None
    return {
        a.employee_id
        for a in snapshot.assignments
        if survey_id is None or a.survey_id == survey_id
    }


def _department_comparison(
    groups: Dict[str, RatingAggregate], snapshot: ReportSnapshot
) -> List[DepartmentComparison]:
    employees = {e.id: e for e in snapshot.employees}
    assigned = _assigned_ids(snapshot)
    responded = set(groups)

    members: Dict[str, Set[str]] = {}
    for employee_id in assigned | responded:
        employee = employees.get(employee_id)
        if employee is None or not employee.department:
            continue
        members.setdefault(employee.department, set()).add(employee_id)

    comparison = []
    for department in sorted(members):
        ids = members[department]
        total = RatingAggregate()
        for employee_id in ids & responded:
            group = groups[employee_id]
            total.sum += group.sum
            total.count += group.count
        dept_assigned = ids & assigned
        rate = (
            len(dept_assigned & responded) / len(dept_assigned) * 100
            if dept_assigned
            else 0.0
        )
        comparison.append(
            DepartmentComparison(
                department=department,
                average_rating=total.average,
                response_rate=rate,
            )
        )
    return comparison


def _completion_rate(
    snapshot: ReportSnapshot, responded: Set[str], total_responses: int
) -> float:
    assigned = _assigned_ids(snapshot)
    if not assigned:
        return 0.0
    if snapshot.is_anonymous:
        # Responses carry no respondent, so only the count is known.
        completed = min(total_responses, len(assigned))
    else:
        completed = len(assigned & responded)
    return completed / len(assigned) * 100


def _comments(answers: Iterable[Answer], responses: Iterable[Response]) -> List[str]:
    """Non-blank comments, oldest response first."""
    rank = {
        r.id: i
        for i, r in enumerate(sorted(responses, key=lambda r: (r.submitted_at, r.id)))
    }
    commented = [a for a in answers if a.comment and a.comment.strip()]
    commented.sort(
        key=lambda a: (rank.get(a.response_id, len(rank)), a.response_id, a.question_id)
    )
    return [a.comment.strip() for a in commented]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_survey_report(snapshot: ReportSnapshot) -> SurveyReport:
    """Compute the :class:`SurveyReport` for the survey held in *snapshot*.

    * ``average_rating`` is the mean of **all** ratings, including answers
      whose question is missing from ``snapshot.questions``.
    * ``question_ratings`` follows the order of ``snapshot.questions``.
    * ``employee_ratings`` only lists known, active employees; anonymous responses
      and anonymous surveys contribute nothing to it.
    """
    survey = snapshot.survey
    report = SurveyReport(
        survey_id=survey.id if survey else None,
        survey_name=survey.name if survey else None,
    )

    total_responses = len({r.id for r in snapshot.responses})
    if total_responses == 0:
        return report

    answers = snapshot.answers
    groups = {} if snapshot.is_anonymous else _respondent_groups(
        answers, snapshot.responses
    )

    report.average_rating = aggregate_all(answers).average
    report.total_responses = total_responses
    report.question_ratings = _question_ratings(answers, snapshot.questions)
    report.employee_ratings = _employee_ratings(groups, snapshot)
    report.progress_over_time = _progress_over_time(answers, snapshot.responses)
    report.department_comparison = (
        [] if snapshot.is_anonymous else _department_comparison(groups, snapshot)
    )
    report.completion_rate = _completion_rate(snapshot, set(groups), total_responses)
    report.comments = _comments(answers, snapshot.responses)
    return report


def build_dashboard_report(snapshot: ReportSnapshot) -> DashboardReport:
    """Compute the cross-survey overview for every survey in *snapshot*."""
    status_counts = {status.value: 0 for status in SurveyStatus}
    for survey in snapshot.surveys:
        status_counts[survey.status.value] += 1

    overall = aggregate_all(snapshot.answers)
    return DashboardReport(
        total_surveys=len(snapshot.surveys),
        status_counts=status_counts,
        total_responses=len({r.id for r in snapshot.responses}),
        average_rating=overall.average,
        rating_distribution=dict(overall.distribution),
        question_ratings=_question_ratings(
            snapshot.answers, snapshot.questions, include_unanswered=False
        ),
        progress_over_time=_progress_over_time(snapshot.answers, snapshot.responses),
    )
