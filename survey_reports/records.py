"""Typed survey records and their decoding from backend rows.

The hosted backend hands rows back as plain dictionaries with snake_case keys
(``question_id``, ``respondent_id`` …).  Everything downstream of this module
works on the frozen dataclasses defined here, so the reporting code never has
to guess at the shape of a row.

Rating validation happens here as well: a rating outside ``1..4`` is a hard
:class:`~survey_reports.exceptions.InvalidRatingError`.
"""
from __future__ import annotations

import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from survey_reports.exceptions import InvalidRatingError, RecordDecodeError

RATING_SCALE: Tuple[int, ...] = (1, 2, 3, 4)


class SurveyStatus(str, Enum):
    """Lifecycle states of a survey."""

    DRAFT = "Draft"
    ACTIVE = "Active"
    CLOSED = "Closed"


@dataclass(frozen=True)
class Question:
    id: str
    text: str


@dataclass(frozen=True)
class Answer:
    """One rating for one question within one response."""

    question_id: str
    rating: int
    response_id: str
    comment: Optional[str] = None


@dataclass(frozen=True)
class Response:
    """One respondent's submission.  ``respondent_id`` is *None* when anonymous."""

    id: str
    survey_id: str
    respondent_id: Optional[str]
    submitted_at: datetime.datetime


@dataclass(frozen=True)
class Employee:
    id: str
    name: str
    department: Optional[str] = None
    active: bool = True


@dataclass(frozen=True)
class TemplateQuestion:
    template_id: str
    question_id: str
    order_position: int


@dataclass(frozen=True)
class Assignment:
    survey_id: str
    employee_id: str


@dataclass(frozen=True)
class Survey:
    id: str
    name: str
    template_id: str
    status: SurveyStatus = SurveyStatus.DRAFT
    is_anonymous: bool = False
    due_date: Optional[datetime.datetime] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class ReportSnapshot:
    """Read-only bundle of everything one report computation needs.

    ``questions`` is ordered; the assembler emits question ratings in this
    order.  ``survey`` is *None* for cross-survey (dashboard) snapshots.
    """

    answers: Tuple[Answer, ...] = ()
    questions: Tuple[Question, ...] = ()
    responses: Tuple[Response, ...] = ()
    employees: Tuple[Employee, ...] = ()
    assignments: Tuple[Assignment, ...] = ()
    survey: Optional[Survey] = None
    surveys: Tuple[Survey, ...] = ()

    @property
    def is_anonymous(self) -> bool:
        return bool(self.survey and self.survey.is_anonymous)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def validate_rating(value: Any) -> int:
    """Return *value* as a rating or raise :class:`InvalidRatingError`.

    Booleans and floats are rejected even when numerically in range.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRatingError(value)
    if value not in RATING_SCALE:
        raise InvalidRatingError(value)
    return value


def parse_timestamp(value: Any) -> datetime.datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware datetime."""
    if isinstance(value, datetime.datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.datetime.fromisoformat(text)
        except ValueError as exc:
            raise RecordDecodeError(f"Invalid timestamp: {value!r}") from exc
    else:
        raise RecordDecodeError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def _require(row: Mapping[str, Any], key: str, table: str) -> Any:
    try:
        value = row[key]
    except KeyError as exc:
        raise RecordDecodeError(f"{table} row is missing '{key}'") from exc
    if value is None:
        raise RecordDecodeError(f"{table} row has null '{key}'")
    return value


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text or None


# ---------------------------------------------------------------------------
# Row decoders
# ---------------------------------------------------------------------------


def answer_from_row(row: Mapping[str, Any]) -> Answer:
    return Answer(
        question_id=str(_require(row, "question_id", "response_answers")),
        rating=validate_rating(_require(row, "rating", "response_answers")),
        response_id=str(_require(row, "response_id", "response_answers")),
        comment=_optional_str(row.get("comment")),
    )


def response_from_row(row: Mapping[str, Any]) -> Response:
    return Response(
        id=str(_require(row, "id", "survey_responses")),
        survey_id=str(_require(row, "survey_id", "survey_responses")),
        respondent_id=_optional_str(row.get("respondent_id")),
        submitted_at=parse_timestamp(_require(row, "submitted_at", "survey_responses")),
    )


def question_from_row(row: Mapping[str, Any]) -> Question:
    return Question(
        id=str(_require(row, "id", "questions")),
        text=str(_require(row, "text", "questions")),
    )


def employee_from_row(row: Mapping[str, Any]) -> Employee:
    """Decode a ``profiles`` row."""
    return Employee(
        id=str(_require(row, "id", "profiles")),
        name=str(_require(row, "name", "profiles")),
        department=_optional_str(row.get("department")),
        active=bool(row.get("active", True)),
    )


def template_question_from_row(row: Mapping[str, Any]) -> TemplateQuestion:
    return TemplateQuestion(
        template_id=str(_require(row, "template_id", "template_questions")),
        question_id=str(_require(row, "question_id", "template_questions")),
        order_position=int(_require(row, "order_position", "template_questions")),
    )


def assignment_from_row(row: Mapping[str, Any]) -> Assignment:
    return Assignment(
        survey_id=str(_require(row, "survey_id", "survey_participants")),
        employee_id=str(_require(row, "profile_id", "survey_participants")),
    )


def survey_from_row(row: Mapping[str, Any]) -> Survey:
    raw_status = _require(row, "status", "surveys")
    try:
        status = SurveyStatus(str(raw_status).capitalize())
    except ValueError as exc:
        raise RecordDecodeError(f"Unknown survey status: {raw_status!r}") from exc

    due_date = row.get("due_date")
    return Survey(
        id=str(_require(row, "id", "surveys")),
        name=str(_require(row, "name", "surveys")),
        template_id=str(_require(row, "template_id", "surveys")),
        status=status,
        is_anonymous=bool(row.get("is_anonymous", False)),
        due_date=parse_timestamp(due_date) if due_date else None,
        description=_optional_str(row.get("description")),
    )
