"""Shared fixtures: a small, fully known survey snapshot."""
from __future__ import annotations

import datetime

import pytest

from survey_reports.records import (
    Answer,
    Assignment,
    Employee,
    Question,
    ReportSnapshot,
    Response,
    Survey,
    SurveyStatus,
)

UTC = datetime.timezone.utc


def ts(year: int, month: int, day: int) -> datetime.datetime:
    return datetime.datetime(year, month, day, 10, 0, tzinfo=UTC)


@pytest.fixture()
def survey() -> Survey:
    return Survey(
        id="S1",
        name="Project Kickoff Meeting Feedback",
        template_id="T1",
        status=SurveyStatus.ACTIVE,
    )


@pytest.fixture()
def questions() -> tuple:
    return (
        Question("Q1", "How clear was the communication?"),
        Question("Q2", "How well was the meeting moderated?"),
    )


@pytest.fixture()
def employees() -> tuple:
    return (
        Employee("E1", "Ada Lovelace", department="Engineering"),
        Employee("E2", "Grace Hopper", department="Sales"),
        Employee("E3", "Linus Torvalds", department="Engineering"),
    )


@pytest.fixture()
def sample_snapshot(survey, questions, employees) -> ReportSnapshot:
    """Three responses: E1 in May, anonymous in May, E2 in June.

    Ratings (Q1, Q2): R1=(4, 3), R2=(2, 1), R3=(4, 4).
    E1, E2 and E3 are assigned; E3 never responded.
    """
    responses = (
        Response("R1", "S1", "E1", ts(2025, 5, 10)),
        Response("R2", "S1", None, ts(2025, 5, 12)),
        Response("R3", "S1", "E2", ts(2025, 6, 1)),
    )
    answers = (
        Answer("Q1", 4, "R1"),
        Answer("Q2", 3, "R1", comment="Agenda was clear"),
        Answer("Q1", 2, "R2"),
        Answer("Q2", 1, "R2", comment="  "),
        Answer("Q1", 4, "R3"),
        Answer("Q2", 4, "R3"),
    )
    return ReportSnapshot(
        answers=answers,
        questions=questions,
        responses=responses,
        employees=employees,
        assignments=(
            Assignment("S1", "E1"),
            Assignment("S1", "E2"),
            Assignment("S1", "E3"),
        ),
        survey=survey,
    )
