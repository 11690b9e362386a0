"""Populate a :class:`ThreadSafeSurveyStore` from a backend table export.

The export is a mapping of table name to a list of rows, i.e. the JSON a
``select *`` per table produces::

    {"surveys": [...], "questions": [...], "template_questions": [...],
     "profiles": [...], "survey_participants": [...], "survey_responses": [...],
     "response_answers": [...]}

Every table is optional.  Rows are decoded through
:mod:`survey_reports.records`, so malformed rows and invalid ratings raise.
Rows that reference missing parents are skipped with a warning.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, List, Mapping, Optional, Sequence

from survey_reports.records import (
    Answer,
    answer_from_row,
    assignment_from_row,
    employee_from_row,
    question_from_row,
    response_from_row,
    survey_from_row,
    template_question_from_row,
)
from survey_reports.survey_store import ThreadSafeSurveyStore

logger = logging.getLogger(__name__)

Rows = Sequence[Mapping[str, Any]]

TABLES = frozenset(
    {
        "questions",
        "template_questions",
        "profiles",
        "surveys",
        "survey_participants",
        "survey_responses",
        "response_answers",
    }
)


def load_export(
    export: Mapping[str, Rows], store: Optional[ThreadSafeSurveyStore] = None
) -> ThreadSafeSurveyStore:
    """Decode *export* into *store* (a fresh store when omitted) and return it."""

    store = store or ThreadSafeSurveyStore()

    unknown = sorted(set(export) - TABLES)
    if unknown:
        logger.warning("Ignoring unknown table(s) in export: %s", ", ".join(unknown))

    for row in export.get("questions", []):
        store.add_question(question_from_row(row))
    for row in export.get("template_questions", []):
        store.add_template_question(template_question_from_row(row))
    for row in export.get("profiles", []):
        store.add_employee(employee_from_row(row))
    for row in export.get("surveys", []):
        store.add_survey(survey_from_row(row))

    for row in export.get("survey_participants", []):
        assignment = assignment_from_row(row)
        try:
            store.assign(assignment.survey_id, assignment.employee_id)
        except ValueError as exc:
            logger.warning("Skipping assignment row: %s", exc)

    answers_by_response: Dict[str, List[Answer]] = defaultdict(list)
    for row in export.get("response_answers", []):
        answer = answer_from_row(row)
        answers_by_response[answer.response_id].append(answer)

    loaded = 0
    for row in export.get("survey_responses", []):
        response = response_from_row(row)
        try:
            store.add_response(response, answers_by_response.pop(response.id, []))
            loaded += 1
        except ValueError as exc:
            logger.warning("Skipping response %s: %s", response.id, exc)

    if answers_by_response:
        logger.warning(
            "Skipping %d answer(s) whose response is missing from the export",
            sum(len(a) for a in answers_by_response.values()),
        )

    logger.info("Loaded export: %d survey(s), %d response(s)", store.count(), loaded)
    return store
