import dataclasses
import datetime
import logging
import threading
import uuid
from typing import Dict, Iterable, List, Mapping, Optional, Set

from survey_reports.exceptions import (
    AlreadySubmittedError,
    SurveyNotAcceptingResponsesError,
)
from survey_reports.records import (
    Answer,
    Assignment,
    Employee,
    Question,
    ReportSnapshot,
    Response,
    Survey,
    SurveyStatus,
    TemplateQuestion,
    validate_rating,
)
from survey_reports.reporting.assembler import (
    build_dashboard_report,
    build_survey_report,
)
from survey_reports.reporting.models import DashboardReport, SurveyReport


class ThreadSafeSurveyStore:
    """A thread-safe in-memory store for surveys, templates and responses.

    The store is the ingestion boundary: ratings are validated and duplicate
    submissions rejected here, so the reporting code can trust its input.
    Reports are always computed from an immutable :class:`ReportSnapshot`.
    """

    def __init__(self, max_surveys: Optional[int] = None):
        """Create a new :class:`ThreadSafeSurveyStore`.

        Args:
            max_surveys: Optional maximum number of surveys held at once.
                :pydata:`None` (default) means unlimited.
        """
        self._surveys: Dict[str, Survey] = {}
        self._questions: Dict[str, Question] = {}
        self._templates: Dict[str, List[TemplateQuestion]] = {}
        self._employees: Dict[str, Employee] = {}
        self._assignments: Dict[str, Set[str]] = {}
        self._responses: Dict[str, List[Response]] = {}
        self._answers: Dict[str, List[Answer]] = {}
        self._respondents: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()
        # None == unlimited
        self._max_surveys = max_surveys if (max_surveys or 0) > 0 else None
        self._logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Surveys
    # ------------------------------------------------------------------

    def add_survey(self, survey: Survey) -> None:
        """
        Adds a new survey to the store.
        Raises ValueError if a survey with the same ID already exists.
        """
        with self._lock:
            if self._max_surveys is not None and len(self._surveys) >= self._max_surveys:
                raise ValueError(
                    "Maximum number of surveys reached. "
                    "Remove closed surveys before adding new ones."
                )

            if survey.id in self._surveys:
                raise ValueError(f"Survey with ID {survey.id} already exists.")
            self._surveys[survey.id] = survey
            self._responses[survey.id] = []
            self._answers[survey.id] = []
            self._respondents[survey.id] = set()
            self._assignments.setdefault(survey.id, set())

    def get_survey(self, survey_id: str) -> Optional[Survey]:
        """Retrieves a survey by its ID. Returns None if not found."""
        with self._lock:
            return self._surveys.get(survey_id)

    def update_status(self, survey_id: str, status: SurveyStatus) -> Survey:
        """Replace the status of *survey_id* and return the updated survey.

        Raises:
            ValueError: If *survey_id* does not exist in the store.
        """
        with self._lock:
            survey = self._surveys.get(survey_id)
            if survey is None:
                raise ValueError(f"Survey with ID {survey_id} not found.")
            updated = dataclasses.replace(survey, status=SurveyStatus(status))
            self._surveys[survey_id] = updated
            return updated

    def remove_survey(self, survey_id: str) -> Optional[Survey]:
        """Removes a survey together with its responses and assignments.

        Returns the removed survey or None if not found.
        """
        with self._lock:
            survey = self._surveys.pop(survey_id, None)
            if survey is None:
                return None
            removed = len(self._responses.pop(survey_id, []))
            self._answers.pop(survey_id, None)
            self._respondents.pop(survey_id, None)
            self._assignments.pop(survey_id, None)
        self._logger.info(
            "survey_removed", extra={"survey_id": survey_id, "responses": removed}
        )
        return survey

    def get_all_surveys(self) -> Dict[str, Survey]:
        """Returns a shallow copy of all surveys currently in the store."""
        with self._lock:
            return dict(self._surveys)

    def count(self) -> int:
        """Returns the total number of surveys."""
        with self._lock:
            return len(self._surveys)

    # ------------------------------------------------------------------
    # Questions, templates, employees
    # ------------------------------------------------------------------

    def add_question(self, question: Question) -> None:
        with self._lock:
            self._questions[question.id] = question

    def set_template(self, template_id: str, question_ids: Iterable[str]) -> None:
        """Define *template_id* as the ordered list *question_ids*.

        Raises:
            ValueError: If a question is unknown or listed twice.
        """
        ids = list(question_ids)
        if len(set(ids)) != len(ids):
            raise ValueError(f"Template {template_id} lists a question twice.")
        with self._lock:
            missing = [qid for qid in ids if qid not in self._questions]
            if missing:
                raise ValueError(f"Unknown question(s): {', '.join(missing)}")
            self._templates[template_id] = [
                TemplateQuestion(template_id, qid, position)
                for position, qid in enumerate(ids)
            ]

    def add_template_question(self, entry: TemplateQuestion) -> None:
        """Insert one ordered template entry (used when loading backend rows)."""
        with self._lock:
            entries = self._templates.setdefault(entry.template_id, [])
            entries.append(entry)
            entries.sort(key=lambda e: e.order_position)

    def add_employee(self, employee: Employee) -> None:
        with self._lock:
            self._employees[employee.id] = employee

    def assign(self, survey_id: str, employee_id: str) -> None:
        """Assign an employee to a survey (idempotent)."""
        with self._lock:
            if survey_id not in self._surveys:
                raise ValueError(f"Survey with ID {survey_id} not found.")
            if employee_id not in self._employees:
                raise ValueError(f"Employee with ID {employee_id} not found.")
            self._assignments[survey_id].add(employee_id)

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def submit_response(
        self,
        survey_id: str,
        ratings: Mapping[str, int],
        *,
        respondent_id: Optional[str] = None,
        comments: Optional[Mapping[str, str]] = None,
        submitted_at: Optional[datetime.datetime] = None,
    ) -> Response:
        """Record a response and its answers atomically.

        Raises
        ------
        ValueError
            If the survey does not exist, a template question is left
            unrated or a rating targets a question outside the template.
        InvalidRatingError
            If a rating is not an integer between 1 and 4.
        SurveyNotAcceptingResponsesError
            If the survey is not *Active*.
        AlreadySubmittedError
            If *respondent_id* has already answered this survey.
        """
        comments = comments or {}
        for rating in ratings.values():
            validate_rating(rating)

        with self._lock:
            survey = self._surveys.get(survey_id)
            if survey is None:
                raise ValueError(f"Survey with ID {survey_id} not found.")
            if survey.status != SurveyStatus.ACTIVE:
                raise SurveyNotAcceptingResponsesError(
                    f"Survey {survey_id} is {survey.status.value}; responses are closed."
                )

            template_ids = [e.question_id for e in self._templates.get(survey.template_id, [])]
            unanswered = [qid for qid in template_ids if qid not in ratings]
            if unanswered:
                raise ValueError(
                    f"Please answer all questions before submitting "
                    f"(missing: {', '.join(unanswered)})."
                )
            unexpected = sorted(set(ratings) - set(template_ids))
            if unexpected:
                raise ValueError(
                    f"Question(s) {', '.join(unexpected)} are not part of survey {survey_id}."
                )

            if respondent_id is not None:
                if respondent_id in self._respondents[survey_id]:
                    raise AlreadySubmittedError(
                        f"User {respondent_id} already submitted a response for survey {survey_id}."
                    )
                self._respondents[survey_id].add(respondent_id)

            response = Response(
                id=uuid.uuid4().hex,
                survey_id=survey_id,
                respondent_id=None if survey.is_anonymous else respondent_id,
                submitted_at=submitted_at
                or datetime.datetime.now(datetime.timezone.utc),
            )
            self._responses[survey_id].append(response)
            self._answers[survey_id].extend(
                Answer(
                    question_id=qid,
                    rating=ratings[qid],
                    response_id=response.id,
                    comment=comments.get(qid) or None,
                )
                for qid in template_ids
            )

        self._logger.info(
            "response_received",
            extra={"survey_id": survey_id, "response_id": response.id},
        )
        return response

    def add_response(self, response: Response, answers: Iterable[Answer]) -> None:
        """Insert an already-stored response (e.g. decoded from backend rows).

        No status or completeness checks apply; the answers are expected to
        come from the row decoders, which validate ratings.
        """
        with self._lock:
            if response.survey_id not in self._surveys:
                raise ValueError(f"Survey with ID {response.survey_id} not found.")
            self._responses[response.survey_id].append(response)
            self._answers[response.survey_id].extend(answers)
            if response.respondent_id:
                self._respondents[response.survey_id].add(response.respondent_id)

    def response_count(self, survey_id: str) -> int:
        with self._lock:
            return len(self._responses.get(survey_id, []))

    # ------------------------------------------------------------------
    # Reporting helpers
    # ------------------------------------------------------------------

    def snapshot(self, survey_id: str) -> ReportSnapshot:
        """Return an immutable snapshot of *survey_id* for one report pass.

        Raises
        ------
        ValueError
            If the survey does not exist.
        """
        with self._lock:
            survey = self._surveys.get(survey_id)
            if survey is None:
                raise ValueError(f"Survey {survey_id} not found for reporting.")
            questions = tuple(
                self._questions[e.question_id]
                for e in self._templates.get(survey.template_id, [])
                if e.question_id in self._questions
            )
            return ReportSnapshot(
                answers=tuple(self._answers[survey_id]),
                questions=questions,
                responses=tuple(self._responses[survey_id]),
                employees=tuple(self._employees.values()),
                assignments=tuple(
                    Assignment(survey_id, eid)
                    for eid in sorted(self._assignments.get(survey_id, ()))
                ),
                survey=survey,
            )

    def snapshot_all(self) -> ReportSnapshot:
        """Return an immutable snapshot spanning every survey."""
        with self._lock:
            survey_ids = list(self._surveys)
            return ReportSnapshot(
                answers=tuple(a for sid in survey_ids for a in self._answers[sid]),
                questions=tuple(self._questions.values()),
                responses=tuple(r for sid in survey_ids for r in self._responses[sid]),
                employees=tuple(self._employees.values()),
                assignments=tuple(
                    Assignment(sid, eid)
                    for sid in survey_ids
                    for eid in sorted(self._assignments.get(sid, ()))
                ),
                surveys=tuple(self._surveys.values()),
            )

    def build_report(self, survey_id: str) -> SurveyReport:
        """Return the :class:`SurveyReport` for *survey_id*."""
        return build_survey_report(self.snapshot(survey_id))

    def build_dashboard(self) -> DashboardReport:
        """Return the cross-survey :class:`DashboardReport`."""
        return build_dashboard_report(self.snapshot_all())
