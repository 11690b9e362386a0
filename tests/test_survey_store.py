import datetime
import threading
import unittest

from survey_reports.exceptions import (
    AlreadySubmittedError,
    InvalidRatingError,
    SurveyNotAcceptingResponsesError,
)
from survey_reports.records import Employee, Question, Survey, SurveyStatus
from survey_reports.survey_store import ThreadSafeSurveyStore


def _survey(survey_id="s1", status=SurveyStatus.ACTIVE, anonymous=False):
    return Survey(
        id=survey_id,
        name=f"Survey {survey_id}",
        template_id="t1",
        status=status,
        is_anonymous=anonymous,
    )


class TestThreadSafeSurveyStore(unittest.TestCase):
    def setUp(self):
        self.store = ThreadSafeSurveyStore()
        self.store.add_question(Question("q1", "Clarity?"))
        self.store.add_question(Question("q2", "Moderation?"))
        self.store.set_template("t1", ["q2", "q1"])
        self.store.add_employee(Employee("u1", "Ada Lovelace", "Engineering"))
        self.store.add_employee(Employee("u2", "Grace Hopper", "Sales"))
        self.store.add_survey(_survey())

    def test_add_and_get_survey(self):
        survey = self.store.get_survey("s1")
        self.assertIsNotNone(survey)
        self.assertEqual(survey.name, "Survey s1")
        self.assertEqual(self.store.count(), 1)
        self.assertIsNone(self.store.get_survey("nonexistent"))

    def test_add_existing_survey_raises_error(self):
        with self.assertRaisesRegex(ValueError, "Survey with ID s1 already exists."):
            self.store.add_survey(_survey())

    def test_max_surveys_limit(self):
        store = ThreadSafeSurveyStore(max_surveys=1)
        store.add_survey(_survey("a"))
        with self.assertRaisesRegex(ValueError, "Maximum number of surveys"):
            store.add_survey(_survey("b"))

    def test_non_positive_limit_means_unlimited(self):
        store = ThreadSafeSurveyStore(max_surveys=0)
        for idx in range(3):
            store.add_survey(_survey(f"s{idx}"))
        self.assertEqual(store.count(), 3)

    def test_submit_and_report(self):
        self.store.submit_response("s1", {"q1": 4, "q2": 3}, respondent_id="u1")
        self.store.submit_response("s1", {"q1": 2, "q2": 1})

        report = self.store.build_report("s1")

        self.assertEqual(report.total_responses, 2)
        self.assertEqual(report.average_rating, 2.5)
        # Template order, not insertion order
        self.assertEqual([q.question_id for q in report.question_ratings], ["q2", "q1"])
        self.assertEqual(len(report.employee_ratings), 1)
        self.assertEqual(report.employee_ratings[0].employee_name, "Ada Lovelace")

    def test_comments_are_stored_with_answers(self):
        self.store.submit_response(
            "s1", {"q1": 2, "q2": 3}, comments={"q1": "Too long", "q2": ""}
        )

        snapshot = self.store.snapshot("s1")

        comments = {a.question_id: a.comment for a in snapshot.answers}
        self.assertEqual(comments, {"q1": "Too long", "q2": None})

    def test_duplicate_submission_rejected(self):
        self.store.submit_response("s1", {"q1": 4, "q2": 4}, respondent_id="u1")
        with self.assertRaises(AlreadySubmittedError):
            self.store.submit_response("s1", {"q1": 1, "q2": 1}, respondent_id="u1")
        self.assertEqual(self.store.response_count("s1"), 1)

    def test_invalid_rating_rejected_without_side_effects(self):
        with self.assertRaises(InvalidRatingError):
            self.store.submit_response("s1", {"q1": 5, "q2": 3}, respondent_id="u1")
        self.assertEqual(self.store.response_count("s1"), 0)
        # The respondent may still submit a valid response afterwards
        self.store.submit_response("s1", {"q1": 4, "q2": 3}, respondent_id="u1")

    def test_incomplete_response_rejected(self):
        with self.assertRaisesRegex(ValueError, "Please answer all questions"):
            self.store.submit_response("s1", {"q1": 3})

    def test_unexpected_question_rejected(self):
        with self.assertRaisesRegex(ValueError, "not part of survey"):
            self.store.submit_response("s1", {"q1": 3, "q2": 3, "q9": 3})

    def test_unknown_survey_rejected(self):
        with self.assertRaises(ValueError):
            self.store.submit_response("missing", {"q1": 3, "q2": 3})

    def test_inactive_survey_rejects_responses(self):
        self.store.add_survey(_survey("draft", status=SurveyStatus.DRAFT))
        with self.assertRaises(SurveyNotAcceptingResponsesError):
            self.store.submit_response("draft", {"q1": 3, "q2": 3})

        self.store.update_status("s1", SurveyStatus.CLOSED)
        with self.assertRaises(SurveyNotAcceptingResponsesError):
            self.store.submit_response("s1", {"q1": 3, "q2": 3})

    def test_update_status_missing_survey(self):
        with self.assertRaises(ValueError):
            self.store.update_status("missing", SurveyStatus.ACTIVE)

    def test_anonymous_survey_strips_respondent(self):
        self.store.add_survey(_survey("anon", anonymous=True))

        response = self.store.submit_response("anon", {"q1": 3, "q2": 3}, respondent_id="u1")

        self.assertIsNone(response.respondent_id)
        with self.assertRaises(AlreadySubmittedError):
            self.store.submit_response("anon", {"q1": 3, "q2": 3}, respondent_id="u1")
        self.assertEqual(self.store.build_report("anon").employee_ratings, [])

    def test_submitted_at_defaults_to_now(self):
        before = datetime.datetime.now(datetime.timezone.utc)
        response = self.store.submit_response("s1", {"q1": 3, "q2": 3})
        self.assertGreaterEqual(response.submitted_at, before)

        fixed = datetime.datetime(2025, 1, 2, tzinfo=datetime.timezone.utc)
        other = self.store.submit_response("s1", {"q1": 3, "q2": 3}, submitted_at=fixed)
        self.assertEqual(other.submitted_at, fixed)

    def test_assignments_drive_completion_rate(self):
        self.store.assign("s1", "u1")
        self.store.assign("s1", "u2")
        self.store.assign("s1", "u2")  # idempotent
        self.store.submit_response("s1", {"q1": 3, "q2": 3}, respondent_id="u1")

        report = self.store.build_report("s1")

        self.assertEqual(report.completion_rate, 50.0)
        with self.assertRaises(ValueError):
            self.store.assign("s1", "nobody")
        with self.assertRaises(ValueError):
            self.store.assign("missing", "u1")

    def test_set_template_validation(self):
        with self.assertRaisesRegex(ValueError, "Unknown question"):
            self.store.set_template("t2", ["q1", "q404"])
        with self.assertRaisesRegex(ValueError, "twice"):
            self.store.set_template("t2", ["q1", "q1"])

    def test_snapshot_is_isolated_from_later_writes(self):
        self.store.submit_response("s1", {"q1": 3, "q2": 3})
        snapshot = self.store.snapshot("s1")

        self.store.submit_response("s1", {"q1": 1, "q2": 1})

        self.assertEqual(len(snapshot.responses), 1)
        self.assertEqual(len(snapshot.answers), 2)
        self.assertIsInstance(snapshot.answers, tuple)

    def test_remove_survey_cascades(self):
        self.store.assign("s1", "u1")
        self.store.submit_response("s1", {"q1": 3, "q2": 3}, respondent_id="u1")

        removed = self.store.remove_survey("s1")

        self.assertEqual(removed.id, "s1")
        self.assertEqual(self.store.response_count("s1"), 0)
        self.assertIsNone(self.store.remove_survey("s1"))
        with self.assertRaises(ValueError):
            self.store.snapshot("s1")

    def test_dashboard_spans_all_surveys(self):
        self.store.add_survey(_survey("s2"))
        self.store.add_survey(_survey("s3", status=SurveyStatus.DRAFT))
        self.store.submit_response("s1", {"q1": 4, "q2": 4})
        self.store.submit_response("s2", {"q1": 2, "q2": 2})

        dashboard = self.store.build_dashboard()

        self.assertEqual(dashboard.total_surveys, 3)
        self.assertEqual(dashboard.status_counts["Active"], 2)
        self.assertEqual(dashboard.status_counts["Draft"], 1)
        self.assertEqual(dashboard.total_responses, 2)
        self.assertEqual(dashboard.average_rating, 3.0)
        self.assertEqual(dashboard.rating_distribution, {1: 0, 2: 2, 3: 0, 4: 2})

    def test_concurrent_submissions(self):
        num_threads = 20
        errors = []

        def worker(idx: int) -> None:
            try:
                self.store.submit_response(
                    "s1", {"q1": 1 + idx % 4, "q2": 4}, respondent_id=f"user{idx}"
                )
            except Exception as exc:  # pragma: no cover – surfaced below
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(num_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(errors, [])
        self.assertEqual(self.store.response_count("s1"), num_threads)
        report = self.store.build_report("s1")
        self.assertEqual(sum(report.question_ratings[1].distribution.values()), num_threads)


if __name__ == "__main__":
    unittest.main()
