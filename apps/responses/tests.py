import threading
from unittest import mock

from django.db import connection
from django.test import TestCase, TransactionTestCase
from rest_framework.test import APIClient
from apps.core.exceptions import (
    DuplicateResponse, InvalidOptionSelection, RequiredFieldMissing,
    SurveyNotActive, SurveyNotFound,
)
from apps.responses.models import SurveyResponse, QuestionResponse
from apps.responses.services import submit_response
from apps.responses.validation import AnswerPayload, validate_answer
from apps.surveys.models import Survey, SurveyStatus, Question, QuestionOption, QuestionType


def build_survey(status=SurveyStatus.ACTIVE):
    """Q1 single choice (required, O1/O2); Q2 multiple choice (optional, A/B/C)."""
    survey = Survey.objects.create(title="Resident feedback", status=status)
    q1 = Question.objects.create(survey=survey, question_text="Rate the lobby", question_type=QuestionType.SINGLE_CHOICE, is_required=True, order_position=1)
    o1 = QuestionOption.objects.create(question=q1, option_text="Good", order_position=1)
    o2 = QuestionOption.objects.create(question=q1, option_text="Bad", order_position=2)
    q2 = Question.objects.create(survey=survey, question_text="Which services do you use?", question_type=QuestionType.MULTIPLE_CHOICE, is_required=False, order_position=2)
    a = QuestionOption.objects.create(question=q2, option_text="Laundry", order_position=1)
    b = QuestionOption.objects.create(question=q2, option_text="Parking", order_position=2)
    c = QuestionOption.objects.create(question=q2, option_text="Storage", order_position=3)
    return survey, (q1, o1, o2), (q2, a, b, c)


class ResponseValidatorTests(TestCase):
    def setUp(self):
        self.survey, (self.q1, self.o1, self.o2), (self.q2, self.a, self.b, self.c) = build_survey()

    def test_valid_single_choice(self):
        result = validate_answer(self.q1, AnswerPayload(self.q1.id, (self.o1.id,)), {self.o1.id, self.o2.id})
        self.assertEqual(result.option_ids, (self.o1.id,))
        self.assertTrue(result.has_response)

    def test_foreign_option_rejected(self):
        with self.assertRaises(InvalidOptionSelection) as ctx:
            validate_answer(self.q1, AnswerPayload(self.q1.id, (self.a.id,)), {self.o1.id, self.o2.id})
        self.assertEqual(ctx.exception.question_id, self.q1.id)

    def test_single_choice_accepts_only_one_option(self):
        with self.assertRaises(InvalidOptionSelection):
            validate_answer(self.q1, AnswerPayload(self.q1.id, (self.o1.id, self.o2.id)), {self.o1.id, self.o2.id})

    def test_repeated_id_collapses(self):
        result = validate_answer(self.q1, AnswerPayload(self.q1.id, (self.o1.id, self.o1.id)), {self.o1.id, self.o2.id})
        self.assertEqual(result.option_ids, (self.o1.id,))

    def test_required_empty_and_absent(self):
        with self.assertRaises(RequiredFieldMissing):
            validate_answer(self.q1, AnswerPayload(self.q1.id, ()), {self.o1.id, self.o2.id})
        with self.assertRaises(RequiredFieldMissing):
            validate_answer(self.q1, None, {self.o1.id, self.o2.id})

    def test_optional_empty_is_fine(self):
        result = validate_answer(self.q2, AnswerPayload(self.q2.id, ()), {self.a.id, self.b.id, self.c.id})
        self.assertFalse(result.has_response)


class SubmissionEngineTests(TestCase):
    def setUp(self):
        self.survey, (self.q1, self.o1, self.o2), (self.q2, self.a, self.b, self.c) = build_survey()

    def answer(self, question, *option_ids):
        return {"question_id": question.id, "selected_option_ids": list(option_ids)}

    def test_submit_success(self):
        resp = submit_response(self.survey.id, 1, [self.answer(self.q1, self.o1.id), self.answer(self.q2, self.a.id, self.c.id)])
        self.assertIsNotNone(resp.id)
        self.assertIsNotNone(resp.submitted_at)
        self.assertEqual(resp.survey_id, self.survey.id)
        by_q = {qr.question_id: qr.selected_option_ids for qr in resp.question_responses.all()}
        self.assertEqual(by_q, {self.q1.id: [self.o1.id], self.q2.id: sorted([self.a.id, self.c.id])})

    def test_duplicate_rejected_regardless_of_payload(self):
        submit_response(self.survey.id, 1, [self.answer(self.q1, self.o1.id)])
        with self.assertRaises(DuplicateResponse):
            submit_response(self.survey.id, 1, [self.answer(self.q1, self.o2.id)])
        with self.assertRaises(DuplicateResponse):
            submit_response(self.survey.id, 1, [])
        self.assertEqual(SurveyResponse.objects.filter(survey=self.survey).count(), 1)

    def test_same_user_may_answer_other_surveys(self):
        other, (q1, o1, _), _ = build_survey()
        submit_response(self.survey.id, 1, [self.answer(self.q1, self.o1.id)])
        submit_response(other.id, 1, [{"question_id": q1.id, "selected_option_ids": [o1.id]}])
        self.assertEqual(SurveyResponse.objects.filter(user_id=1).count(), 2)

    def test_concurrent_duplicate_caught_by_constraint(self):
        submit_response(self.survey.id, 7, [self.answer(self.q1, self.o1.id)])
        # The pre-check misses the row, as if the other request committed just after it ran.
        with mock.patch("apps.responses.services.has_responded", side_effect=[False, True]):
            with self.assertRaises(DuplicateResponse):
                submit_response(self.survey.id, 7, [self.answer(self.q1, self.o2.id)])
        self.assertEqual(SurveyResponse.objects.filter(survey=self.survey, user_id=7).count(), 1)
        self.assertEqual(QuestionResponse.objects.filter(response__survey=self.survey).count(), 1)

    def test_draft_and_closed_surveys_reject(self):
        for status in (SurveyStatus.DRAFT, SurveyStatus.CLOSED):
            survey, (q1, o1, _), _ = build_survey(status=status)
            with self.assertRaises(SurveyNotActive):
                submit_response(survey.id, 1, [{"question_id": q1.id, "selected_option_ids": [o1.id]}])
            self.assertFalse(SurveyResponse.objects.filter(survey=survey).exists())

    def test_missing_survey(self):
        with self.assertRaises(SurveyNotFound):
            submit_response(999999, 1, [])

    def test_required_missing_from_payload(self):
        with self.assertRaises(RequiredFieldMissing):
            submit_response(self.survey.id, 2, [self.answer(self.q2, self.a.id)])

    def test_failed_validation_writes_nothing(self):
        with self.assertRaises(InvalidOptionSelection):
            submit_response(self.survey.id, 2, [self.answer(self.q1, self.o1.id), self.answer(self.q2, self.a.id, 999)])
        self.assertEqual(SurveyResponse.objects.count(), 0)
        self.assertEqual(QuestionResponse.objects.count(), 0)

    def test_unknown_questions_are_skipped(self):
        other, (foreign_q, foreign_o, _), _ = build_survey()
        resp = submit_response(self.survey.id, 3, [
            self.answer(self.q1, self.o2.id),
            {"question_id": 999999, "selected_option_ids": [1]},
            {"question_id": foreign_q.id, "selected_option_ids": [foreign_o.id]},
        ])
        self.assertEqual([qr.question_id for qr in resp.question_responses.all()], [self.q1.id])

    def test_last_entry_wins_for_repeated_question(self):
        resp = submit_response(self.survey.id, 4, [self.answer(self.q1, self.o1.id), self.answer(self.q1, self.o2.id)])
        qr = resp.question_responses.get()
        self.assertEqual(qr.selected_option_ids, [self.o2.id])

    def test_optional_empty_answer_is_stored(self):
        resp = submit_response(self.survey.id, 5, [self.answer(self.q1, self.o1.id), self.answer(self.q2)])
        self.assertEqual(resp.question_responses.count(), 2)
        self.assertEqual(resp.question_responses.get(question=self.q2).selected_option_ids, [])

    def test_storage_failure_is_wrapped(self):
        from django.db import DatabaseError
        from apps.core.exceptions import StorageError
        with mock.patch("apps.responses.models.SurveyResponse.objects.create", side_effect=DatabaseError("disk full")):
            with self.assertRaises(StorageError):
                submit_response(self.survey.id, 6, [self.answer(self.q1, self.o1.id)])
        self.assertEqual(SurveyResponse.objects.count(), 0)


class ScenarioTests(TestCase):
    """Single required single-choice question with options O1/O2."""

    def setUp(self):
        self.survey = Survey.objects.create(title="Lobby", status=SurveyStatus.ACTIVE)
        self.q1 = Question.objects.create(survey=self.survey, question_text="Lobby cleanliness", question_type=QuestionType.SINGLE_CHOICE, is_required=True)
        self.o1 = QuestionOption.objects.create(question=self.q1, option_text="Clean", order_position=1)
        self.o2 = QuestionOption.objects.create(question=self.q1, option_text="Dirty", order_position=2)

    def test_walkthrough(self):
        from apps.results.services import aggregate_results

        submit_response(self.survey.id, 1, [{"question_id": self.q1.id, "selected_option_ids": [self.o1.id]}])
        results = aggregate_results(self.survey.id)
        question = results["questions"][0]
        self.assertEqual(question["total_responses"], 1)
        self.assertEqual([o["count"] for o in question["results"]["options"]], [1, 0])

        with self.assertRaises(DuplicateResponse):
            submit_response(self.survey.id, 1, [{"question_id": self.q1.id, "selected_option_ids": [self.o2.id]}])
        with self.assertRaises(RequiredFieldMissing):
            submit_response(self.survey.id, 2, [{"question_id": self.q1.id, "selected_option_ids": []}])
        with self.assertRaises(InvalidOptionSelection):
            submit_response(self.survey.id, 2, [{"question_id": self.q1.id, "selected_option_ids": [999]}])

        self.assertEqual(aggregate_results(self.survey.id), results)
        self.assertEqual(SurveyResponse.objects.filter(survey=self.survey).count(), 1)


class SubmitResponseApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.survey, (self.q1, self.o1, self.o2), _ = build_survey()
        self.url = f"/api/v1/surveys/{self.survey.id}/responses/"

    def payload(self, user_id=1, option_ids=None):
        return {
            "user_id": user_id,
            "responses": [{"question_id": self.q1.id, "selected_option_ids": option_ids if option_ids is not None else [self.o1.id]}],
        }

    def test_submit_success(self):
        resp = self.client.post(self.url, self.payload(), format="json")
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["survey_id"], self.survey.id)
        self.assertIn("id", body)
        self.assertIn("submitted_at", body)

    def test_duplicate_conflict(self):
        self.client.post(self.url, self.payload(), format="json")
        resp = self.client.post(self.url, self.payload(), format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["code"], "RESPONSE_ALREADY_EXISTS")

    def test_inactive_conflict(self):
        self.survey.status = SurveyStatus.CLOSED
        self.survey.save()
        resp = self.client.post(self.url, self.payload(), format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["code"], "SURVEY_NOT_ACTIVE")

    def test_required_missing(self):
        resp = self.client.post(self.url, self.payload(option_ids=[]), format="json")
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertEqual(body["code"], "REQUIRED_FIELD_MISSING")
        self.assertEqual(body["question_id"], self.q1.id)

    def test_invalid_option(self):
        resp = self.client.post(self.url, self.payload(option_ids=[999]), format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "INVALID_OPTION_SELECTION")

    def test_survey_not_found(self):
        resp = self.client.post("/api/v1/surveys/999999/responses/", self.payload(), format="json")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["code"], "SURVEY_NOT_FOUND")

    def test_user_id_beyond_column_range_rejected(self):
        payload = self.payload()
        payload["user_id"] = 2**31
        resp = self.client.post(self.url, payload, format="json")
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertEqual(body["code"], "VALIDATION_ERROR")
        self.assertEqual([e["field"] for e in body["errors"]], ["user_id"])
        self.assertEqual(SurveyResponse.objects.count(), 0)

    def test_malformed_payload(self):
        resp = self.client.post(self.url, {"user_id": 0, "responses": []}, format="json")
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertEqual(body["code"], "VALIDATION_ERROR")
        self.assertEqual({e["field"] for e in body["errors"]}, {"user_id", "responses"})
        self.assertEqual(SurveyResponse.objects.count(), 0)


class ConcurrentSubmissionTests(TransactionTestCase):
    """Runs against the file-backed test database, so writers really contend."""

    def race(self, survey_id, question_id, user_id, option_ids):
        barrier = threading.Barrier(len(option_ids))
        outcomes = []

        def worker(option_id):
            try:
                barrier.wait()
                submit_response(survey_id, user_id, [{"question_id": question_id, "selected_option_ids": [option_id]}])
                outcomes.append("ok")
            except DuplicateResponse:
                outcomes.append("duplicate")
            except Exception as exc:
                outcomes.append(f"{type(exc).__name__}: {exc}")
            finally:
                connection.close()

        threads = [threading.Thread(target=worker, args=(opt_id,)) for opt_id in option_ids]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return sorted(outcomes)

    def test_two_simultaneous_submissions_one_wins(self):
        survey, (q1, o1, o2), _ = build_survey()
        for user_id in range(1, 11):
            self.assertEqual(self.race(survey.id, q1.id, user_id, [o1.id, o2.id]), ["duplicate", "ok"])
            self.assertEqual(SurveyResponse.objects.filter(survey=survey, user_id=user_id).count(), 1)
        self.assertEqual(QuestionResponse.objects.filter(response__survey=survey).count(), 10)
