from unittest import mock

from django.test import TestCase
from rest_framework.test import APIClient
from apps.core.exceptions import SurveyNotFound
from apps.responses.services import submit_response
from apps.results import services as results_services
from apps.results.services import aggregate_results
from apps.surveys.models import Survey, SurveyStatus, Question, QuestionOption, QuestionType


class AggregationTests(TestCase):
    def setUp(self):
        self.survey = Survey.objects.create(title="Maintenance", status=SurveyStatus.ACTIVE)
        # created out of display order on purpose
        self.q2 = Question.objects.create(survey=self.survey, question_text="Which areas need work?", question_type=QuestionType.MULTIPLE_CHOICE, is_required=False, order_position=2)
        self.q1 = Question.objects.create(survey=self.survey, question_text="How fast are repairs?", question_type=QuestionType.SINGLE_CHOICE, is_required=True, order_position=1)
        self.slow = QuestionOption.objects.create(question=self.q1, option_text="Slow", order_position=3)
        self.fast = QuestionOption.objects.create(question=self.q1, option_text="Fast", order_position=1)
        self.ok = QuestionOption.objects.create(question=self.q1, option_text="OK", order_position=2)
        self.hall = QuestionOption.objects.create(question=self.q2, option_text="Hallways", order_position=1)
        self.roof = QuestionOption.objects.create(question=self.q2, option_text="Roof", order_position=2)

    def submit(self, user_id, q1_option, *q2_options, answer_q2=True):
        answers = [{"question_id": self.q1.id, "selected_option_ids": [q1_option.id]}]
        if answer_q2:
            answers.append({"question_id": self.q2.id, "selected_option_ids": [o.id for o in q2_options]})
        submit_response(self.survey.id, user_id, answers)

    def test_zero_responses_reports_every_option(self):
        results = aggregate_results(self.survey.id)
        self.assertEqual(results["survey"]["total_responses"], 0)
        self.assertEqual([q["id"] for q in results["questions"]], [self.q1.id, self.q2.id])
        q1 = results["questions"][0]
        self.assertEqual(q1["total_responses"], 0)
        self.assertEqual(
            q1["results"]["options"],
            [
                {"id": self.fast.id, "option_text": "Fast", "count": 0},
                {"id": self.ok.id, "option_text": "OK", "count": 0},
                {"id": self.slow.id, "option_text": "Slow", "count": 0},
            ],
        )
        self.assertEqual(len(results["questions"][1]["results"]["options"]), 2)

    def test_counts(self):
        self.submit(1, self.fast, self.hall, self.roof)
        self.submit(2, self.fast, self.roof)
        self.submit(3, self.slow, answer_q2=False)
        self.submit(4, self.ok)  # q2 answered with an empty selection

        results = aggregate_results(self.survey.id)
        self.assertEqual(results["survey"]["total_responses"], 4)

        q1, q2 = results["questions"]
        self.assertEqual(q1["total_responses"], 4)
        self.assertEqual({o["option_text"]: o["count"] for o in q1["results"]["options"]}, {"Fast": 2, "OK": 1, "Slow": 1})
        self.assertEqual(sum(o["count"] for o in q1["results"]["options"]), q1["total_responses"])

        self.assertEqual(q2["total_responses"], 3)
        self.assertEqual({o["option_text"]: o["count"] for o in q2["results"]["options"]}, {"Hallways": 1, "Roof": 2})

    def test_other_surveys_do_not_leak(self):
        other = Survey.objects.create(title="Other", status=SurveyStatus.ACTIVE)
        oq = Question.objects.create(survey=other, question_text="Other question", question_type=QuestionType.SINGLE_CHOICE)
        oo = QuestionOption.objects.create(question=oq, option_text="Yes")
        submit_response(other.id, 1, [{"question_id": oq.id, "selected_option_ids": [oo.id]}])

        results = aggregate_results(self.survey.id)
        self.assertEqual(results["survey"]["total_responses"], 0)
        self.assertTrue(all(o["count"] == 0 for q in results["questions"] for o in q["results"]["options"]))

    def test_closed_survey_still_reports(self):
        self.submit(1, self.fast)
        self.survey.status = SurveyStatus.CLOSED
        self.survey.save()
        results = aggregate_results(self.survey.id)
        self.assertEqual(results["survey"]["status"], "closed")
        self.assertEqual(results["survey"]["total_responses"], 1)

    def test_submission_during_aggregation_is_counted_all_or_nothing(self):
        real_question_totals = results_services._question_totals

        def submit_then_count(response_ids):
            self.submit(1, self.fast, self.roof)
            return real_question_totals(response_ids)

        with mock.patch("apps.results.services._question_totals", side_effect=submit_then_count):
            results = aggregate_results(self.survey.id)

        self.assertEqual(results["survey"]["total_responses"], 0)
        for question in results["questions"]:
            self.assertEqual(question["total_responses"], 0)
            self.assertTrue(all(o["count"] == 0 for o in question["results"]["options"]))

        results = aggregate_results(self.survey.id)
        self.assertEqual(results["survey"]["total_responses"], 1)
        self.assertEqual([q["total_responses"] for q in results["questions"]], [1, 1])

    def test_missing_survey(self):
        with self.assertRaises(SurveyNotFound):
            aggregate_results(999999)


class ResultsApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.survey = Survey.objects.create(title="Parking", status=SurveyStatus.ACTIVE)
        self.q = Question.objects.create(survey=self.survey, question_text="Enough spaces?", question_type=QuestionType.SINGLE_CHOICE)
        self.yes = QuestionOption.objects.create(question=self.q, option_text="Yes", order_position=1)
        self.no = QuestionOption.objects.create(question=self.q, option_text="No", order_position=2)

    def test_results_ok(self):
        submit_response(self.survey.id, 1, [{"question_id": self.q.id, "selected_option_ids": [self.no.id]}])
        resp = self.client.get(f"/api/v1/surveys/{self.survey.id}/results/")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["survey"], {"id": self.survey.id, "title": "Parking", "status": "active", "total_responses": 1})
        self.assertEqual([o["count"] for o in body["questions"][0]["results"]["options"]], [0, 1])

    def test_results_not_found(self):
        resp = self.client.get("/api/v1/surveys/999999/results/")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["code"], "SURVEY_NOT_FOUND")
