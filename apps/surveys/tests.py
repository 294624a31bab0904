from django.test import TestCase
from rest_framework.test import APIClient
from apps.core.exceptions import SurveyNotFound, SurveyValidationError, InvalidStatus
from apps.responses.models import SurveyResponse
from apps.surveys import services
from apps.surveys.models import Survey, SurveyStatus, QuestionType
from apps.surveys.serializers import SurveyCreateSerializer


def survey_payload(**overrides):
    payload = {
        "title": "Building amenities",
        "description": "Quarterly resident feedback",
        "questions": [
            {
                "question_text": "Which gym hours suit you?",
                "question_type": QuestionType.SINGLE_CHOICE,
                "is_required": True,
                "options": [{"option_text": "Morning"}, {"option_text": "Evening"}],
            },
            {
                "question_text": "Which amenities do you use?",
                "question_type": QuestionType.MULTIPLE_CHOICE,
                "is_required": False,
                "options": [
                    {"option_text": "Pool", "order_position": 2},
                    {"option_text": "Gym", "order_position": 1},
                    {"option_text": "Lounge", "order_position": 3},
                ],
            },
        ],
    }
    payload.update(overrides)
    return payload


class SurveyCatalogServiceTests(TestCase):
    def test_create_survey_builds_ordered_questions_and_options(self):
        survey = services.create_survey(survey_payload())
        self.assertEqual(survey.status, SurveyStatus.DRAFT)
        questions = services.get_questions(survey.id)
        self.assertEqual([q.question_text for q in questions], ["Which gym hours suit you?", "Which amenities do you use?"])
        self.assertEqual([o.option_text for o in questions[0].options.all()], ["Morning", "Evening"])
        # explicit order_position wins over payload order
        self.assertEqual([o.option_text for o in questions[1].options.all()], ["Gym", "Pool", "Lounge"])
        self.assertTrue(questions[0].is_required)
        self.assertFalse(questions[1].is_required)

    def test_is_required_defaults_to_true(self):
        payload = survey_payload()
        del payload["questions"][1]["is_required"]
        survey = services.create_survey(payload)
        self.assertTrue(all(q.is_required for q in services.get_questions(survey.id)))

    def test_create_survey_collects_every_error(self):
        payload = {
            "title": "ab",
            "questions": [
                {"question_text": "Hi", "question_type": QuestionType.SINGLE_CHOICE, "options": []},
                {"question_text": "Valid question text", "question_type": "free_text", "options": [{"option_text": ""}]},
            ],
        }
        with self.assertRaises(SurveyValidationError) as ctx:
            services.create_survey(payload)
        fields = {e["field"] for e in ctx.exception.errors}
        self.assertEqual(fields, {
            "title",
            "questions[0].question_text",
            "questions[0].options",
            "questions[1].question_type",
            "questions[1].options[0].option_text",
        })
        self.assertEqual(Survey.objects.count(), 0)

    def test_create_survey_requires_questions(self):
        with self.assertRaises(SurveyValidationError) as ctx:
            services.create_survey({"title": "No questions here", "questions": []})
        self.assertEqual(ctx.exception.errors[0]["field"], "questions")

    def test_description_length_limit(self):
        with self.assertRaises(SurveyValidationError) as ctx:
            services.create_survey(survey_payload(description="x" * 1001))
        self.assertEqual([e["field"] for e in ctx.exception.errors], ["description"])

    def test_get_survey_missing(self):
        with self.assertRaises(SurveyNotFound):
            services.get_survey(424242)

    def test_is_active(self):
        survey = services.create_survey(survey_payload())
        self.assertFalse(services.is_active(survey))
        survey = services.update_status(survey.id, SurveyStatus.ACTIVE)
        self.assertTrue(services.is_active(survey))

    def test_update_status_rejects_unknown_value(self):
        survey = services.create_survey(survey_payload())
        with self.assertRaises(InvalidStatus):
            services.update_status(survey.id, "archived")
        survey.refresh_from_db()
        self.assertEqual(survey.status, SurveyStatus.DRAFT)

    def test_update_status_missing_survey(self):
        with self.assertRaises(SurveyNotFound):
            services.update_status(424242, SurveyStatus.ACTIVE)

    def test_list_surveys_filters_and_counts_responses(self):
        first = services.create_survey(survey_payload(title="First survey", status=SurveyStatus.ACTIVE))
        services.create_survey(survey_payload(title="Second survey"))
        SurveyResponse.objects.create(survey=first, user_id=1)
        SurveyResponse.objects.create(survey=first, user_id=2)

        count, items = services.list_surveys(status=SurveyStatus.ACTIVE)
        self.assertEqual(count, 1)
        self.assertEqual(items[0].id, first.id)
        self.assertEqual(items[0].response_count, 2)

        count, items = services.list_surveys(status="bogus")
        self.assertEqual(count, 2)
        self.assertEqual(items[0].title, "Second survey")

        count, items = services.list_surveys(page=2, page_size=1)
        self.assertEqual(count, 2)
        self.assertEqual([s.title for s in items], ["First survey"])


class SurveysApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_create_and_fetch_detail(self):
        resp = self.client.post("/api/v1/surveys/", survey_payload(), format="json")
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["status"], "draft")
        self.assertEqual(len(body["questions"]), 2)
        self.assertEqual(len(body["questions"][0]["options"]), 2)

        resp2 = self.client.get(f"/api/v1/surveys/{body['id']}/")
        self.assertEqual(resp2.status_code, 200)
        self.assertEqual(resp2.json()["title"], "Building amenities")

    def test_create_validation_error_body(self):
        resp = self.client.post("/api/v1/surveys/", {"title": "Survey without questions"}, format="json")
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        self.assertEqual(body["code"], "VALIDATION_ERROR")
        self.assertEqual(body["errors"][0]["field"], "questions")

    def test_detail_not_found(self):
        resp = self.client.get("/api/v1/surveys/999999/")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["code"], "SURVEY_NOT_FOUND")

    def test_update_status(self):
        survey = services.create_survey(survey_payload())
        resp = self.client.put(f"/api/v1/surveys/{survey.id}/status/", {"status": "active"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"id": survey.id, "status": "active", "message": "Survey status updated successfully"})

    def test_update_status_invalid(self):
        survey = services.create_survey(survey_payload())
        resp = self.client.put(f"/api/v1/surveys/{survey.id}/status/", {"status": "paused"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "INVALID_STATUS")

    def test_update_status_not_found(self):
        resp = self.client.put("/api/v1/surveys/999999/status/", {"status": "active"}, format="json")
        self.assertEqual(resp.status_code, 404)

    def test_list(self):
        services.create_survey(survey_payload(status=SurveyStatus.ACTIVE))
        resp = self.client.get("/api/v1/surveys/?status=active&page=1&page_size=5")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["count"], 1)
        self.assertEqual(body["results"][0]["response_count"], 0)

    def test_list_keeps_status_filter_when_paging_out_of_range(self):
        services.create_survey(survey_payload(title="Active survey", status=SurveyStatus.ACTIVE))
        for i in range(12):
            services.create_survey(survey_payload(title=f"Draft survey {i}"))

        resp = self.client.get("/api/v1/surveys/?status=active&page_size=500")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["count"], 1)
        self.assertEqual([s["title"] for s in body["results"]], ["Active survey"])

        # page_size above the cap is clamped to 100, page=0 to the first page
        resp = self.client.get("/api/v1/surveys/?status=draft&page=0&page_size=500")
        body = resp.json()
        self.assertEqual(body["count"], 12)
        self.assertEqual(len(body["results"]), 12)

        resp = self.client.get("/api/v1/surveys/?page=abc&page_size=5")
        self.assertEqual(len(resp.json()["results"]), 5)


class SurveyCreateSchemaTests(TestCase):
    def test_documented_request_matches_service_rules(self):
        ser = SurveyCreateSerializer(data=survey_payload(description=""))
        self.assertTrue(ser.is_valid(), ser.errors)
        self.assertEqual(services.validate_survey(survey_payload(description="")), [])

        payload = survey_payload()
        payload["questions"][0]["options"] = []
        self.assertFalse(SurveyCreateSerializer(data=payload).is_valid())
        self.assertEqual(
            [e["field"] for e in services.validate_survey(payload)],
            ["questions[0].options"],
        )
