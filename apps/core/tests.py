from django.test import TestCase
from rest_framework.exceptions import ValidationError
from rest_framework.test import APIClient
from apps.core.exceptions import (
    ConflictError, DuplicateResponse, NotFoundError, StorageError, SurveyNotFound,
    SurveyValidationError, ValidationFailed, api_exception_handler,
)


class ErrorTaxonomyTests(TestCase):
    def test_classification_and_status(self):
        self.assertIsInstance(SurveyNotFound(), NotFoundError)
        self.assertIsInstance(DuplicateResponse(), ConflictError)
        self.assertEqual(SurveyNotFound().status_code, 404)
        self.assertEqual(DuplicateResponse().status_code, 409)
        self.assertEqual(StorageError().status_code, 503)
        self.assertIsInstance(SurveyValidationError([]), ValidationFailed)

    def test_service_error_payload(self):
        resp = api_exception_handler(DuplicateResponse(), {})
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data, {
            "error": "You have already submitted a response to this survey",
            "code": "RESPONSE_ALREADY_EXISTS",
        })

    def test_survey_validation_error_lists_fields(self):
        exc = SurveyValidationError([{"field": "title", "message": "This field is required."}])
        resp = api_exception_handler(exc, {})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data["code"], "VALIDATION_ERROR")
        self.assertEqual(resp.data["errors"], [{"field": "title", "message": "This field is required."}])

    def test_serializer_errors_are_flattened(self):
        exc = ValidationError({
            "user_id": ["Ensure this value is greater than or equal to 1."],
            "responses": [{}, {"question_id": ["A valid integer is required."]}],
        })
        resp = api_exception_handler(exc, {})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(
            [e["field"] for e in resp.data["errors"]],
            ["user_id", "responses[1].question_id"],
        )


class SchemaApiTests(TestCase):
    def test_openapi_schema_served(self):
        resp = APIClient().get("/api/schema/")
        self.assertEqual(resp.status_code, 200)
