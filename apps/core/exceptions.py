"""
Error taxonomy shared by the survey services.

Services raise these; DRF renders them through `api_exception_handler` as
`{"error": <message>, "code": <ErrorCode>}` with the class' HTTP status.

    NotFoundError      404  terminal
    ValidationFailed   400  caller must correct the payload
    ConflictError      409  business-rule rejection
    StorageError       503  nothing was committed; safe to retry the whole call
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.settings import api_settings
from rest_framework.views import exception_handler

from .enums import ErrorCode

logger = logging.getLogger(__name__)


class SurveyServiceError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed."
    default_code = ErrorCode.SERVER_ERROR.value

    def __init__(self, detail: Optional[str] = None, **context: Any):
        super().__init__(detail=detail or self.default_detail, code=self.default_code)
        self.message = str(self.detail)
        self.context = context

    @property
    def error_code(self) -> str:
        return self.default_code

    def as_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message, "code": self.error_code}
        payload.update({k: v for k, v in self.context.items() if v is not None})
        return payload


# ---- NotFound ------------------------------------------------------------------

class NotFoundError(SurveyServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."


class SurveyNotFound(NotFoundError):
    default_detail = "Survey not found"
    default_code = ErrorCode.SURVEY_NOT_FOUND.value


# ---- Validation ----------------------------------------------------------------

class ValidationFailed(SurveyServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Validation failed."
    default_code = ErrorCode.VALIDATION_ERROR.value


class SurveyValidationError(ValidationFailed):
    """Collected survey-definition errors; `errors` is a list of {field, message}."""

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = list(errors)
        summary = ", ".join(f"{e['field']}: {e['message']}" for e in self.errors)
        super().__init__(f"Survey validation failed: {summary}", errors=self.errors)


class InvalidStatus(ValidationFailed):
    default_detail = "Invalid status"
    default_code = ErrorCode.INVALID_STATUS.value


class RequiredFieldMissing(ValidationFailed):
    default_code = ErrorCode.REQUIRED_FIELD_MISSING.value

    def __init__(self, question):
        self.question_id = question.id
        super().__init__(
            f"Response required for question: {question.question_text}",
            question_id=question.id,
        )


class InvalidOptionSelection(ValidationFailed):
    default_code = ErrorCode.INVALID_OPTION_SELECTION.value

    def __init__(self, question, reason: str = "Invalid option IDs provided"):
        self.question_id = question.id
        super().__init__(
            f"{reason} for question: {question.question_text}",
            question_id=question.id,
        )


# ---- Conflict ------------------------------------------------------------------

class ConflictError(SurveyServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."


class SurveyNotActive(ConflictError):
    default_detail = "Survey is not active"
    default_code = ErrorCode.SURVEY_NOT_ACTIVE.value


class DuplicateResponse(ConflictError):
    default_detail = "You have already submitted a response to this survey"
    default_code = ErrorCode.RESPONSE_ALREADY_EXISTS.value


# ---- Storage -------------------------------------------------------------------

class StorageError(SurveyServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Storage failure; nothing was saved"
    default_code = ErrorCode.STORAGE_ERROR.value


# ---- DRF hook ------------------------------------------------------------------

def _flatten_drf_errors(detail: Any, prefix: str = "") -> List[Dict[str, str]]:
    """Turn DRF's nested serializer error structure into [{field, message}, ...]."""
    if isinstance(detail, dict):
        out: List[Dict[str, str]] = []
        for key, value in detail.items():
            if key == api_settings.NON_FIELD_ERRORS_KEY and prefix:
                path = prefix
            else:
                path = f"{prefix}.{key}" if prefix else str(key)
            out.extend(_flatten_drf_errors(value, path))
        return out
    if isinstance(detail, list):
        if all(not isinstance(item, (dict, list)) for item in detail):
            return [{"field": prefix or "non_field_errors", "message": str(item)} for item in detail]
        out = []
        for idx, item in enumerate(detail):
            out.extend(_flatten_drf_errors(item, f"{prefix}[{idx}]"))
        return out
    return [{"field": prefix or "non_field_errors", "message": str(detail)}]


def api_exception_handler(exc, context):
    """
    REST_FRAMEWORK["EXCEPTION_HANDLER"].

    - SurveyServiceError subclasses render their own payload.
    - DRF serializer ValidationError becomes VALIDATION_ERROR with a flat `errors` list.
    - Everything else falls back to DRF's default rendering (or Django's 500).
    """
    if isinstance(exc, SurveyServiceError):
        logger.info("Request rejected", extra={"code": exc.error_code, "status": exc.status_code})
        return Response(exc.as_payload(), status=exc.status_code)

    if isinstance(exc, DRFValidationError):
        errors = _flatten_drf_errors(exc.detail)
        message = "; ".join(f"{e['field']}: {e['message']}" for e in errors) or "Invalid input"
        return Response(
            {"error": message, "code": ErrorCode.VALIDATION_ERROR.value, "errors": errors},
            status=status.HTTP_400_BAD_REQUEST,
        )

    return exception_handler(exc, context)
