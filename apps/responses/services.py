from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Union

from django.db import DatabaseError, IntegrityError, transaction

from apps.core.exceptions import DuplicateResponse, StorageError, SurveyNotActive, ValidationFailed
from apps.surveys import services as catalog
from apps.surveys.models import Survey
from .models import SurveyResponse, QuestionResponse
from .validation import AnswerPayload, SurveyIndex, ValidatedAnswer, validate_submission

logger = logging.getLogger(__name__)

AnswerInput = Union[AnswerPayload, Mapping[str, Any]]


def has_responded(survey_id: int, user_id: int) -> bool:
    return SurveyResponse.objects.filter(survey_id=survey_id, user_id=user_id).exists()


def _as_payloads(answers: Iterable[AnswerInput]) -> List[AnswerPayload]:
    return [a if isinstance(a, AnswerPayload) else AnswerPayload.from_mapping(a) for a in answers]


def _persist(survey: Survey, user_id: int, validated: List[ValidatedAnswer]) -> SurveyResponse:
    """
    Write the response, its question responses and their selections as one unit.
    The (survey, user_id) unique constraint is the final duplicate guard.
    """
    try:
        with transaction.atomic():
            response = SurveyResponse.objects.create(survey=survey, user_id=user_id)
            QuestionResponse.objects.bulk_create(
                [QuestionResponse(response=response, question=v.question) for v in validated]
            )
            qr_ids = dict(
                QuestionResponse.objects
                .filter(response=response)
                .values_list("question_id", "id")
            )
            Selection = QuestionResponse.selected_options.through
            Selection.objects.bulk_create([
                Selection(questionresponse_id=qr_ids[v.question.id], questionoption_id=opt_id)
                for v in validated
                for opt_id in v.option_ids
            ])
    except IntegrityError as exc:
        if has_responded(survey.id, user_id):
            logger.info(
                "Concurrent duplicate response rejected",
                extra={"survey_id": survey.id, "user_id": user_id},
            )
            raise DuplicateResponse() from exc
        logger.exception("Integrity failure while saving response", extra={"survey_id": survey.id})
        raise StorageError() from exc
    except DatabaseError as exc:
        logger.exception("Database failure while saving response", extra={"survey_id": survey.id})
        raise StorageError() from exc
    return response


def submit_response(survey_id: int, user_id: int, answers: Iterable[AnswerInput]) -> SurveyResponse:
    """
    Record one user's answers to a survey.

    Flow:
        - Load survey; it must be ACTIVE.
        - Reject if this user already responded (fast path; the DB constraint
          catches concurrent duplicates).
        - Validate every survey question against the payload, in survey order.
        - Persist response + question responses atomically.

    `answers` items are AnswerPayload or mappings with `question_id` and
    `selected_option_ids`. Unknown question ids are ignored.

    Raises:
        SurveyNotFound, SurveyNotActive, DuplicateResponse,
        RequiredFieldMissing, InvalidOptionSelection, StorageError.
    """
    survey = catalog.get_survey(survey_id)
    if not catalog.is_active(survey):
        logger.info("Submission to inactive survey rejected", extra={"survey_id": survey.id, "survey_status": survey.status})
        raise SurveyNotActive()

    if has_responded(survey.id, user_id):
        logger.info("Duplicate response rejected", extra={"survey_id": survey.id, "user_id": user_id})
        raise DuplicateResponse()

    index = SurveyIndex.build(survey)
    try:
        validated = validate_submission(index, _as_payloads(answers))
    except ValidationFailed as exc:
        logger.info(
            "Submission failed validation",
            extra={"survey_id": survey.id, "user_id": user_id, "code": exc.error_code},
        )
        raise

    response = _persist(survey, user_id, validated)
    logger.info(
        "Response submitted",
        extra={"survey_id": survey.id, "response_id": response.id, "user_id": user_id, "answered": len(validated)},
    )
    return response
