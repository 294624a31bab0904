from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from django.db import transaction
from django.db.models import Count, QuerySet

from apps.core.exceptions import SurveyNotFound, SurveyValidationError, InvalidStatus
from apps.core.utility import clean_text, page_bounds
from .models import Survey, Question, QuestionOption, QuestionType, SurveyStatus, CHOICE_TYPES

logger = logging.getLogger(__name__)

TITLE_MIN, TITLE_MAX = 3, 255
DESCRIPTION_MAX = 1000
QUESTION_TEXT_MIN, QUESTION_TEXT_MAX = 5, 500
OPTION_TEXT_MAX = 255

ErrorList = List[Dict[str, str]]


# ---- Lookups -------------------------------------------------------------------

def get_survey(survey_id: int) -> Survey:
    """Fetch a survey by id or raise SurveyNotFound."""
    survey = Survey.objects.filter(pk=survey_id).first()
    if survey is None:
        raise SurveyNotFound()
    return survey


def get_survey_with_questions(survey_id: int) -> Survey:
    """Same as `get_survey`, with questions and their options prefetched in display order."""
    survey = (
        Survey.objects
        .prefetch_related("questions__options")
        .filter(pk=survey_id)
        .first()
    )
    if survey is None:
        raise SurveyNotFound()
    return survey


def is_active(survey: Survey) -> bool:
    return survey.status == SurveyStatus.ACTIVE


def get_questions(survey_id: int) -> List[Question]:
    """Ordered questions of a survey, each with its ordered options prefetched."""
    return list(
        Question.objects
        .filter(survey_id=survey_id)
        .prefetch_related("options")
        .order_by("order_position", "id")
    )


def list_surveys(
    status: Optional[str] = None,
    page: int = 1,
    page_size: int = 10,
) -> Tuple[int, List[Survey]]:
    """
    Newest-first page of surveys, each annotated with `response_count`.
    An unknown `status` value is ignored rather than rejected.
    """
    qs: QuerySet = Survey.objects.annotate(response_count=Count("responses")).order_by("-created_at", "-id")
    if status in SurveyStatus.values:
        qs = qs.filter(status=status)

    start, end = page_bounds(page, page_size)
    return qs.count(), list(qs[start:end])


# ---- Definition validation -----------------------------------------------------

def _error(field: str, message: str) -> Dict[str, str]:
    return {"field": field, "message": message}


def _check_order(value: Any, path: str, errors: ErrorList) -> None:
    if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
        errors.append(_error(f"{path}.order_position", "Must be an integer."))


def _order_or(data: Mapping[str, Any], default: int) -> int:
    value = data.get("order_position")
    return default if value is None else value


def validate_option(data: Any, path: str) -> ErrorList:
    if not isinstance(data, Mapping):
        return [_error(path, "Must be an object.")]
    errors: ErrorList = []
    text = clean_text(data.get("option_text"))
    if not text:
        errors.append(_error(f"{path}.option_text", "This field is required."))
    elif len(text) > OPTION_TEXT_MAX:
        errors.append(_error(f"{path}.option_text", f"Must be at most {OPTION_TEXT_MAX} characters."))
    _check_order(data.get("order_position"), path, errors)
    return errors


def validate_question(data: Any, path: str) -> ErrorList:
    if not isinstance(data, Mapping):
        return [_error(path, "Must be an object.")]
    errors: ErrorList = []

    text = clean_text(data.get("question_text"))
    if not text:
        errors.append(_error(f"{path}.question_text", "This field is required."))
    elif not (QUESTION_TEXT_MIN <= len(text) <= QUESTION_TEXT_MAX):
        errors.append(_error(
            f"{path}.question_text",
            f"Must be between {QUESTION_TEXT_MIN} and {QUESTION_TEXT_MAX} characters.",
        ))

    qtype = data.get("question_type")
    if qtype not in QuestionType.values:
        errors.append(_error(
            f"{path}.question_type",
            f"Must be one of: {', '.join(QuestionType.values)}.",
        ))

    required = data.get("is_required", True)
    if not isinstance(required, bool):
        errors.append(_error(f"{path}.is_required", "Must be a boolean."))

    _check_order(data.get("order_position"), path, errors)

    options = data.get("options") or []
    if not isinstance(options, list):
        errors.append(_error(f"{path}.options", "Must be a list."))
        options = []
    if qtype in CHOICE_TYPES and not options:
        errors.append(_error(f"{path}.options", "Choice questions need at least one option."))
    for idx, opt in enumerate(options):
        errors.extend(validate_option(opt, f"{path}.options[{idx}]"))
    return errors


def validate_survey(data: Any) -> ErrorList:
    """Validate a whole creation payload; returns every problem found (empty list when valid)."""
    if not isinstance(data, Mapping):
        return [_error("non_field_errors", "Expected an object.")]
    errors: ErrorList = []

    title = clean_text(data.get("title"))
    if not title:
        errors.append(_error("title", "This field is required."))
    elif not (TITLE_MIN <= len(title) <= TITLE_MAX):
        errors.append(_error("title", f"Must be between {TITLE_MIN} and {TITLE_MAX} characters."))

    description = data.get("description")
    if description is not None:
        if not isinstance(description, str):
            errors.append(_error("description", "Must be a string."))
        elif len(description) > DESCRIPTION_MAX:
            errors.append(_error("description", f"Must be at most {DESCRIPTION_MAX} characters."))

    status = data.get("status")
    if status is not None and status not in SurveyStatus.values:
        errors.append(_error("status", f"Must be one of: {', '.join(SurveyStatus.values)}."))

    questions = data.get("questions")
    if not isinstance(questions, list) or not questions:
        errors.append(_error("questions", "At least one question is required."))
        questions = []
    for idx, q in enumerate(questions):
        errors.extend(validate_question(q, f"questions[{idx}]"))
    return errors


# ---- Mutations -----------------------------------------------------------------

@transaction.atomic
def create_survey(data: Mapping[str, Any]) -> Survey:
    """
    Create a survey with its questions and options in one transaction.

    Payload:
        {
          "title": str, "description": str?, "status": str?,
          "questions": [
            {"question_text": str, "question_type": "single_choice"|"multiple_choice",
             "is_required": bool?, "order_position": int?,
             "options": [{"option_text": str, "order_position": int?}, ...]}
          ]
        }

    Missing `order_position` values default to the item's index in the payload.

    Raises:
        SurveyValidationError carrying every field error found.
    """
    errors = validate_survey(data)
    if errors:
        logger.info("Survey definition rejected", extra={"error_count": len(errors)})
        raise SurveyValidationError(errors)

    survey = Survey.objects.create(
        title=clean_text(data["title"]),
        description=data.get("description"),
        status=data.get("status") or SurveyStatus.DRAFT,
    )

    options: List[QuestionOption] = []
    for q_idx, q_data in enumerate(data["questions"]):
        question = Question.objects.create(
            survey=survey,
            question_text=clean_text(q_data["question_text"]),
            question_type=q_data["question_type"],
            is_required=q_data.get("is_required", True),
            order_position=_order_or(q_data, q_idx),
        )
        for o_idx, o_data in enumerate(q_data.get("options") or []):
            options.append(QuestionOption(
                question=question,
                option_text=clean_text(o_data["option_text"]),
                order_position=_order_or(o_data, o_idx),
            ))
    if options:
        QuestionOption.objects.bulk_create(options)

    logger.info(
        "Survey created",
        extra={"survey_id": survey.id, "questions": len(data["questions"]), "options": len(options)},
    )
    return get_survey_with_questions(survey.id)


def update_status(survey_id: int, new_status: Any) -> Survey:
    """
    Caller-directed status transition; any status may move to any other.

    Raises:
        SurveyNotFound, InvalidStatus
    """
    survey = get_survey(survey_id)
    if new_status not in SurveyStatus.values:
        raise InvalidStatus()

    previous = survey.status
    if previous != new_status:
        survey.status = new_status
        survey.save(update_fields=["status", "updated_at"])
    logger.info(
        "Survey status updated",
        extra={"survey_id": survey.id, "from_status": previous, "to_status": new_status},
    )
    return survey
