from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from django.db import transaction
from django.db.models import Count

from apps.responses.models import SurveyResponse, QuestionResponse
from apps.surveys import services as catalog

logger = logging.getLogger(__name__)


def _question_totals(response_ids: Sequence[int]) -> Dict[int, int]:
    """question id -> number of stored question responses (one per respondent who answered it)."""
    if not response_ids:
        return {}
    rows = (
        QuestionResponse.objects
        .filter(response_id__in=response_ids)
        .values("question_id")
        .annotate(count=Count("id"))
        .order_by()
    )
    return {row["question_id"]: row["count"] for row in rows}


def _option_counts(response_ids: Sequence[int]) -> Dict[int, int]:
    """option id -> number of times it was selected; options never selected are absent."""
    if not response_ids:
        return {}
    Selection = QuestionResponse.selected_options.through
    rows = (
        Selection.objects
        .filter(questionresponse__response_id__in=response_ids)
        .values("questionoption_id")
        .annotate(count=Count("id"))
        .order_by()
    )
    return {row["questionoption_id"]: row["count"] for row in rows}


def aggregate_results(survey_id: int) -> Dict[str, Any]:
    """
    Per-question, per-option selection counts for a survey.

    Shape:
        {
          "survey": {"id", "title", "status", "total_responses"},
          "questions": [
            {"id", "question_text", "question_type", "is_required", "total_responses",
             "results": {"options": [{"id", "option_text", "count"}, ...]}},
          ]
        }

    Questions keep survey order and options keep question order; options nobody
    picked are reported with count 0. Survey-level `total_responses` counts
    respondents, question-level `total_responses` counts respondents who
    answered that question.

    Raises:
        SurveyNotFound
    """
    survey = catalog.get_survey(survey_id)
    questions = catalog.get_questions(survey.id)

    # Every count is taken over one fixed set of responses, so a submission
    # committing mid-aggregation is either fully counted or not at all.
    with transaction.atomic():
        response_ids = list(SurveyResponse.objects.filter(survey_id=survey.id).values_list("id", flat=True))
        question_totals = _question_totals(response_ids)
        option_counts = _option_counts(response_ids)
    total_responses = len(response_ids)

    question_results: List[Dict[str, Any]] = []
    for question in questions:
        entry: Dict[str, Any] = {
            "id": question.id,
            "question_text": question.question_text,
            "question_type": question.question_type,
            "is_required": question.is_required,
            "total_responses": question_totals.get(question.id, 0),
            "results": {},
        }
        if question.is_choice_question:
            entry["results"] = {
                "options": [
                    {
                        "id": option.id,
                        "option_text": option.option_text,
                        "count": option_counts.get(option.id, 0),
                    }
                    for option in question.options.all()
                ],
            }
        question_results.append(entry)

    logger.debug("Results aggregated", extra={"survey_id": survey.id, "total_responses": total_responses})
    return {
        "survey": {
            "id": survey.id,
            "title": survey.title,
            "status": survey.status,
            "total_responses": total_responses,
        },
        "questions": question_results,
    }
