"""
Per-question answer validation for survey submissions.

Rules for choice questions (single and multiple choice):
  - a non-empty selection must only reference the question's own options;
  - a single-choice question accepts at most one distinct option;
  - an empty or absent selection fails only when the question is required.

"Answered" means at least one option id was selected: an entry with an empty
`selected_option_ids` list counts as no answer.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Set, Tuple

from apps.core.exceptions import InvalidOptionSelection, RequiredFieldMissing
from apps.surveys.models import Survey, Question


class AnswerPayload(NamedTuple):
    question_id: int
    selected_option_ids: Tuple[int, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AnswerPayload":
        return cls(
            question_id=data["question_id"],
            selected_option_ids=tuple(data.get("selected_option_ids") or ()),
        )


class ValidatedAnswer(NamedTuple):
    question: Question
    option_ids: Tuple[int, ...]

    @property
    def has_response(self) -> bool:
        return bool(self.option_ids)


class SurveyIndex:
    """
    In-memory view of a survey's definition:
      - questions:       ordered list of Question
      - by_id:           question id -> Question
      - options_by_qid:  question id -> set of option ids
    """

    def __init__(self, questions: List[Question], options_by_qid: Dict[int, Set[int]]):
        self.questions = questions
        self.by_id = {q.id: q for q in questions}
        self.options_by_qid = options_by_qid

    @classmethod
    def build(cls, survey: Survey) -> "SurveyIndex":
        """Prefetch questions/options once, in display order."""
        questions = list(
            survey.questions.all()
            .prefetch_related("options")
            .order_by("order_position", "id")
        )
        options_by_qid = {q.id: {opt.id for opt in q.options.all()} for q in questions}
        return cls(questions, options_by_qid)

    def allowed_options(self, question: Question) -> Set[int]:
        return self.options_by_qid.get(question.id, set())


def _dedupe(ids: Iterable[int]) -> Tuple[int, ...]:
    return tuple(dict.fromkeys(ids))


def validate_answer(
    question: Question,
    answer: Optional[AnswerPayload],
    allowed_option_ids: Set[int],
) -> ValidatedAnswer:
    """
    Validate one answer against its question.

    Raises:
        InvalidOptionSelection: an id outside the question's options, or several ids
            for a single-choice question.
        RequiredFieldMissing: required question with nothing selected.
    """
    selected = _dedupe(answer.selected_option_ids) if answer is not None else ()

    if question.is_choice_question and selected:
        if any(opt_id not in allowed_option_ids for opt_id in selected):
            raise InvalidOptionSelection(question)
        if question.is_single_choice and len(selected) > 1:
            raise InvalidOptionSelection(question, reason="Only one option may be selected")

    if question.is_required and not selected:
        raise RequiredFieldMissing(question)

    return ValidatedAnswer(question=question, option_ids=selected)


def validate_submission(index: SurveyIndex, answers: Iterable[AnswerPayload]) -> List[ValidatedAnswer]:
    """
    Validate a whole payload against the survey, in survey question order.

    - Answers for question ids outside the survey are skipped silently.
    - When a question id appears more than once, the last entry wins.
    - Required questions missing from the payload fail like empty answers.

    Returns one ValidatedAnswer per question present in the payload.
    """
    by_qid: Dict[int, AnswerPayload] = {}
    for answer in answers:
        if answer.question_id in index.by_id:
            by_qid[answer.question_id] = answer

    validated: List[ValidatedAnswer] = []
    for question in index.questions:
        answer = by_qid.get(question.id)
        result = validate_answer(question, answer, index.allowed_options(question))
        if answer is not None:
            validated.append(result)
    return validated
