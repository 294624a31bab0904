from django.db import models
from apps.core.models import TimeStampedModel
from auditlog.registry import auditlog


class SurveyStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    ACTIVE = "active", "Active"
    CLOSED = "closed", "Closed"


class QuestionType(models.TextChoices):
    SINGLE_CHOICE = "single_choice", "Single choice"
    MULTIPLE_CHOICE = "multiple_choice", "Multiple choice"


CHOICE_TYPES = (QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE)


class Survey(TimeStampedModel):
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=16, choices=SurveyStatus.choices, default=SurveyStatus.DRAFT)

    class Meta:
        indexes = [
            models.Index(fields=["status"], name="idx_survey_status"),
        ]

    def __str__(self):
        return f"survey#{self.id}:{self.title}"


class Question(TimeStampedModel):
    survey = models.ForeignKey(Survey, on_delete=models.CASCADE, related_name="questions")
    question_text = models.CharField(max_length=500)
    question_type = models.CharField(max_length=24, choices=QuestionType.choices)
    is_required = models.BooleanField(default=True)
    order_position = models.IntegerField(default=0)

    class Meta:
        ordering = ["order_position", "id"]
        indexes = [
            models.Index(fields=["survey", "order_position"], name="idx_question_survey_order"),
        ]

    def __str__(self):
        return f"{self.survey_id}:q#{self.id}"

    @property
    def is_choice_question(self) -> bool:
        return self.question_type in CHOICE_TYPES

    @property
    def is_single_choice(self) -> bool:
        return self.question_type == QuestionType.SINGLE_CHOICE


class QuestionOption(TimeStampedModel):
    question = models.ForeignKey(Question, on_delete=models.CASCADE, related_name="options")
    option_text = models.CharField(max_length=255)
    order_position = models.IntegerField(default=0)

    class Meta:
        ordering = ["order_position", "id"]

    def __str__(self):
        return f"{self.question_id}:opt#{self.id}"


# Register audit logging for survey models
auditlog.register(Survey)
auditlog.register(Question)
auditlog.register(QuestionOption)
