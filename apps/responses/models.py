from django.db import models
from apps.core.models import TimeStampedModel
from auditlog.registry import auditlog
from apps.surveys.models import Survey, Question, QuestionOption


class SurveyResponse(TimeStampedModel):
    survey = models.ForeignKey(Survey, on_delete=models.CASCADE, related_name="responses")
    user_id = models.PositiveIntegerField()
    submitted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["survey", "user_id"],
                name="unique_response_per_user_per_survey",
            ),
        ]
        indexes = [
            models.Index(fields=["survey", "-submitted_at"], name="idx_response_survey_time"),
        ]

    def __str__(self):
        return f"response#{self.id} survey#{self.survey_id} user#{self.user_id}"


class QuestionResponse(TimeStampedModel):
    response = models.ForeignKey(SurveyResponse, on_delete=models.CASCADE, related_name="question_responses")
    question = models.ForeignKey(Question, on_delete=models.CASCADE, related_name="question_responses")
    selected_options = models.ManyToManyField(QuestionOption, related_name="selections", blank=True)

    class Meta:
        unique_together = ("response", "question")
        indexes = [
            models.Index(fields=["question"], name="idx_qresponse_question"),
        ]

    def __str__(self):
        return f"qr#{self.id} q#{self.question_id}"

    @property
    def selected_option_ids(self) -> list[int]:
        return sorted(opt.id for opt in self.selected_options.all())


# Register audit logging for responses models
auditlog.register(SurveyResponse)
auditlog.register(QuestionResponse)
