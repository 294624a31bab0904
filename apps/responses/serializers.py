from rest_framework import serializers
from .models import SurveyResponse

# Upper bound of the user_id column (PositiveIntegerField).
USER_ID_MAX = 2**31 - 1


# Submission payloads
class AnswerSerializer(serializers.Serializer):
    question_id = serializers.IntegerField()
    selected_option_ids = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)


class SubmitResponseSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1, max_value=USER_ID_MAX, help_text="Respondent id supplied by the caller")
    responses = AnswerSerializer(many=True, allow_empty=False)


class SurveyResponseReceiptSerializer(serializers.ModelSerializer):
    survey_id = serializers.IntegerField(read_only=True)
    message = serializers.SerializerMethodField()

    class Meta:
        model = SurveyResponse
        fields = ["id", "survey_id", "submitted_at", "message"]

    def get_message(self, obj: SurveyResponse) -> str:
        return "Response submitted successfully"
