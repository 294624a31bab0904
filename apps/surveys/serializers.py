from rest_framework import serializers
from apps.core.serializer import PaginationQuerySerializer
from .models import Survey, Question, QuestionOption, SurveyStatus, QuestionType


# Write payloads. Semantic checks (lengths, option presence) live in
# services.validate_survey so every error is reported at once; these
# serializers describe the request bodies for the OpenAPI schema.

class OptionCreateSerializer(serializers.Serializer):
    option_text = serializers.CharField(max_length=255)
    order_position = serializers.IntegerField(required=False)


class QuestionCreateSerializer(serializers.Serializer):
    question_text = serializers.CharField(min_length=5, max_length=500)
    question_type = serializers.ChoiceField(choices=QuestionType.choices)
    is_required = serializers.BooleanField(required=False, default=True)
    order_position = serializers.IntegerField(required=False)
    options = OptionCreateSerializer(many=True, allow_empty=False)


class SurveyCreateSerializer(serializers.Serializer):
    title = serializers.CharField(min_length=3, max_length=255)
    description = serializers.CharField(max_length=1000, required=False, allow_null=True, allow_blank=True)
    status = serializers.ChoiceField(choices=SurveyStatus.choices, required=False)
    questions = QuestionCreateSerializer(many=True, allow_empty=False)


class SurveyStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=SurveyStatus.choices)


class SurveyListQuerySerializer(PaginationQuerySerializer):
    status = serializers.CharField(required=False, allow_blank=True, help_text="draft, active or closed")


# Read serializers for nested detail
class OptionReadSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuestionOption
        fields = ["id", "option_text", "order_position"]


class QuestionReadSerializer(serializers.ModelSerializer):
    options = OptionReadSerializer(many=True, read_only=True)

    class Meta:
        model = Question
        fields = ["id", "question_text", "question_type", "is_required", "order_position", "options"]


class SurveyDetailSerializer(serializers.ModelSerializer):
    questions = QuestionReadSerializer(many=True, read_only=True)

    class Meta:
        model = Survey
        fields = ["id", "title", "description", "status", "created_at", "questions"]


class SurveyListSerializer(serializers.ModelSerializer):
    response_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Survey
        fields = ["id", "title", "status", "response_count", "created_at"]


class SurveyStatusSerializer(serializers.ModelSerializer):
    message = serializers.SerializerMethodField()

    class Meta:
        model = Survey
        fields = ["id", "status", "message"]

    def get_message(self, obj: Survey) -> str:
        return "Survey status updated successfully"
