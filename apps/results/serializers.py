from rest_framework import serializers


# Response shapes for the OpenAPI schema; the view returns the service dict as-is.

class OptionCountSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    option_text = serializers.CharField()
    count = serializers.IntegerField()


class QuestionOptionCountsSerializer(serializers.Serializer):
    options = OptionCountSerializer(many=True, required=False)


class QuestionResultSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    question_text = serializers.CharField()
    question_type = serializers.CharField()
    is_required = serializers.BooleanField()
    total_responses = serializers.IntegerField()
    results = QuestionOptionCountsSerializer()


class SurveySummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    title = serializers.CharField()
    status = serializers.CharField()
    total_responses = serializers.IntegerField()


class SurveyResultsSerializer(serializers.Serializer):
    survey = SurveySummarySerializer()
    questions = QuestionResultSerializer(many=True)
