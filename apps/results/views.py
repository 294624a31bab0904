from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework.views import APIView
from rest_framework.response import Response

from apps.core.serializer import ErrorSerializer
from .serializers import SurveyResultsSerializer
from .services import aggregate_results


class SurveyResultsView(APIView):
    permission_classes = []

    @extend_schema(responses={200: SurveyResultsSerializer, 404: ErrorSerializer})
    def get(self, request, survey_id: int):
        """
        Aggregated option counts for every question of the survey.
        Options with no selections are included with count 0.
        """
        return Response(aggregate_results(survey_id))
