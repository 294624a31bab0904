from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.serializer import ErrorSerializer
from apps.core.utility import parse_int
from . import services
from .serializers import (
    SurveyCreateSerializer, SurveyDetailSerializer, SurveyListSerializer,
    SurveyListQuerySerializer, SurveyStatusUpdateSerializer, SurveyStatusSerializer,
)


class SurveyListCreateView(APIView):
    """
    GET: Paginated list, newest first.
         Query params: status (draft/active/closed, unknown values ignored),
                       page (default 1), page_size (default 10, max 100)

    POST: Create a survey with its questions and options.
          Every definition error is reported in one 400 response.
    """
    permission_classes = []

    @extend_schema(parameters=[SurveyListQuerySerializer], responses={200: SurveyListSerializer(many=True)})
    def get(self, request):
        # Out-of-range paging is clamped by list_surveys, never rejected.
        params = request.query_params
        count, surveys = services.list_surveys(
            status=(params.get("status") or "").strip() or None,
            page=parse_int(params.get("page"), 1),
            page_size=parse_int(params.get("page_size"), 10),
        )
        return Response({
            "count": count,
            "results": SurveyListSerializer(surveys, many=True).data,
        })

    @extend_schema(request=SurveyCreateSerializer, responses={201: SurveyDetailSerializer, 400: ErrorSerializer})
    def post(self, request):
        survey = services.create_survey(request.data)
        return Response(SurveyDetailSerializer(survey).data, status=status.HTTP_201_CREATED)


class SurveyDetailView(APIView):
    """
    GET: Return a survey with its ordered questions and options.
    """
    permission_classes = []

    @extend_schema(responses={200: SurveyDetailSerializer, 404: ErrorSerializer})
    def get(self, request, survey_id: int):
        survey = services.get_survey_with_questions(survey_id)
        return Response(SurveyDetailSerializer(survey).data)


class SurveyStatusView(APIView):
    """
    PUT: Move a survey to draft, active or closed.
    """
    permission_classes = []

    @extend_schema(
        request=SurveyStatusUpdateSerializer,
        responses={200: SurveyStatusSerializer, 400: ErrorSerializer, 404: ErrorSerializer},
    )
    def put(self, request, survey_id: int):
        new_status = request.data.get("status") if hasattr(request.data, "get") else None
        survey = services.update_status(survey_id, new_status)
        return Response(SurveyStatusSerializer(survey).data)
