from drf_spectacular.utils import extend_schema
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status

from apps.core.serializer import ErrorSerializer
from .serializers import SubmitResponseSerializer, SurveyResponseReceiptSerializer
from .services import submit_response


class SubmitResponseView(APIView):
    """
    POST: { "user_id": U, "responses": [ {"question_id": Q, "selected_option_ids": [..]}, ... ] }

    One response per user per survey; the survey must be active.
    """
    # Public submission allowed
    permission_classes = []

    @extend_schema(
        request=SubmitResponseSerializer,
        responses={201: SurveyResponseReceiptSerializer, 400: ErrorSerializer, 404: ErrorSerializer, 409: ErrorSerializer},
    )
    def post(self, request, survey_id: int):
        ser = SubmitResponseSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        resp = submit_response(
            survey_id,
            ser.validated_data["user_id"],
            ser.validated_data["responses"],
        )
        return Response(SurveyResponseReceiptSerializer(resp).data, status=status.HTTP_201_CREATED)
