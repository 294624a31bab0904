from django.urls import path
from .views import SubmitResponseView

urlpatterns = [
    path("<int:survey_id>/responses/", SubmitResponseView.as_view(), name="response-submit"),
]
