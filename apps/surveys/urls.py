from django.urls import path
from .views import SurveyListCreateView, SurveyDetailView, SurveyStatusView

urlpatterns = [
    path("", SurveyListCreateView.as_view(), name="survey-list-create"),
    path("<int:survey_id>/", SurveyDetailView.as_view(), name="survey-detail"),
    path("<int:survey_id>/status/", SurveyStatusView.as_view(), name="survey-status"),
]
