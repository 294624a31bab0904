from django.urls import path
from .views import SurveyResultsView


urlpatterns = [
    path("<int:survey_id>/results/", SurveyResultsView.as_view(), name="survey-results"),
]
