from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("surveys", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="SurveyResponse",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user_id", models.PositiveIntegerField()),
                ("submitted_at", models.DateTimeField(auto_now_add=True)),
                ("survey", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="responses", to="surveys.survey")),
            ],
            options={
                "indexes": [models.Index(fields=["survey", "-submitted_at"], name="idx_response_survey_time")],
                "constraints": [
                    models.UniqueConstraint(fields=("survey", "user_id"), name="unique_response_per_user_per_survey"),
                ],
            },
        ),
        migrations.CreateModel(
            name="QuestionResponse",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("question", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="question_responses", to="surveys.question")),
                ("response", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="question_responses", to="responses.surveyresponse")),
                ("selected_options", models.ManyToManyField(blank=True, related_name="selections", to="surveys.questionoption")),
            ],
            options={
                "indexes": [models.Index(fields=["question"], name="idx_qresponse_question")],
                "unique_together": {("response", "question")},
            },
        ),
    ]
