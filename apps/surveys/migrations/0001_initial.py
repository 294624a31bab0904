from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Survey",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, null=True)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("active", "Active"), ("closed", "Closed")], default="draft", max_length=16)),
            ],
            options={
                "indexes": [models.Index(fields=["status"], name="idx_survey_status")],
            },
        ),
        migrations.CreateModel(
            name="Question",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("question_text", models.CharField(max_length=500)),
                ("question_type", models.CharField(choices=[("single_choice", "Single choice"), ("multiple_choice", "Multiple choice")], max_length=24)),
                ("is_required", models.BooleanField(default=True)),
                ("order_position", models.IntegerField(default=0)),
                ("survey", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="questions", to="surveys.survey")),
            ],
            options={
                "ordering": ["order_position", "id"],
                "indexes": [models.Index(fields=["survey", "order_position"], name="idx_question_survey_order")],
            },
        ),
        migrations.CreateModel(
            name="QuestionOption",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("option_text", models.CharField(max_length=255)),
                ("order_position", models.IntegerField(default=0)),
                ("question", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="options", to="surveys.question")),
            ],
            options={
                "ordering": ["order_position", "id"],
            },
        ),
    ]
