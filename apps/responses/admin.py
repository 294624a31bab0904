from django.contrib import admin
from .models import SurveyResponse, QuestionResponse


class QuestionResponseInline(admin.TabularInline):
    model = QuestionResponse
    extra = 0
    can_delete = False
    readonly_fields = ("question", "selected_options")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(SurveyResponse)
class SurveyResponseAdmin(admin.ModelAdmin):
    """Read-only: responses are immutable once submitted."""
    list_display = ("id", "survey", "user_id", "submitted_at")
    list_filter = ("survey",)
    readonly_fields = ("survey", "user_id", "submitted_at")
    inlines = [QuestionResponseInline]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
