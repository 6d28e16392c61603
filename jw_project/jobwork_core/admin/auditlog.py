from django.contrib import admin

from jobwork_core.models import AuditLog, NumberingConfig

from .forms import NumberingConfigForm


# Register `AuditLog` model
@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("id", "actor", "action", "object_type", "object_id",
                    "label", "created_at")
    search_fields = ("object_type", "object_id", "label", "actor")
    list_filter = ("action", "object_type", "created_at")

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(NumberingConfig)
class NumberingConfigAdmin(admin.ModelAdmin):
    form = NumberingConfigForm
    list_display = ("doc_type", "prefix", "next_number", "mode", "next_preview",
                    "updated_at")
