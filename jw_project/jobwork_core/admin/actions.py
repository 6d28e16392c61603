from django.contrib import admin, messages

from jobwork_core.tasks import recompute_document_totals

# ---------- Admin actions ----------


@admin.action(description="Recompute stored totals")
def recompute_totals(modeladmin, request, queryset):
    """
    Queue the drift-repair task. It walks every document, not only the
    selected ones, because totals are cheap to recompute.
    """
    result = recompute_document_totals.delay()
    if result.ready():
        # eager mode (tests, local runs) has the answer already
        modeladmin.message_user(
            request, f"Corrected {result.get()} documents.", level=messages.SUCCESS)
    else:
        modeladmin.message_user(
            request, "Recompute queued.", level=messages.INFO)


@admin.action(description="Mark selected challans as Delivered")
def mark_challans_delivered(modeladmin, request, queryset):
    updated = 0
    for challan in queryset.exclude(status="Delivered"):
        challan.status = "Delivered"
        challan.save(update_fields=["status"])
        updated += 1
    modeladmin.message_user(
        request, f"Marked {updated} challans as Delivered.", level=messages.SUCCESS)
