from django.db import models


# ---------- Audit / Event log ----------
class AuditLog(models.Model):  # Who created, edited or deleted which document
    # Free-text actor: there is no user model in this app,
    # callers pass whatever identifies the operator
    actor = models.CharField(max_length=150, blank=True)
    # Common choices: create, update, delete, allocate
    action = models.CharField(max_length=50)
    # e.g. "PurchaseOrder", "Invoice", "NumberingConfig"
    object_type = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    # document number or name at the time of the action
    label = models.CharField(max_length=200, blank=True)
    changes = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["object_type", "object_id"]),
            models.Index(fields=["created_at"]),
        ]

    def __str__(self):
        time = self.created_at
        return (f"[{time:%Y-%m-%d %H:%M}] {self.actor or '-'} {self.action} "
                f"{self.object_type}({self.object_id})")
