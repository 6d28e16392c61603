from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models

CHALLAN_STATUS_CHOICES = [
    ("Not Delivered", "Not Delivered"),
    ("Ready to Invoice", "Ready to Invoice"),
    ("Delivered", "Delivered"),
    ("Rework", "Rework"),
]


class DeliveryChallan(models.Model):  # Job-work docket for fabric in/out

    # "DC-0001" or, for outsourced work, "ODC-0001"
    challan_number = models.CharField(max_length=64, unique=True)
    date = models.DateField()
    party_name = models.CharField(max_length=200)
    # the party's own DC reference
    party_dc_no = models.CharField(max_length=64, blank=True)
    # process names, e.g. ["Dyeing", "Finishing"]
    process = models.JSONField(default=list)
    # when filled in, shown instead of `process`
    split_process = models.JSONField(default=list, blank=True)
    design_no = models.CharField(max_length=64, blank=True)
    pcs = models.PositiveIntegerField(default=1)
    mtr = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("1.00"))
    final_meter = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00"))
    width = models.DecimalField(
        max_digits=8, decimal_places=2, default=Decimal("0.00"))
    shrinkage = models.CharField(max_length=32, blank=True)
    pin = models.CharField(max_length=32, blank=True)
    pick = models.CharField(max_length=32, blank=True)
    percentage = models.CharField(max_length=32, blank=True)
    extra_work = models.CharField(max_length=200, blank=True)
    status = models.CharField(
        max_length=20, choices=CHALLAN_STATUS_CHOICES,
        default="Ready to Invoice")
    worker_name = models.CharField(max_length=200, blank=True)
    working_unit = models.CharField(max_length=100, blank=True)
    is_outsourcing = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [models.Index(fields=["party_name", "date"])]

    def __str__(self):
        return f"DC {self.challan_number} ({self.party_name})"

    @property
    def numbering_type(self):
        # outsourced challans run their own sequence
        return "OutsourcingChallan" if self.is_outsourcing else "DeliveryChallan"

    @property
    def display_processes(self):
        """Split processes replace the original list, never both."""
        return list(self.split_process) if self.split_process else list(self.process)

    def clean(self):
        for field in ("process", "split_process"):
            value = getattr(self, field)
            if not isinstance(value, list) or not all(
                    isinstance(p, str) for p in value):
                raise ValidationError({field: "Must be a list of process names."})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
