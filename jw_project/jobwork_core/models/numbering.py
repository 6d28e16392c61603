from django.core.exceptions import ValidationError
from django.db import models
from ..managers import NumberingConfigManager
from ..services.sequence import (AUTO, MANUAL, NumberingState,
                                 preview)

DOC_TYPE_CHOICES = [
    ("PO", "Purchase order"),
    ("DeliveryChallan", "Delivery challan"),
    ("OutsourcingChallan", "Outsourcing challan"),
    ("Invoice-GST", "GST invoice"),
    ("Invoice-NGST", "Non-GST invoice"),
    ("SupplierPayment", "Supplier payment"),
]

MODE_CHOICES = [
    (AUTO, "Auto-generate"),
    (MANUAL, "Enter manually"),
]


class NumberingConfig(models.Model):  # Prefix + counter for one document type

    # e.g. "PO", "Invoice-GST"
    doc_type = models.CharField(
        max_length=32, choices=DOC_TYPE_CHOICES, unique=True)
    prefix = models.CharField(max_length=40, blank=True, default="")
    # only moves forward, and only when an auto-numbered document is saved
    next_number = models.PositiveIntegerField(default=1)
    mode = models.CharField(max_length=10, choices=MODE_CHOICES, default=AUTO)
    updated_at = models.DateTimeField(auto_now=True)

    objects = NumberingConfigManager()

    class Meta:
        ordering = ["doc_type"]

    def __str__(self):
        return f"{self.doc_type}: {self.prefix} #{self.next_number} ({self.mode})"

    def state(self) -> NumberingState:
        return NumberingState(
            prefix=self.prefix, next_number=self.next_number, mode=self.mode)

    def apply_state(self, state: NumberingState):
        """Copy an allocator result back onto the row (caller saves)."""
        self.prefix = state.prefix
        self.next_number = state.next_number
        self.mode = state.mode

    @property
    def next_preview(self):
        return preview(self.state())

    def clean(self):
        # never hand out a number that was already used
        if self.pk:
            stored = (NumberingConfig.objects.only("next_number")
                      .filter(pk=self.pk).first())
            if stored and self.next_number < stored.next_number:
                raise ValidationError(
                    {"next_number": "Next number cannot go backwards."})

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)
