from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..services import calculators
from .masters import default_payment_terms

PAYMENT_MODE_CHOICES = [
    ("Cash", "Cash"),
    ("Cheque", "Cheque"),
    ("NEFT", "NEFT"),
    ("GPay", "GPay"),
    ("Credit Card", "Credit Card"),
    ("Bank Transfer", "Bank Transfer"),
    ("Other", "Other"),
]
CHEQUE = "Cheque"

ORDER_STATUS_CHOICES = [
    ("Paid", "Paid"),
    ("Unpaid", "Unpaid"),
    ("Partially Paid", "Partially Paid"),
]


class ChequeFieldsMixin:
    """bank_name / cheque_date exist only for cheque payments"""

    def clean_cheque_fields(self):
        errors = {}
        if self.payment_mode == CHEQUE:
            if not (self.bank_name or "").strip():
                errors["bank_name"] = "Bank name is required for cheque payments."
            if not self.cheque_date:
                errors["cheque_date"] = "Cheque date is required for cheque payments."
        else:
            # other modes never carry cheque details
            self.bank_name = ""
            self.cheque_date = None
        if errors:
            raise ValidationError(errors)


class PurchaseOrder(ChequeFieldsMixin, models.Model):  # Order raised to a purchase shop

    # "PO-0001"; assigned once on create, never re-minted on edit
    po_number = models.CharField(max_length=64, unique=True)
    po_date = models.DateField()
    # plain copy of the shop name, not a foreign key
    shop_name = models.CharField(max_length=200)
    gst_no = models.CharField(max_length=15, blank=True)
    payment_mode = models.CharField(
        max_length=20, choices=PAYMENT_MODE_CHOICES, default="Cash")
    status = models.CharField(
        max_length=20, choices=ORDER_STATUS_CHOICES, default="Unpaid")
    payment_terms = models.CharField(
        max_length=100, blank=True, default=default_payment_terms)
    reference_id = models.CharField(max_length=100, blank=True)
    bank_name = models.CharField(max_length=200, blank=True)
    cheque_date = models.DateField(null=True, blank=True)
    # Sum of all line amounts
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-po_date", "-id"]
        indexes = [models.Index(fields=["shop_name", "po_date"])]

    def __str__(self):
        return f"PO {self.po_number} ({self.shop_name})"

    """ Keep stored total in sync with the lines """

    def recalc_totals(self):
        # no pk yet: no lines yet
        if not getattr(self, "pk", None):
            self.total_amount = Decimal("0.00")
            return
        self.total_amount = calculators.purchase_order_total(self.items.all())

    def clean(self):
        self.clean_cheque_fields()

    def save(self, *args, **kwargs):
        if self.pk and not kwargs.get("update_fields"):
            self.recalc_totals()
        self.full_clean()
        return super().save(*args, **kwargs)


class PurchaseOrderItem(models.Model):  # One line of a purchase order
    purchase_order = models.ForeignKey(
        PurchaseOrder, on_delete=models.CASCADE, related_name="items")
    name = models.CharField(max_length=200)
    quantity = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("1"))
    rate = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00"))
    # always quantity x rate, never typed in
    amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0) & models.Q(rate__gte=0),
                name="po_item_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"{self.name}: {self.quantity} x {self.rate} = {self.amount}"

    def save(self, *args, **kwargs):
        # compute amount always
        self.amount = calculators.line_item_amount(self.quantity, self.rate)
        self.full_clean()
        return super().save(*args, **kwargs)
