from decimal import Decimal
from django.db import models
from ..services import calculators
from .purchase import PAYMENT_MODE_CHOICES

TAX_TYPE_CHOICES = [
    (calculators.GST, "GST"),
    (calculators.NGST, "Non-GST"),
]


class Invoice(models.Model):  # Bill raised to a client for job work done

    # "INV-0042", or whatever was typed in manual mode
    invoice_number = models.CharField(max_length=64, unique=True)
    invoice_date = models.DateField()
    client_name = models.CharField(max_length=200)
    # GST and NGST invoices are numbered independently
    tax_type = models.CharField(
        max_length=8, choices=TAX_TYPE_CHOICES, default=calculators.GST)

    # Aggregates of the lines; total_amount is rounded to whole rupees and
    # the difference is kept in rounded_off
    sub_total = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_cgst = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_sgst = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    total_tax_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    rounded_off = models.DecimalField(
        max_digits=6, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-invoice_date", "-id"]
        indexes = [models.Index(fields=["client_name", "invoice_date"])]

    def __str__(self):
        return f"Inv {self.invoice_number or self.pk}"

    @property
    def numbering_type(self):
        return f"Invoice-{self.tax_type}"

    def apply_totals(self, totals: calculators.InvoiceTotals):
        self.sub_total = totals.sub_total
        self.total_cgst = totals.total_cgst
        self.total_sgst = totals.total_sgst
        self.total_tax_amount = totals.total_tax_amount
        self.rounded_off = totals.rounded_off
        self.total_amount = totals.total_amount

    def recalc_totals(self):
        if not getattr(self, "pk", None):
            self.apply_totals(calculators.invoice_totals([]))
            return
        self.apply_totals(calculators.invoice_totals(self.items.all()))

    def save(self, *args, **kwargs):
        if self.pk and not kwargs.get("update_fields"):
            self.recalc_totals()
        self.full_clean()
        return super().save(*args, **kwargs)


class InvoiceItem(models.Model):  # One grouped line of challans on an invoice
    invoice = models.ForeignKey(
        Invoice, on_delete=models.CASCADE, related_name="items")
    # "DC-0001, DC-0004": the challans this line bills
    challan_number = models.CharField(max_length=500, blank=True)
    challan_date = models.DateField(null=True, blank=True)
    process = models.CharField(max_length=500)
    description = models.TextField(blank=True)
    design_no = models.CharField(max_length=500, blank=True)
    hsn_sac = models.CharField(max_length=16, blank=True)
    pcs = models.PositiveIntegerField(default=0)
    mtr = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00"))
    rate = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00"))
    # derived: subtotal = mtr x rate, taxes split from subtotal
    subtotal = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    cgst = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    sgst = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(mtr__gte=0) & models.Q(rate__gte=0),
                name="invoice_item_non_negative_amounts",
            ),
        ]

    def __str__(self):
        return f"{self.invoice} - {self.process}: {self.amount}"

    def save(self, *args, **kwargs):
        cgst_rate, sgst_rate = calculators.tax_rates_for(self.invoice.tax_type)
        split = calculators.invoice_item_tax(
            calculators.invoice_item_subtotal(self.mtr, self.rate),
            cgst_rate, sgst_rate,
        )
        self.subtotal = split.subtotal
        self.cgst = split.cgst
        self.sgst = split.sgst
        self.amount = split.amount
        self.full_clean()
        return super().save(*args, **kwargs)


class PaymentReceived(models.Model):  # Money received from a client
    client_name = models.CharField(max_length=200)
    payment_date = models.DateField()
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    # what the client owed before any invoice was raised here
    opening_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    payment_mode = models.CharField(
        max_length=20, choices=PAYMENT_MODE_CHOICES, default="Cash")
    reference_number = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-payment_date", "-id"]
        verbose_name_plural = "payments received"
        indexes = [models.Index(fields=["client_name", "payment_date"])]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="payment_received_positive_amount",
            ),
        ]

    def __str__(self):
        return f"{self.payment_date} {self.client_name}: {self.amount}"

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
