from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..services import calculators
from .masters import default_payment_terms
from .purchase import (ORDER_STATUS_CHOICES, PAYMENT_MODE_CHOICES,
                       ChequeFieldsMixin)


class TimberExpense(ChequeFieldsMixin, models.Model):  # Timber load bought by weight
    date = models.DateField()
    supplier_name = models.CharField(max_length=200)
    opening_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    load_weight = models.DecimalField(max_digits=14, decimal_places=2)
    # tare weight of the empty vehicle
    vehicle_weight = models.DecimalField(max_digits=14, decimal_places=2)
    # derived: cft = max(0, load - vehicle), amount = cft x rate
    cft = models.DecimalField(
        max_digits=14, decimal_places=3, default=Decimal("0.000"))
    rate = models.DecimalField(max_digits=14, decimal_places=2)
    amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))
    notes = models.TextField(blank=True)
    payment_mode = models.CharField(
        max_length=20, choices=PAYMENT_MODE_CHOICES, default="Cash")
    payment_status = models.CharField(
        max_length=20, choices=ORDER_STATUS_CHOICES, default="Unpaid")
    payment_terms = models.CharField(
        max_length=100, blank=True, default=default_payment_terms)
    bank_name = models.CharField(max_length=200, blank=True)
    cheque_date = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [models.Index(fields=["supplier_name", "date"])]

    def __str__(self):
        return f"Timber {self.date} {self.supplier_name}: {self.amount}"

    def recalc(self):
        self.cft = calculators.timber_cft(self.load_weight, self.vehicle_weight)
        self.amount = calculators.timber_amount(self.cft, self.rate)

    def clean(self):
        if (self.load_weight is not None and self.vehicle_weight is not None
                and self.load_weight <= self.vehicle_weight):
            raise ValidationError(
                {"load_weight": "Load weight must be greater than vehicle weight."})
        self.clean_cheque_fields()

    def save(self, *args, **kwargs):
        self.recalc()
        self.full_clean()
        return super().save(*args, **kwargs)


class SupplierPayment(models.Model):  # Money paid to a timber supplier
    # "SP-0001"
    payment_number = models.CharField(max_length=64, unique=True)
    date = models.DateField()
    supplier_name = models.CharField(max_length=200)
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    payment_mode = models.CharField(
        max_length=20, choices=PAYMENT_MODE_CHOICES, default="Cash")
    reference_id = models.CharField(max_length=100, blank=True)

    class Meta:
        ordering = ["-date", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="supplier_payment_positive_amount",
            ),
        ]

    def __str__(self):
        return f"{self.payment_number} {self.supplier_name}: {self.amount}"

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class OtherExpense(ChequeFieldsMixin, models.Model):  # Any expense filed under a category
    date = models.DateField()
    # category name, copied from ExpenseCategory
    item_name = models.CharField(max_length=200)
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    notes = models.TextField(blank=True)
    payment_mode = models.CharField(
        max_length=20, choices=PAYMENT_MODE_CHOICES, default="Cash")
    payment_status = models.CharField(
        max_length=20, choices=ORDER_STATUS_CHOICES, default="Unpaid")
    payment_terms = models.CharField(
        max_length=100, blank=True, default=default_payment_terms)
    bank_name = models.CharField(max_length=200, blank=True)
    cheque_date = models.DateField(null=True, blank=True)

    class Meta:
        ordering = ["-date", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="other_expense_positive_amount",
            ),
        ]

    def __str__(self):
        return f"{self.date} {self.item_name}: {self.amount}"

    def clean(self):
        self.clean_cheque_fields()

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
