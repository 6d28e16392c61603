from decimal import Decimal
from django.core.exceptions import ValidationError
from django.db import models
from ..services import calculators
from .masters import Employee

ATTENDANCE_STATUS_CHOICES = [
    ("Present", "Present"),
    ("Absent", "Absent"),
    ("Leave", "Leave"),
    ("Holiday", "Holiday"),
]


class EmployeeAdvance(models.Model):  # Cash advanced to an employee
    employee = models.ForeignKey(
        Employee, on_delete=models.PROTECT, related_name="advances")
    date = models.DateField()
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    # repaid so far; the balance is always amount - paid_amount
    paid_amount = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00"))
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["date", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(paid_amount__gte=0)
                & models.Q(paid_amount__lte=models.F("amount")),
                name="advance_paid_within_amount",
            ),
        ]

    def __str__(self):
        return f"{self.employee} {self.date}: {self.amount} (paid {self.paid_amount})"

    @property
    def balance(self):
        return calculators.advance_balance(self.amount, self.paid_amount)

    def clean(self):
        if self.amount is not None and self.paid_amount is not None:
            if self.paid_amount < 0 or self.paid_amount > self.amount:
                raise ValidationError(
                    {"paid_amount": "Paid amount must be between 0 and the advance amount."})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class AttendanceRecord(models.Model):  # Morning/evening presence for one day
    employee = models.ForeignKey(
        Employee, on_delete=models.CASCADE, related_name="attendance")
    date = models.DateField()
    morning_status = models.CharField(
        max_length=10, choices=ATTENDANCE_STATUS_CHOICES, default="Present")
    evening_status = models.CharField(
        max_length=10, choices=ATTENDANCE_STATUS_CHOICES, default="Present")
    morning_overtime_hours = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00"))
    evening_overtime_hours = models.DecimalField(
        max_digits=5, decimal_places=2, default=Decimal("0.00"))
    meters_produced = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(
                fields=["employee", "date"], name="uq_attendance_employee_date"),
        ]

    def __str__(self):
        return f"{self.employee} {self.date}: {self.morning_status}/{self.evening_status}"


class Payslip(models.Model):  # Finalised salary for one pay period
    employee = models.ForeignKey(
        Employee, on_delete=models.PROTECT, related_name="payslips")
    # name at the time of payment
    employee_name = models.CharField(max_length=200)
    payslip_date = models.DateField()
    pay_period_start = models.DateField()
    pay_period_end = models.DateField()
    total_working_days = models.DecimalField(max_digits=6, decimal_places=1)
    ot_hours = models.DecimalField(
        max_digits=8, decimal_places=2, default=Decimal("0.00"))
    gross_salary = models.DecimalField(max_digits=14, decimal_places=2)
    advance_deduction = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00"))
    net_salary = models.DecimalField(max_digits=14, decimal_places=2)
    total_outstanding_advance = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["-payslip_date", "-id"]

    def __str__(self):
        return f"Payslip {self.employee_name} {self.pay_period_start}..{self.pay_period_end}"

    def apply_figures(self, figures: calculators.PayslipFigures):
        self.total_working_days = figures.total_working_days
        self.ot_hours = figures.ot_hours
        self.gross_salary = figures.gross_salary
        self.advance_deduction = figures.advance_deduction
        self.net_salary = figures.net_salary
        self.total_outstanding_advance = figures.total_outstanding_advance

    def clean(self):
        if (self.pay_period_start and self.pay_period_end
                and self.pay_period_start > self.pay_period_end):
            raise ValidationError(
                {"pay_period_end": "Start date cannot be after the end date."})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
