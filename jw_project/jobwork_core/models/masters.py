from decimal import Decimal
from django.conf import settings
from django.db import models
from django.db.models.functions import Lower
from ..managers import NamedManager


# ---------- Master data ----------
# Reusable reference records picked into documents.
# Documents copy the *name* at creation time, so renaming or deleting a
# master never rewrites history.
class NamedMaster(models.Model):

    name = models.CharField(max_length=200)

    # case-insensitive lookups: .named(), .name_taken()
    objects = NamedManager()

    class Meta:
        abstract = True
        ordering = ["name"]
        constraints = [
            # "Acme" and "ACME" are the same shop
            models.UniqueConstraint(
                Lower("name"), name="%(app_label)s_%(class)s_name_ci"
            ),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        self.name = (self.name or "").strip()
        return super().clean()

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


def default_payment_terms():
    return getattr(settings, "JOBWORK_DEFAULT_PAYMENT_TERMS", "Due on receipt")


class Party(NamedMaster):  # Common contact + tax fields of shops and clients
    phone = models.CharField(max_length=20, blank=True)
    email = models.CharField(max_length=254, blank=True)
    address = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    pincode = models.CharField(max_length=10, blank=True)
    # GSTIN / PAN are optional, format-checked only when filled in
    gst_no = models.CharField(max_length=15, blank=True)
    pan_no = models.CharField(max_length=10, blank=True)
    payment_terms = models.CharField(
        max_length=100, blank=True, default=default_payment_terms)

    class Meta(NamedMaster.Meta):
        abstract = True


class PurchaseShop(Party):  # Supplier we raise purchase orders against
    opening_balance = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00"))

    class Meta(Party.Meta):
        pass


class Client(Party):  # Party that sends fabric for job work and gets invoiced

    class Meta(Party.Meta):
        pass

    def process_rates(self):
        """{process name: this client's agreed rate}"""
        return {p.process_name: p.rate for p in self.processes.all()}


class ProcessType(NamedMaster):  # e.g. "Dyeing", with its standard rate per metre
    rate = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta(NamedMaster.Meta):
        pass


class ClientProcessRate(models.Model):  # Rate a client negotiated for a process
    client = models.ForeignKey(
        Client, on_delete=models.CASCADE, related_name="processes")
    process_name = models.CharField(max_length=200)
    rate = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["client", "process_name"],
                name="uq_client_process_rate",
            ),
            models.CheckConstraint(
                condition=models.Q(rate__gte=0),
                name="client_process_rate_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.client} - {self.process_name} @ {self.rate}"


class MasterItem(NamedMaster):  # Purchasable item with its default rate
    rate = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta(NamedMaster.Meta):
        pass


class ExpenseCategory(NamedMaster):  # Category for "other" expenses

    class Meta(NamedMaster.Meta):
        verbose_name_plural = "expense categories"


class Bank(NamedMaster):  # Bank names offered for cheque payments

    class Meta(NamedMaster.Meta):
        pass


class Employee(NamedMaster):
    designation = models.CharField(max_length=100, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    daily_wage = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))
    monthly_wage = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True)
    rate_per_meter = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta(NamedMaster.Meta):
        pass
