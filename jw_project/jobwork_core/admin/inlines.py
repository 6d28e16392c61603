from django.contrib import admin

from jobwork_core.models import ClientProcessRate, InvoiceItem, PurchaseOrderItem

# ---------- Inline line editors ----------


class PurchaseOrderItemInline(admin.TabularInline):
    """Items on the purchase order page; amount is always computed"""

    model = PurchaseOrderItem
    extra = 0
    fields = ("name", "quantity", "rate", "amount")
    readonly_fields = ("amount",)
    ordering = ("id",)


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    fields = ("challan_number", "challan_date", "process", "design_no",
              "hsn_sac", "pcs", "mtr", "rate", "subtotal", "cgst", "sgst",
              "amount")
    # taxes follow from mtr x rate and the invoice's tax type
    readonly_fields = ("subtotal", "cgst", "sgst", "amount")
    ordering = ("id",)


class ClientProcessRateInline(admin.TabularInline):
    model = ClientProcessRate
    extra = 1
    fields = ("process_name", "rate")
