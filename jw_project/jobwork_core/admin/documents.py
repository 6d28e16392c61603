from django.contrib import admin

from jobwork_core.models import (DeliveryChallan, Invoice, OtherExpense,
                                 PaymentReceived, PurchaseOrder,
                                 SupplierPayment, TimberExpense)

from .actions import mark_challans_delivered, recompute_totals
from .inlines import InvoiceItemInline, PurchaseOrderItemInline

"""
Numbers are minted by the lifecycle controllers, so the admin shows
them read-only once a document exists.
"""


class NumberedDocumentAdmin(admin.ModelAdmin):
    number_field = None

    def get_readonly_fields(self, request, obj=None):
        readonly = list(super().get_readonly_fields(request, obj))
        if obj is not None and self.number_field:
            readonly.append(self.number_field)
        return readonly


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(NumberedDocumentAdmin):
    number_field = "po_number"
    list_display = ("id", "po_number", "po_date", "shop_name", "status",
                    "payment_mode", "total_amount")
    list_filter = ("status", "payment_mode", "po_date")
    search_fields = ("po_number", "shop_name")
    readonly_fields = ("total_amount",)
    inlines = [PurchaseOrderItemInline]
    actions = [recompute_totals]

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related("items")


@admin.register(DeliveryChallan)
class DeliveryChallanAdmin(NumberedDocumentAdmin):
    number_field = "challan_number"
    list_display = ("id", "challan_number", "date", "party_name",
                    "design_no", "pcs", "mtr", "status", "is_outsourcing")
    list_filter = ("status", "is_outsourcing", "date")
    search_fields = ("challan_number", "party_name", "party_dc_no", "design_no")
    actions = [mark_challans_delivered]


@admin.register(Invoice)
class InvoiceAdmin(NumberedDocumentAdmin):
    number_field = "invoice_number"
    list_display = ("id", "invoice_number", "invoice_date", "client_name",
                    "tax_type", "sub_total", "total_tax_amount", "total_amount")
    list_filter = ("tax_type", "invoice_date")
    search_fields = ("invoice_number", "client_name")
    readonly_fields = ("sub_total", "total_cgst", "total_sgst",
                       "total_tax_amount", "rounded_off", "total_amount")
    inlines = [InvoiceItemInline]
    actions = [recompute_totals]

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related("items")


@admin.register(PaymentReceived)
class PaymentReceivedAdmin(admin.ModelAdmin):
    list_display = ("id", "payment_date", "client_name", "amount",
                    "opening_balance", "payment_mode", "reference_number")
    list_filter = ("payment_mode", "payment_date")
    search_fields = ("client_name", "reference_number")
    date_hierarchy = "payment_date"


@admin.register(TimberExpense)
class TimberExpenseAdmin(admin.ModelAdmin):
    list_display = ("id", "date", "supplier_name", "load_weight",
                    "vehicle_weight", "cft", "rate", "amount", "payment_status")
    list_filter = ("payment_status", "payment_mode", "date")
    search_fields = ("supplier_name",)
    readonly_fields = ("cft", "amount")
    actions = [recompute_totals]


@admin.register(SupplierPayment)
class SupplierPaymentAdmin(NumberedDocumentAdmin):
    number_field = "payment_number"
    list_display = ("id", "payment_number", "date", "supplier_name", "amount",
                    "payment_mode")
    search_fields = ("payment_number", "supplier_name")


@admin.register(OtherExpense)
class OtherExpenseAdmin(admin.ModelAdmin):
    list_display = ("id", "date", "item_name", "amount", "payment_mode",
                    "payment_status")
    list_filter = ("payment_status", "payment_mode", "date")
    search_fields = ("item_name", "notes")
