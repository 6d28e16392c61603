from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Invoice, InvoiceItem, PurchaseOrder, PurchaseOrderItem

"""
    Recalculate purchase order totals when a line is added/updated/removed.
    Use update via model methods to keep validation/consistency.
"""


@receiver((post_save, post_delete), sender=PurchaseOrderItem)
def purchase_order_item_changed(sender, instance, **kwargs):
    try:
        po = PurchaseOrder.objects.get(pk=instance.purchase_order_id)
    except PurchaseOrder.DoesNotExist:
        # the order itself is being deleted
        return
    po.recalc_totals()
    po.save(update_fields=["total_amount"])


"""Same for invoices: line amounts feed the taxed, rounded totals."""


@receiver((post_save, post_delete), sender=InvoiceItem)
def invoice_item_changed(sender, instance, **kwargs):
    try:
        inv = Invoice.objects.get(pk=instance.invoice_id)
    except Invoice.DoesNotExist:
        return
    inv.recalc_totals()
    inv.save(update_fields=["sub_total", "total_cgst", "total_sgst",
                            "total_tax_amount", "rounded_off", "total_amount"])
