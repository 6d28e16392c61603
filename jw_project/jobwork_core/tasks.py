import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def recompute_document_totals():
    """
    Re-run the calculators over every stored purchase order, invoice and
    timber expense and write back whatever drifted.
    Returns how many documents were corrected; a second run returns 0.
    """
    # import models lazily to avoid circular imports at module import time
    from .models import Invoice, PurchaseOrder, TimberExpense
    from .services import calculators

    fixed = 0

    for po in PurchaseOrder.objects.prefetch_related("items"):
        total = calculators.purchase_order_total(po.items.all())
        if po.total_amount != total:
            po.total_amount = total
            po.save(update_fields=["total_amount"])
            fixed += 1

    invoice_fields = ["sub_total", "total_cgst", "total_sgst",
                      "total_tax_amount", "rounded_off", "total_amount"]
    for inv in Invoice.objects.prefetch_related("items"):
        before = [getattr(inv, f) for f in invoice_fields]
        inv.apply_totals(calculators.invoice_totals(inv.items.all()))
        if [getattr(inv, f) for f in invoice_fields] != before:
            inv.save(update_fields=invoice_fields)
            fixed += 1

    for expense in TimberExpense.objects.all():
        cft, amount = expense.cft, expense.amount
        expense.recalc()
        if (expense.cft, expense.amount) != (cft, amount):
            # recalc() runs again inside save()
            expense.save(update_fields=["cft", "amount"])
            fixed += 1

    logger.info("recompute_document_totals corrected %d documents", fixed)
    return fixed
