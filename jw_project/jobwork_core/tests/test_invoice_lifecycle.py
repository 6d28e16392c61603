from decimal import Decimal

from django.test import TestCase

from jobwork_core.models import (Client, ClientProcessRate, Invoice,
                                 InvoiceItem, NumberingConfig, ProcessType)
from jobwork_core.services.documents import (DeliveryChallanController,
                                             InvoiceController,
                                             invoiced_challan_numbers)


class InvoiceLifecycleTests(TestCase):
    def setUp(self):
        self.controller = InvoiceController(actor="tester")
        self.form = {
            "invoice_date": "2024-04-15",
            "client_name": "Ravi Fabrics",
            "tax_type": "GST",
            "items": [
                {"challan_number": "DC-0001", "challan_date": "2024-04-01",
                 "process": "Dyeing", "pcs": 4, "mtr": "25", "rate": "4.51"},
            ],
        }

    def test_create_computes_taxes_and_rounds_total(self):
        invoice = self.controller.create(self.form).record

        self.assertEqual(invoice.invoice_number, "INV-0001")
        self.assertEqual(invoice.sub_total, Decimal("112.75"))
        self.assertEqual(invoice.total_cgst, Decimal("2.82"))
        self.assertEqual(invoice.total_sgst, Decimal("2.82"))
        self.assertEqual(invoice.total_amount, Decimal("118.00"))
        self.assertEqual(invoice.rounded_off, Decimal("-0.39"))

        item = invoice.items.get()
        self.assertEqual(item.subtotal, Decimal("112.75"))
        self.assertEqual(item.amount, Decimal("118.39"))

    def test_gst_and_ngst_are_numbered_separately(self):
        gst = self.controller.create(self.form).record
        ngst = self.controller.create({**self.form, "tax_type": "NGST"}).record

        self.assertEqual(gst.invoice_number, "INV-0001")
        self.assertEqual(ngst.invoice_number, "NGST-0001")
        self.assertEqual(ngst.total_tax_amount, Decimal("0.00"))
        self.assertEqual(ngst.total_amount, Decimal("113.00"))

    def test_zero_rate_is_reported_on_its_line(self):
        self.form["items"].append({"process": "Finishing", "mtr": "5", "rate": "0"})
        submission = self.controller.create(self.form)

        self.assertEqual(set(submission.errors), {"rate_1"})
        self.assertFalse(Invoice.objects.exists())

    def test_manual_mode_requires_a_number(self):
        config = NumberingConfig.objects.for_type("Invoice-GST")
        config.mode = "manual"
        config.save()

        self.assertIn("invoice_number", self.controller.create(self.form).errors)
        invoice = self.controller.create({**self.form, "invoice_number": "GST/24/7"}).record
        self.assertEqual(invoice.invoice_number, "GST/24/7")
        taken = self.controller.create({**self.form, "invoice_number": "GST/24/7"})
        self.assertIn("invoice_number", taken.errors)

    def test_update_replaces_items_and_keeps_number(self):
        invoice = self.controller.create(self.form).record
        self.form["items"] = [{"process": "Dyeing", "pcs": 1, "mtr": "10", "rate": "10"}]
        updated = self.controller.update(self.form, invoice.pk).record

        self.assertEqual(updated.invoice_number, "INV-0001")
        self.assertEqual(updated.sub_total, Decimal("100.00"))
        self.assertEqual(updated.total_amount, Decimal("105.00"))
        self.assertEqual(updated.rounded_off, Decimal("0.00"))
        self.assertEqual(updated.items.count(), 1)

    def test_delete_removes_items(self):
        invoice = self.controller.create(self.form).record
        self.controller.delete(invoice.pk)
        self.assertFalse(InvoiceItem.objects.exists())


class InvoiceFromChallansTests(TestCase):
    def setUp(self):
        client = Client.objects.create(name="Ravi Fabrics")
        ClientProcessRate.objects.create(client=client, process_name="Dyeing", rate=Decimal("4"))
        ProcessType.objects.create(name="Dyeing", rate=Decimal("6"))
        ProcessType.objects.create(name="Finishing", rate=Decimal("3"))

        challans = DeliveryChallanController()
        base = {"date": "2024-04-01", "party_name": "Ravi Fabrics"}
        self.challans = [
            challans.create({**base, "process": ["Dyeing"], "pcs": 2, "mtr": "10"}).record,
            challans.create({**base, "process": ["Dyeing"], "pcs": 3, "mtr": "5"}).record,
            challans.create({**base, "process": ["Finishing"], "pcs": 1, "mtr": "20"}).record,
        ]

    def test_challans_become_grouped_lines(self):
        submission = InvoiceController().create_from_challans(
            "Ravi Fabrics", [c.pk for c in self.challans], "2024-04-20")

        self.assertTrue(submission.ok, submission.errors)
        invoice = submission.record
        lines = list(invoice.items.order_by("process"))
        self.assertEqual(len(lines), 2)
        self.assertEqual(lines[0].challan_number, "DC-0001, DC-0002")
        self.assertEqual(lines[0].rate, Decimal("4.00"))
        self.assertEqual(lines[0].mtr, Decimal("15.00"))
        self.assertEqual(lines[1].rate, Decimal("3.00"))
        self.assertEqual(invoice.sub_total, Decimal("120.00"))
        self.assertEqual(invoice.total_amount, Decimal("126.00"))

        self.assertEqual(invoiced_challan_numbers(), {"DC-0001", "DC-0002", "DC-0003"})

    def test_a_challan_is_billed_once(self):
        controller = InvoiceController()
        controller.create_from_challans("Ravi Fabrics", [self.challans[0].pk], "2024-04-20")
        again = controller.create_from_challans(
            "Ravi Fabrics", [self.challans[0].pk], "2024-04-21")

        self.assertEqual(again.status, "draft")
        self.assertIn("DC-0001", again.errors["challans"])
        self.assertEqual(Invoice.objects.count(), 1)
