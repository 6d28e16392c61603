import copy
from decimal import Decimal
from unittest import mock

from asgiref.sync import async_to_sync
from django.db import DatabaseError
from django.test import TestCase

from jobwork_core.exceptions import PersistenceError, PreconditionViolation, RecordNotFound
from jobwork_core.models import (AuditLog, MasterItem, NumberingConfig,
                                 PurchaseOrder, PurchaseOrderItem, PurchaseShop)
from jobwork_core.services.documents import PurchaseOrderController


class PurchaseOrderLifecycleTests(TestCase):
    def setUp(self):
        self.controller = PurchaseOrderController(actor="tester")
        self.form = {
            "po_date": "2024-04-01",
            "shop_name": "Acme",
            "payment_mode": "Cash",
            "status": "Unpaid",
            "items": [
                {"name": "Thread", "quantity": "2", "rate": "10"},
                {"name": "Dye", "quantity": 3, "rate": 5},
                {"name": "", "quantity": 1, "rate": 100},
            ],
        }

    def next_number(self):
        return NumberingConfig.objects.for_type("PO").next_number

    def test_create_numbers_saves_lines_and_audits(self):
        submission = self.controller.create(self.form)

        self.assertTrue(submission.ok)
        po = submission.record
        self.assertEqual(po.po_number, "PO-0001")
        self.assertEqual(po.total_amount, Decimal("35.00"))
        # the unnamed row is not persisted
        self.assertEqual(po.items.count(), 2)
        self.assertEqual(self.next_number(), 2)

        entry = AuditLog.objects.get(object_type="PurchaseOrder", action="create")
        self.assertEqual(entry.label, "PO-0001")
        self.assertEqual(entry.actor, "tester")

    def test_two_creates_get_consecutive_numbers(self):
        first = self.controller.create(self.form).record
        second = self.controller.create(self.form).record
        self.assertEqual((first.po_number, second.po_number), ("PO-0001", "PO-0002"))

    def test_callers_form_is_not_mutated(self):
        before = copy.deepcopy(self.form)
        self.controller.create(self.form)
        self.assertEqual(self.form, before)

    def test_invalid_form_stays_draft_and_consumes_nothing(self):
        self.form["shop_name"] = ""
        submission = self.controller.create(self.form)

        self.assertEqual(submission.status, "draft")
        self.assertIn("shop_name", submission.errors)
        self.assertFalse(PurchaseOrder.objects.exists())
        self.assertEqual(self.next_number(), 1)

    def test_failed_save_rolls_back_the_number(self):
        with mock.patch("jobwork_core.services.documents.log_action",
                        side_effect=DatabaseError("disk full")):
            with self.assertRaises(PersistenceError) as ctx:
                self.controller.create(self.form)

        self.assertEqual(ctx.exception.action, "create")
        self.assertFalse(PurchaseOrder.objects.exists())
        self.assertFalse(PurchaseOrderItem.objects.exists())
        self.assertEqual(self.next_number(), 1)
        # the same submission can be retried
        self.assertEqual(self.controller.create(self.form).record.po_number, "PO-0001")

    def test_malformed_input_is_a_precondition_violation(self):
        with self.assertRaises(PreconditionViolation):
            self.controller.create({**self.form, "po_date": "31/12/2024"})
        with self.assertRaises(PreconditionViolation):
            self.controller.create({**self.form, "items": [{"name": "X", "quantity": "two"}]})
        for bad in ("NaN", "Infinity", "-inf"):
            with self.assertRaises(PreconditionViolation):
                self.controller.create(
                    {**self.form, "items": [{"name": "X", "quantity": bad, "rate": 1}]})
        self.assertFalse(PurchaseOrder.objects.exists())

    def test_update_keeps_number_and_recomputes_total(self):
        po = self.controller.create(self.form).record
        self.form["items"] = [{"name": "Dye", "quantity": 3, "rate": 5}]
        submission = self.controller.update(self.form, po)

        self.assertTrue(submission.ok)
        po.refresh_from_db()
        self.assertEqual(po.po_number, "PO-0001")
        self.assertEqual(po.total_amount, Decimal("15.00"))
        self.assertEqual(list(po.items.values_list("name", flat=True)), ["Dye"])
        # editing never touches the counter
        self.assertEqual(self.next_number(), 2)
        self.assertTrue(AuditLog.objects.filter(action="update", object_id=str(po.pk)).exists())

    def test_update_ignores_a_typed_number(self):
        po = self.controller.create(self.form).record
        self.controller.update({**self.form, "po_number": "HACKED"}, po.pk)
        po.refresh_from_db()
        self.assertEqual(po.po_number, "PO-0001")

    def test_update_of_missing_record(self):
        po = self.controller.create(self.form).record
        PurchaseOrder.objects.filter(pk=po.pk).delete()
        with self.assertRaises(RecordNotFound):
            self.controller.update(self.form, po)

    def test_delete_removes_order_and_lines(self):
        po = self.controller.create(self.form).record
        self.controller.delete(po.pk)

        self.assertFalse(PurchaseOrder.objects.exists())
        self.assertFalse(PurchaseOrderItem.objects.exists())
        self.assertTrue(AuditLog.objects.filter(action="delete", label="PO-0001").exists())
        with self.assertRaises(PersistenceError):
            self.controller.delete(po.pk)

    def test_shop_defaults_fill_blank_fields(self):
        PurchaseShop.objects.create(name="Acme", gst_no="27ABCDE1234F1Z5",
                                    payment_terms="Net 30")
        po = self.controller.create({**self.form, "shop_name": "acme"}).record

        self.assertEqual(po.gst_no, "27ABCDE1234F1Z5")
        self.assertEqual(po.payment_terms, "Net 30")
        # the typed name is kept as typed
        self.assertEqual(po.shop_name, "acme")

    def test_master_item_rate_fills_missing_rate(self):
        MasterItem.objects.create(name="Dye", rate=Decimal("12.50"))
        po = self.controller.create(
            {**self.form, "items": [{"name": "Dye", "quantity": 2}]}).record
        self.assertEqual(po.total_amount, Decimal("25.00"))

    def test_cheque_details_only_kept_for_cheques(self):
        draft = self.controller.create({**self.form, "payment_mode": "Cheque"})
        self.assertEqual(set(draft.errors), {"bank_name", "cheque_date"})

        cheque = self.controller.create({**self.form, "payment_mode": "Cheque",
                                         "bank_name": "SBI", "cheque_date": "2024-04-05"}).record
        self.assertEqual(cheque.bank_name, "SBI")

        cash = self.controller.create({**self.form, "payment_mode": "Cash",
                                       "bank_name": "SBI", "cheque_date": "2024-04-05"}).record
        self.assertEqual(cash.bank_name, "")
        self.assertIsNone(cash.cheque_date)

    def test_manual_numbering(self):
        config = NumberingConfig.objects.for_type("PO")
        config.mode = "manual"
        config.save()

        missing = self.controller.create(self.form)
        self.assertIn("po_number", missing.errors)

        po = self.controller.create({**self.form, "po_number": " MAN-7 "}).record
        self.assertEqual(po.po_number, "MAN-7")

        duplicate = self.controller.create({**self.form, "po_number": "MAN-7"})
        self.assertIn("po_number", duplicate.errors)
        self.assertEqual(self.next_number(), 1)

    def test_auto_numbering_skips_numbers_typed_in_manual_mode(self):
        config = NumberingConfig.objects.for_type("PO")
        config.mode = "manual"
        config.save()
        self.controller.create({**self.form, "po_number": "PO-0001"})
        self.controller.create({**self.form, "po_number": "PO-0003"})
        config.mode = "auto"
        config.save()

        numbers = [self.controller.create(self.form).record.po_number for _ in range(3)]

        self.assertEqual(numbers, ["PO-0002", "PO-0004", "PO-0005"])
        self.assertEqual(self.next_number(), 6)
        self.assertEqual(PurchaseOrder.objects.count(), 5)

    def test_async_create(self):
        submission = async_to_sync(self.controller.acreate)(self.form)
        self.assertTrue(submission.ok)
        self.assertEqual(submission.record.po_number, "PO-0001")
