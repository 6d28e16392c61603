import datetime
from decimal import Decimal

from django.test import TestCase

from jobwork_core.exceptions import PersistenceError
from jobwork_core.models import (AttendanceRecord, DeliveryChallan, Employee,
                                 EmployeeAdvance, Invoice, OtherExpense,
                                 PaymentReceived, Payslip, TimberExpense)
from jobwork_core.services.documents import (DeliveryChallanController,
                                             EmployeeController,
                                             EmployeeAdvanceController,
                                             OtherExpenseController,
                                             PaymentReceivedController,
                                             PayslipController,
                                             SupplierPaymentController,
                                             TimberExpenseController,
                                             client_balance,
                                             supplier_balance)


class DeliveryChallanTests(TestCase):
    def setUp(self):
        self.controller = DeliveryChallanController()
        self.form = {"date": "2024-04-01", "party_name": "Ravi Fabrics",
                     "process": ["Dyeing", "Finishing"], "pcs": 2, "mtr": "10"}

    def test_outsourced_challans_use_their_own_sequence(self):
        first = self.controller.create(self.form).record
        outsourced = self.controller.create({**self.form, "is_outsourcing": True}).record
        second = self.controller.create(self.form).record

        self.assertEqual(first.challan_number, "DC-0001")
        self.assertEqual(outsourced.challan_number, "ODC-0001")
        self.assertEqual(second.challan_number, "DC-0002")
        self.assertEqual(first.status, "Ready to Invoice")

    def test_split_process_supersedes_process(self):
        challan = self.controller.create(
            {**self.form, "split_process": ["Dyeing A", "Dyeing B"]}).record
        self.assertEqual(challan.display_processes, ["Dyeing A", "Dyeing B"])

        plain = self.controller.create(self.form).record
        self.assertEqual(plain.display_processes, ["Dyeing", "Finishing"])

    def test_process_may_arrive_as_text(self):
        challan = self.controller.create({**self.form, "process": "Dyeing, Printing"}).record
        self.assertEqual(challan.process, ["Dyeing", "Printing"])

    def test_pieces_and_metres_must_be_positive(self):
        submission = self.controller.create({**self.form, "pcs": 0, "mtr": "0"})
        self.assertEqual(set(submission.errors), {"pcs", "mtr"})
        self.assertFalse(DeliveryChallan.objects.exists())


class TimberAndSupplierTests(TestCase):
    def setUp(self):
        self.form = {"date": "2024-04-01", "supplier_name": "Sharma Timber",
                     "load_weight": "1000", "vehicle_weight": "400", "rate": "2.5",
                     "opening_balance": "200"}

    def test_create_computes_cft_and_amount(self):
        expense = TimberExpenseController().create(self.form).record
        self.assertEqual(expense.cft, Decimal("600.000"))
        self.assertEqual(expense.amount, Decimal("1500.00"))
        self.assertEqual(expense.payment_status, "Unpaid")

    def test_load_not_above_vehicle_is_a_draft(self):
        submission = TimberExpenseController().create({**self.form, "load_weight": "400"})
        self.assertIn("load_weight", submission.errors)
        self.assertFalse(TimberExpense.objects.exists())

    def test_update_recomputes(self):
        controller = TimberExpenseController()
        expense = controller.create(self.form).record
        updated = controller.update({**self.form, "rate": "3"}, expense).record
        self.assertEqual(updated.amount, Decimal("1800.00"))

    def test_supplier_payments_are_numbered_and_reduce_balance(self):
        TimberExpenseController().create(self.form)
        payment = SupplierPaymentController().create({
            "date": "2024-04-10", "supplier_name": "sharma timber",
            "amount": "700", "payment_mode": "NEFT"}).record

        self.assertEqual(payment.payment_number, "SP-0001")
        self.assertEqual(supplier_balance("Sharma Timber"), Decimal("1000.00"))


class PaymentReceivedTests(TestCase):
    def setUp(self):
        self.controller = PaymentReceivedController(actor="clerk")
        self.form = {"client_name": "Ravi Fabrics", "payment_date": "2024-04-15",
                     "amount": "100", "opening_balance": "50", "reference_number": " UTR123 "}

    def test_create_update_and_delete(self):
        payment = self.controller.create(self.form).record
        self.assertEqual(payment.payment_mode, "Cash")
        self.assertEqual(payment.reference_number, "UTR123")
        self.assertEqual(payment.amount, Decimal("100.00"))

        updated = self.controller.update({**self.form, "amount": "80"}, payment.pk)
        self.assertTrue(updated.ok)
        self.assertEqual(updated.record.amount, Decimal("80.00"))

        self.controller.delete(payment.pk)
        self.assertFalse(PaymentReceived.objects.exists())

    def test_invalid_payment_is_a_draft(self):
        submission = self.controller.create({**self.form, "client_name": "", "amount": "0"})
        self.assertFalse(submission.ok)
        self.assertEqual(set(submission.errors), {"client_name", "amount"})
        self.assertFalse(PaymentReceived.objects.exists())

    def test_receipts_reduce_the_client_balance(self):
        Invoice.objects.create(invoice_number="INV-0001", invoice_date="2024-04-01",
                               client_name="Ravi Fabrics", total_amount=Decimal("118"))
        self.controller.create(self.form)
        self.controller.create({**self.form, "amount": "18", "opening_balance": None})

        self.assertEqual(client_balance("ravi fabrics"), Decimal("50.00"))
        self.assertEqual(client_balance("Someone Else"), Decimal("0.00"))


class OtherExpenseTests(TestCase):
    def test_create_and_delete(self):
        controller = OtherExpenseController()
        expense = controller.create({"date": "2024-04-01", "item_name": "Electricity",
                                     "amount": "4500"}).record
        self.assertEqual(expense.payment_mode, "Cash")

        controller.delete(expense.pk)
        self.assertFalse(OtherExpense.objects.exists())

    def test_amount_must_be_positive(self):
        submission = OtherExpenseController().create(
            {"date": "2024-04-01", "item_name": "Electricity", "amount": "0"})
        self.assertIn("amount", submission.errors)


class PayrollTests(TestCase):
    def setUp(self):
        self.employee = Employee.objects.create(name="Suresh", daily_wage=Decimal("500"))
        for day, morning, evening in [(1, "Present", "Present"),
                                      (2, "Present", "Absent"),
                                      (3, "Holiday", "Holiday")]:
            AttendanceRecord.objects.create(
                employee=self.employee, date=datetime.date(2024, 4, day),
                morning_status=morning, evening_status=evening,
                morning_overtime_hours=Decimal("0.5"))
        advances = EmployeeAdvanceController()
        self.old = advances.create({"employee_id": self.employee.pk, "date": "2024-03-20",
                                    "amount": "1000", "paid_amount": "200"}).record
        self.first = advances.create({"employee_id": self.employee.pk, "date": "2024-04-05",
                                      "amount": "200"}).record
        self.second = advances.create({"employee_id": self.employee.pk, "date": "2024-04-10",
                                       "amount": "300"}).record
        self.form = {"employee_id": self.employee.pk, "payslip_date": "2024-04-30",
                     "pay_period_start": "2024-04-01", "pay_period_end": "2024-04-30"}

    def balances(self):
        return [EmployeeAdvance.objects.get(pk=a.pk).balance
                for a in (self.old, self.first, self.second)]

    def test_advance_paid_cannot_exceed_amount(self):
        submission = EmployeeAdvanceController().create(
            {"employee_id": self.employee.pk, "date": "2024-04-01",
             "amount": "100", "paid_amount": "150"})
        self.assertIn("paid_amount", submission.errors)

    def test_advance_for_unknown_employee(self):
        submission = EmployeeAdvanceController().create(
            {"employee_id": 9999, "date": "2024-04-01", "amount": "100"})
        self.assertIn("employee_id", submission.errors)

    def test_payslip_figures_and_deduction(self):
        payslip = PayslipController().create(self.form).record

        self.assertEqual(payslip.employee_name, "Suresh")
        self.assertEqual(payslip.total_working_days, Decimal("2.5"))
        self.assertEqual(payslip.ot_hours, Decimal("1.50"))
        self.assertEqual(payslip.gross_salary, Decimal("1250.00"))
        self.assertEqual(payslip.advance_deduction, Decimal("500.00"))
        self.assertEqual(payslip.net_salary, Decimal("750.00"))
        self.assertEqual(payslip.total_outstanding_advance, Decimal("800.00"))
        # April advances are settled, the March one is untouched
        self.assertEqual(self.balances(), [Decimal("800.00"), Decimal("0.00"), Decimal("0.00")])

    def test_partial_deduction_settles_oldest_first(self):
        Employee.objects.filter(pk=self.employee.pk).update(daily_wage=Decimal("100"))
        payslip = PayslipController().create(self.form).record

        self.assertEqual(payslip.advance_deduction, Decimal("250.00"))
        self.assertEqual(self.balances(), [Decimal("800.00"), Decimal("0.00"), Decimal("250.00")])

    def test_deleting_a_payslip_gives_the_deduction_back(self):
        controller = PayslipController()
        payslip = controller.create(self.form).record
        controller.delete(payslip.pk)

        self.assertFalse(Payslip.objects.exists())
        self.assertEqual(self.balances(), [Decimal("800.00"), Decimal("200.00"), Decimal("300.00")])

    def test_preview_saves_nothing(self):
        figures = PayslipController().preview(self.form)
        self.assertEqual(figures.net_salary, Decimal("750.00"))
        self.assertFalse(Payslip.objects.exists())
        self.assertEqual(self.balances()[1], Decimal("200.00"))

    def test_employee_with_advances_cannot_be_deleted(self):
        with self.assertRaises(PersistenceError) as ctx:
            EmployeeController().delete(self.employee.pk)
        self.assertEqual(ctx.exception.action, "delete")
        self.assertTrue(Employee.objects.filter(pk=self.employee.pk).exists())
