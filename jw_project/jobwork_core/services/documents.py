"""
Create / update / delete for every document kind.

Each submit runs the same pipeline: copy the form state, coerce it, fill
master-data defaults, run the calculators, validate. Invalid input comes
back as a draft Submission carrying the errors and nothing is written.
Valid input is saved inside one transaction together with its number,
its lines and its audit entry.
"""
import copy
import datetime
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from asgiref.sync import sync_to_async
from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.db import DatabaseError, models, transaction
from django.utils import timezone
from django.utils.dateparse import parse_date

from ..exceptions import (PersistenceError, PreconditionViolation,
                          RecordNotFound)
from ..models import (Bank, Client, ClientProcessRate, DeliveryChallan,
                      Employee, EmployeeAdvance, ExpenseCategory, Invoice,
                      InvoiceItem, MasterItem, OtherExpense, PaymentReceived,
                      Payslip, ProcessType, PurchaseOrder, PurchaseOrderItem,
                      PurchaseShop, SupplierPayment, TimberExpense)
from . import calculators
from . import validation
from .audit_helper import log_action
from .numbering import numbering_mode, reserve_document_number
from .payment import payment_details
from .sequence import MANUAL

logger = logging.getLogger(__name__)

DRAFT = "draft"
PERSISTED = "persisted"


@dataclass
class Submission:
    status: str
    errors: dict = field(default_factory=dict)
    record: Optional[models.Model] = None
    # the coerced copy the rules ran against
    form: dict = field(default_factory=dict)

    @property
    def ok(self):
        return self.status == PERSISTED


# ----------------------------
# Coercion
# ----------------------------
def coerce_date(value):
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    try:
        parsed = parse_date(str(value).strip())
    except ValueError:
        # well formed but impossible, e.g. 2024-02-30
        parsed = None
    if parsed is None:
        raise PreconditionViolation(f"Not a date: {value!r}")
    return parsed


def coerce_int(value):
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise PreconditionViolation(f"Not a whole number: {value!r}")
    if isinstance(value, int):
        return value
    number = calculators.to_decimal(value)
    if number != number.to_integral_value():
        raise PreconditionViolation(f"Not a whole number: {value!r}")
    return int(number)


def coerce_field(model_field, value):
    """Turn one raw form value into what `model_field` stores."""
    if isinstance(model_field, models.DateField):
        return coerce_date(value)
    if isinstance(model_field, models.DecimalField):
        return calculators.optional_decimal(value)
    if isinstance(model_field, (models.IntegerField, models.ForeignKey)):
        return coerce_int(value)
    if isinstance(model_field, models.BooleanField):
        return bool(value)
    if isinstance(model_field, models.JSONField):
        if isinstance(value, str):
            value = value.split(",")
        return [str(v).strip() for v in (value or []) if str(v).strip()]
    if isinstance(model_field, (models.CharField, models.TextField)):
        return "" if value is None else str(value).strip()
    return value


def coerce_fields(model, names, data):
    # keyed by attname, so "employee_id" finds the "employee" foreign key
    by_attname = {f.attname: f for f in model._meta.concrete_fields}
    for name in names:
        if name in data:
            data[name] = coerce_field(by_attname[name], data[name])
    return data


def _errors_from(exc: ValidationError) -> dict:
    if hasattr(exc, "error_dict"):
        return {k: " ".join(v) for k, v in exc.message_dict.items()}
    return {"__all__": " ".join(exc.messages)}


# ----------------------------
# Base controller
# ----------------------------
class DocumentController:
    model = None
    # stored fields copied from the form onto the record
    fields = ()
    # field holding the document number, if the kind is numbered
    number_field = None
    # child lines: model, related name on the parent, FK name, stored fields
    line_model = None
    line_relation = None
    line_parent = None
    line_fields = ()
    label_field = None

    def __init__(self, actor=None):
        self.actor = actor

    # ---- hooks ----
    def numbering_type(self, data):
        return None

    def apply_defaults(self, data):
        pass

    def compute(self, data):
        pass

    def validate(self, data, instance=None) -> dict:
        raise NotImplementedError

    def lines(self, data):
        return data.get("items") or []

    def before_save(self, record, data, instance=None):
        pass

    def after_save(self, record, data, created):
        pass

    def before_delete(self, record):
        pass

    # ---- pipeline ----
    def prepare(self, form_state) -> dict:
        if not isinstance(form_state, Mapping):
            raise PreconditionViolation(
                f"Form state must be a mapping, got {type(form_state).__name__}")
        # never touch the caller's draft
        data = copy.deepcopy(dict(form_state))
        coerce_fields(self.model, self.fields, data)
        if self.number_field and self.number_field in data:
            data[self.number_field] = coerce_field(
                self.model._meta.get_field(self.number_field), data[self.number_field])
        if self.line_model is not None:
            data["items"] = [
                coerce_fields(self.line_model, self.line_fields, dict(line))
                for line in (data.get("items") or [])
            ]
        self.apply_defaults(data)
        self.compute(data)
        return data

    def manual_number_errors(self, data) -> dict:
        doc_type = self.numbering_type(data)
        if not (self.number_field and doc_type) or numbering_mode(doc_type) != MANUAL:
            return {}
        number = data.get(self.number_field)
        if not number:
            return {self.number_field: "Number is required in manual mode."}
        if self.number_taken(number):
            return {self.number_field: "This number is already in use."}
        return {}

    def number_taken(self, number) -> bool:
        return self.model.objects.filter(**{self.number_field: number}).exists()

    def label(self, record):
        if self.label_field:
            return str(getattr(record, self.label_field))
        return str(record)

    def build(self, record, data):
        for name in self.fields:
            if name in data:
                setattr(record, name, data[name])

    def save_lines(self, record, data):
        if self.line_model is None:
            return
        # lines are replaced wholesale on every save
        getattr(record, self.line_relation).all().delete()
        for line in self.lines(data):
            values = {k: line[k] for k in self.line_fields if line.get(k) is not None}
            self.line_model.objects.create(**{self.line_parent: record}, **values)

    def _persist(self, data, instance=None):
        created = instance is None
        record = self.model() if created else instance
        self.before_save(record, data, instance)
        if created and self.number_field:
            doc_type = self.numbering_type(data)
            if doc_type:
                data[self.number_field] = reserve_document_number(
                    doc_type, data.get(self.number_field), taken=self.number_taken)
            setattr(record, self.number_field, data.get(self.number_field))
        self.build(record, data)
        record.save()
        self.save_lines(record, data)
        self.after_save(record, data, created)
        log_action(
            action="create" if created else "update",
            instance=record,
            actor=self.actor,
            label=self.label(record),
        )
        return record

    def _run(self, action, data, instance=None) -> Submission:
        try:
            with transaction.atomic():
                record = self._persist(data, instance)
        except ValidationError as exc:
            # model rules caught what the form rules let through
            return Submission(DRAFT, errors=_errors_from(exc), form=data)
        except DatabaseError as exc:
            logger.warning("%s %s failed: %s", action, self.model.__name__, exc)
            raise PersistenceError(
                f"Could not {action} {self.model._meta.verbose_name}. Please try again.",
                action=action, object_type=self.model.__name__,
            ) from exc
        record.refresh_from_db()
        logger.info("%sd %s %s", action, self.model.__name__, self.label(record))
        return Submission(PERSISTED, record=record, form=data)

    def _get(self, action, pk):
        try:
            return self.model.objects.get(pk=pk)
        except ObjectDoesNotExist as exc:
            raise RecordNotFound(
                f"{self.model._meta.verbose_name.capitalize()} {pk} no longer exists.",
                action=action, object_type=self.model.__name__,
            ) from exc

    # ---- public operations ----
    def create(self, form_state) -> Submission:
        data = self.prepare(form_state)
        errors = {**self.validate(data), **self.manual_number_errors(data)}
        if errors:
            return Submission(DRAFT, errors=errors, form=data)
        return self._run("create", data)

    def update(self, form_state, existing) -> Submission:
        # always re-read: a stale instance must not be saved back
        pk = existing.pk if isinstance(existing, models.Model) else existing
        existing = self._get("update", pk)
        data = self.prepare(form_state)
        if self.number_field:
            # an edit keeps its number, the allocator is not involved
            data[self.number_field] = getattr(existing, self.number_field)
        errors = self.validate(data, existing)
        if errors:
            return Submission(DRAFT, errors=errors, form=data)
        return self._run("update", data, existing)

    def delete(self, pk):
        record = self._get("delete", pk)
        label = self.label(record)
        try:
            with transaction.atomic():
                self.before_delete(record)
                log_action(action="delete", instance=record, actor=self.actor, label=label)
                record.delete()
        except DatabaseError as exc:
            # includes ProtectedError: masters still referenced by documents
            logger.warning("delete %s %s failed: %s", self.model.__name__, pk, exc)
            raise PersistenceError(
                f"Could not delete {self.model._meta.verbose_name} {label}.",
                action="delete", object_type=self.model.__name__,
            ) from exc
        logger.info("deleted %s %s", self.model.__name__, label)

    async def acreate(self, form_state) -> Submission:
        return await sync_to_async(self.create)(form_state)

    async def aupdate(self, form_state, existing) -> Submission:
        return await sync_to_async(self.update)(form_state, existing)

    async def adelete(self, pk):
        return await sync_to_async(self.delete)(pk)


class PaymentFieldsMixin:
    """Bank / cheque date go through the payment variant, so a saved record
    carries them exactly when the mode is Cheque."""

    def build(self, record, data):
        super().build(record, data)
        payment = payment_details(
            data.get("payment_mode"), data.get("bank_name"), data.get("cheque_date"))
        record.payment_mode = payment.mode
        record.bank_name = payment.bank_name
        record.cheque_date = payment.cheque_date


# ----------------------------
# Purchase orders
# ----------------------------
class PurchaseOrderController(PaymentFieldsMixin, DocumentController):
    model = PurchaseOrder
    fields = ("po_date", "shop_name", "gst_no", "payment_mode", "status",
              "payment_terms", "reference_id", "bank_name", "cheque_date")
    number_field = "po_number"
    line_model = PurchaseOrderItem
    line_relation = "items"
    line_parent = "purchase_order"
    line_fields = ("name", "quantity", "rate")
    label_field = "po_number"

    def numbering_type(self, data):
        return "PO"

    def apply_defaults(self, data):
        data.setdefault("payment_mode", "Cash")
        data.setdefault("status", "Unpaid")
        shop = PurchaseShop.objects.named(data.get("shop_name")).first()
        if shop is not None:
            if not data.get("gst_no"):
                data["gst_no"] = shop.gst_no
            if not data.get("payment_terms"):
                data["payment_terms"] = shop.payment_terms
        for item in data["items"]:
            if item.get("rate") is None and calculators.is_billable(item):
                master = MasterItem.objects.named(item["name"]).first()
                if master is not None:
                    item["rate"] = master.rate

    def compute(self, data):
        for item in data["items"]:
            item["amount"] = calculators.line_item_amount(
                item.get("quantity"), item.get("rate"))
        data["total_amount"] = calculators.purchase_order_total(data["items"])

    def validate(self, data, instance=None):
        return validation.validate_purchase_order(data)

    def lines(self, data):
        return calculators.billable_items(data["items"])

    def build(self, record, data):
        super().build(record, data)
        record.total_amount = data["total_amount"]


# ----------------------------
# Delivery challans
# ----------------------------
class DeliveryChallanController(DocumentController):
    model = DeliveryChallan
    fields = ("date", "party_name", "party_dc_no", "process", "split_process",
              "design_no", "pcs", "mtr", "final_meter", "width", "shrinkage",
              "pin", "pick", "percentage", "extra_work", "status",
              "worker_name", "working_unit", "is_outsourcing")
    number_field = "challan_number"
    label_field = "challan_number"

    def numbering_type(self, data):
        return "OutsourcingChallan" if data.get("is_outsourcing") else "DeliveryChallan"

    def apply_defaults(self, data):
        data.setdefault("status", "Ready to Invoice")

    def validate(self, data, instance=None):
        return validation.validate_delivery_challan(data)


def invoiced_challan_numbers():
    numbers = set()
    for joined in InvoiceItem.objects.values_list("challan_number", flat=True):
        numbers.update(n.strip() for n in joined.split(",") if n.strip())
    return numbers


# ----------------------------
# Invoices
# ----------------------------
class InvoiceController(DocumentController):
    model = Invoice
    fields = ("invoice_date", "client_name", "tax_type")
    number_field = "invoice_number"
    line_model = InvoiceItem
    line_relation = "items"
    line_parent = "invoice"
    line_fields = ("challan_number", "challan_date", "process", "description",
                   "design_no", "hsn_sac", "pcs", "mtr", "rate")
    label_field = "invoice_number"

    def numbering_type(self, data):
        return f"Invoice-{data.get('tax_type')}"

    def apply_defaults(self, data):
        if not data.get("tax_type"):
            data["tax_type"] = calculators.GST

    def compute(self, data):
        cgst_rate, sgst_rate = calculators.tax_rates_for(data["tax_type"])
        for item in data["items"]:
            split = calculators.invoice_item_tax(
                calculators.invoice_item_subtotal(item.get("mtr"), item.get("rate")),
                cgst_rate, sgst_rate,
            )
            item.update(subtotal=split.subtotal, cgst=split.cgst,
                        sgst=split.sgst, amount=split.amount)
        data["totals"] = calculators.invoice_totals(data["items"])

    def validate(self, data, instance=None):
        manual = taken = False
        if instance is None and data["tax_type"] in (calculators.GST, calculators.NGST):
            manual = numbering_mode(self.numbering_type(data)) == MANUAL
            number = data.get("invoice_number")
            taken = bool(number) and self.number_taken(number)
        return validation.validate_invoice(data, manual_numbering=manual, number_taken=taken)

    def manual_number_errors(self, data):
        # folded into validate_invoice
        return {}

    def build(self, record, data):
        super().build(record, data)
        record.apply_totals(data["totals"])

    def create_from_challans(self, client_name, challan_ids, invoice_date,
                             tax_type=calculators.GST, invoice_number=None) -> Submission:
        """Bill delivery challans: lines are grouped and priced from the masters."""
        challans = list(DeliveryChallan.objects.filter(pk__in=challan_ids))
        already = invoiced_challan_numbers()
        billed = [c.challan_number for c in challans if c.challan_number in already]
        if billed:
            return Submission(DRAFT, errors={
                "challans": "Already invoiced: " + ", ".join(sorted(billed))})

        client = Client.objects.named(client_name).first()
        items = calculators.build_invoice_items(
            challans,
            client_rates=client.process_rates() if client else {},
            process_rates={p.name: p.rate for p in ProcessType.objects.all()},
            tax_type=tax_type,
        )
        return self.create({
            "invoice_number": invoice_number,
            "invoice_date": invoice_date,
            "client_name": client_name,
            "tax_type": tax_type,
            "items": items,
        })


def client_balance(client_name) -> Decimal:
    return calculators.client_outstanding(
        Invoice.objects.filter(client_name__iexact=client_name),
        PaymentReceived.objects.filter(client_name__iexact=client_name),
    )


class PaymentReceivedController(DocumentController):
    model = PaymentReceived
    fields = ("client_name", "payment_date", "amount", "opening_balance",
              "payment_mode", "reference_number", "notes")

    def apply_defaults(self, data):
        data.setdefault("payment_mode", "Cash")
        if data.get("opening_balance") is None:
            data["opening_balance"] = calculators.ZERO

    def validate(self, data, instance=None):
        return validation.validate_payment_received(data)


# ----------------------------
# Expenses
# ----------------------------
class TimberExpenseController(PaymentFieldsMixin, DocumentController):
    model = TimberExpense
    fields = ("date", "supplier_name", "opening_balance", "load_weight",
              "vehicle_weight", "rate", "notes", "payment_mode",
              "payment_status", "payment_terms", "bank_name", "cheque_date")

    def apply_defaults(self, data):
        data.setdefault("payment_mode", "Cash")
        data.setdefault("payment_status", "Unpaid")
        if data.get("opening_balance") is None:
            data["opening_balance"] = calculators.ZERO

    def compute(self, data):
        data["cft"] = calculators.timber_cft(
            data.get("load_weight"), data.get("vehicle_weight"))
        data["amount"] = calculators.timber_amount(data["cft"], data.get("rate"))

    def validate(self, data, instance=None):
        return validation.validate_timber_expense(data)


def supplier_balance(supplier_name) -> Decimal:
    return calculators.supplier_outstanding(
        TimberExpense.objects.filter(supplier_name__iexact=supplier_name),
        SupplierPayment.objects.filter(supplier_name__iexact=supplier_name),
    )


class SupplierPaymentController(DocumentController):
    model = SupplierPayment
    fields = ("date", "supplier_name", "amount", "payment_mode", "reference_id")
    number_field = "payment_number"
    label_field = "payment_number"

    def numbering_type(self, data):
        return "SupplierPayment"

    def apply_defaults(self, data):
        data.setdefault("payment_mode", "Cash")

    def validate(self, data, instance=None):
        return validation.validate_supplier_payment(data)


class OtherExpenseController(PaymentFieldsMixin, DocumentController):
    model = OtherExpense
    fields = ("date", "item_name", "amount", "notes", "payment_mode",
              "payment_status", "payment_terms", "bank_name", "cheque_date")

    def apply_defaults(self, data):
        data.setdefault("payment_mode", "Cash")
        data.setdefault("payment_status", "Unpaid")

    def validate(self, data, instance=None):
        return validation.validate_other_expense(data)


# ----------------------------
# Employees
# ----------------------------
def _employee_errors(data):
    employee_id = data.get("employee_id")
    if employee_id and not Employee.objects.filter(pk=employee_id).exists():
        return {"employee_id": "Employee not found."}
    return {}


class EmployeeAdvanceController(DocumentController):
    model = EmployeeAdvance
    fields = ("employee_id", "date", "amount", "paid_amount", "notes")

    def apply_defaults(self, data):
        if data.get("paid_amount") is None:
            data["paid_amount"] = calculators.ZERO

    def validate(self, data, instance=None):
        return {**validation.validate_employee_advance(data), **_employee_errors(data)}


class PayslipController(DocumentController):
    """
    Saving a payslip settles the advances it deducts: the deduction is
    spread over the period's open advances, oldest first. Editing or
    deleting the payslip gives it back first.
    """
    model = Payslip
    fields = ("employee_id", "payslip_date", "pay_period_start", "pay_period_end")

    def apply_defaults(self, data):
        if not data.get("payslip_date"):
            data["payslip_date"] = timezone.localdate()
        data["deduct_advances"] = bool(data.get("deduct_advances", True))

    def validate(self, data, instance=None):
        return {**validation.validate_payslip(data), **_employee_errors(data)}

    def figures(self, employee, data) -> calculators.PayslipFigures:
        start, end = data["pay_period_start"], data["pay_period_end"]
        return calculators.compute_payslip(
            employee.daily_wage,
            employee.attendance.filter(date__range=(start, end)),
            list(employee.advances.all()),
            start, end,
            deduct_advances=data["deduct_advances"],
        )

    def preview(self, form_state):
        """Figures for the form, nothing saved. None while the form is invalid."""
        data = self.prepare(form_state)
        if self.validate(data):
            return None
        return self.figures(Employee.objects.get(pk=data["employee_id"]), data)

    def _period_advances(self, employee_id, start, end):
        return (EmployeeAdvance.objects.select_for_update()
                .filter(employee_id=employee_id, date__range=(start, end))
                .order_by("date", "id"))

    def _release(self, payslip):
        remaining = payslip.advance_deduction
        advances = self._period_advances(
            payslip.employee_id, payslip.pay_period_start, payslip.pay_period_end)
        # undo newest first
        for advance in reversed(list(advances)):
            if remaining <= 0:
                break
            give_back = min(remaining, advance.paid_amount)
            advance.paid_amount -= give_back
            advance.save()
            remaining -= give_back

    def _deduct(self, payslip):
        remaining = payslip.advance_deduction
        for advance in self._period_advances(
                payslip.employee_id, payslip.pay_period_start, payslip.pay_period_end):
            if remaining <= 0:
                break
            take = min(remaining, advance.balance)
            if take > 0:
                advance.paid_amount += take
                advance.save()
                remaining -= take

    def before_save(self, record, data, instance=None):
        if instance is not None:
            self._release(instance)
        employee = Employee.objects.get(pk=data["employee_id"])
        record.employee_name = employee.name
        record.apply_figures(self.figures(employee, data))

    def after_save(self, record, data, created):
        self._deduct(record)

    def before_delete(self, record):
        self._release(record)


# ----------------------------
# Master data
# ----------------------------
class MasterController(DocumentController):
    """Named reference records; `label` names the record in messages."""
    noun = "name"
    party = False
    label_field = "name"

    def validate(self, data, instance=None):
        if self.party:
            return validation.validate_party(self.model, data, instance, label=self.noun)
        return validation.validate_master_name(self.model, data, instance, label=self.noun)


class PurchaseShopController(MasterController):
    model = PurchaseShop
    fields = ("name", "phone", "email", "address", "city", "state", "pincode",
              "gst_no", "pan_no", "payment_terms", "opening_balance")
    noun = "shop name"
    party = True


class ClientController(MasterController):
    model = Client
    fields = ("name", "phone", "email", "address", "city", "state", "pincode",
              "gst_no", "pan_no", "payment_terms")
    noun = "client name"
    party = True
    # per-client process rates travel with the client form
    line_model = ClientProcessRate
    line_relation = "processes"
    line_parent = "client"
    line_fields = ("process_name", "rate")

    def prepare(self, form_state):
        data = super().prepare(form_state)
        # an edit without a rate list leaves the stored rates alone
        data["keep_rates"] = "items" not in form_state
        return data

    def lines(self, data):
        return [p for p in data["items"] if p.get("process_name")]

    def save_lines(self, record, data):
        if not data["keep_rates"]:
            super().save_lines(record, data)


class ProcessTypeController(MasterController):
    model = ProcessType
    fields = ("name", "rate")
    noun = "process"


class MasterItemController(MasterController):
    model = MasterItem
    fields = ("name", "rate")
    noun = "item name"


class ExpenseCategoryController(MasterController):
    model = ExpenseCategory
    fields = ("name",)
    noun = "category"


class BankController(MasterController):
    model = Bank
    fields = ("name",)
    noun = "bank name"


class EmployeeController(MasterController):
    model = Employee
    fields = ("name", "designation", "phone", "daily_wage", "monthly_wage",
              "rate_per_meter")
    noun = "employee name"


CONTROLLERS = {
    "purchase-orders": PurchaseOrderController,
    "delivery-challans": DeliveryChallanController,
    "invoices": InvoiceController,
    "payments-received": PaymentReceivedController,
    "timber-expenses": TimberExpenseController,
    "supplier-payments": SupplierPaymentController,
    "other-expenses": OtherExpenseController,
    "employee-advances": EmployeeAdvanceController,
    "payslips": PayslipController,
    "purchase-shops": PurchaseShopController,
    "clients": ClientController,
    "process-types": ProcessTypeController,
    "master-items": MasterItemController,
    "expense-categories": ExpenseCategoryController,
    "banks": BankController,
    "employees": EmployeeController,
}
