"""
Per-document rule sets.

Every validator takes the (already type-coerced) form data and returns
{field: message}. An empty dict means valid. Nothing here raises: all
rules run so the form can show every problem at once.
"""
import re
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import validate_email

from ..exceptions import PreconditionViolation
from .calculators import billable_items, optional_decimal
from .payment import PAYMENT_MODES, cheque_errors

PHONE_RE = re.compile(r"^(?:\+91)?[6789]\d{9}$")
GSTIN_RE = re.compile(
    r"^\d{2}[A-Z]{5}\d{4}[A-Z][1-9A-Z]Z[0-9A-Z]$", re.IGNORECASE)
PAN_RE = re.compile(r"^[A-Z]{5}\d{4}[A-Z]$", re.IGNORECASE)

ORDER_STATUSES = ("Paid", "Unpaid", "Partially Paid")
CHALLAN_STATUSES = ("Not Delivered", "Ready to Invoice", "Delivered", "Rework")


def _blank(value):
    return value is None or not str(value).strip()


def _number(value):
    """Decimal or None; never raises."""
    try:
        return optional_decimal(value)
    except PreconditionViolation:
        return None


def _require(errors, data, field, message):
    if _blank(data.get(field)):
        errors[field] = message


def _positive(errors, data, field, message):
    value = _number(data.get(field))
    if value is None or value <= 0:
        errors[field] = message


def _payment_rules(errors, data, *, status_field=None):
    mode = data.get("payment_mode")
    if mode not in PAYMENT_MODES:
        errors["payment_mode"] = "Payment mode is required."
    if status_field and data.get(status_field) not in ORDER_STATUSES:
        errors[status_field] = "Payment status is required."
    # cheque ⇒ bank + date; any other mode leaves them optional
    errors.update(cheque_errors(mode, data.get("bank_name"), data.get("cheque_date")))


# ----------------------------
# Name uniqueness
# ----------------------------
def _fold(name):
    return (name or "").strip().casefold()


def name_conflict(name, existing_names, original_name=None) -> bool:
    """
    True when `name` clashes with another record's name, ignoring case.
    When editing, pass the record's current name as `original_name` so it
    does not clash with itself.
    """
    target = _fold(name)
    others = existing_names
    if original_name is not None:
        original = _fold(original_name)
        others = [n for n in existing_names if _fold(n) != original]
    return target in {_fold(n) for n in others}


def validate_unique_name(model, name, instance=None, label="name") -> dict:
    # the edited record is excluded by primary key
    if _blank(name):
        return {"name": f"{label.capitalize()} cannot be empty."}
    if model.objects.name_taken(name, instance=instance):
        return {"name": f"This {label} already exists."}
    return {}


def validate_master_name(model, data, instance=None, label="name") -> dict:
    return validate_unique_name(model, data.get("name"), instance=instance, label=label)


def validate_party(model, data, instance=None, label="shop name") -> dict:
    """Purchase shops and clients: unique name, optional formatted ids."""
    errors = validate_unique_name(model, data.get("name"), instance=instance, label=label)

    phone = (data.get("phone") or "").strip()
    if phone and not PHONE_RE.match(phone):
        errors["phone"] = "Invalid Indian mobile number (e.g., 9876543210)."

    email = (data.get("email") or "").strip()
    if email:
        try:
            validate_email(email)
        except ValidationError:
            errors["email"] = "Invalid email address."

    gst_no = (data.get("gst_no") or "").strip()
    if gst_no and not GSTIN_RE.match(gst_no):
        errors["gst_no"] = "Invalid GST number format."

    pan_no = (data.get("pan_no") or "").strip()
    if pan_no and not PAN_RE.match(pan_no):
        errors["pan_no"] = "Invalid PAN number format."
    return errors


# ----------------------------
# Documents
# ----------------------------
def validate_purchase_order(data) -> dict:
    errors = {}
    _require(errors, data, "shop_name", "Shop name is required.")
    if not data.get("po_date"):
        errors["po_date"] = "PO date is required."

    items = billable_items(data.get("items") or [])
    if not items:
        errors["items"] = "Add at least one item with a name."
    else:
        quantities = [_number(i.get("quantity")) for i in items]
        rates = [_number(i.get("rate")) for i in items]
        if any(q is None or q <= 0 for q in quantities):
            errors["items"] = "Quantity must be greater than 0."
        elif any(r is None for r in rates):
            errors["items"] = "Rate is required."
        elif any(r < 0 for r in rates):
            errors["items"] = "Rate cannot be negative."

    if data.get("status") not in ORDER_STATUSES:
        errors["status"] = "Order status is required."
    _payment_rules(errors, data)
    return errors


def validate_delivery_challan(data) -> dict:
    errors = {}
    _require(errors, data, "party_name", "Party name is required.")
    if not data.get("date"):
        errors["date"] = "Date is required."
    process = data.get("process") or []
    if not [p for p in process if not _blank(p)]:
        errors["process"] = "At least one process is required."
    _positive(errors, data, "pcs", "No of pcs must be positive.")
    _positive(errors, data, "mtr", "Mtr must be positive.")
    if data.get("status") not in CHALLAN_STATUSES:
        errors["status"] = "Challan status is required."
    return errors


def validate_invoice(data, manual_numbering=False, number_taken=False) -> dict:
    """
    manual_numbering: the invoice stream is in manual mode, so the typed
    number is required. number_taken: another invoice already uses it.
    """
    errors = {}
    if manual_numbering:
        if _blank(data.get("invoice_number")):
            errors["invoice_number"] = "Invoice number is required in manual mode."
        elif number_taken:
            errors["invoice_number"] = "This invoice number is already in use."
    if not data.get("invoice_date"):
        errors["invoice_date"] = "Invoice date is required."
    _require(errors, data, "client_name", "Client is required.")
    items = data.get("items") or []
    if not items:
        errors["items"] = "At least one item is required for the invoice."
    for index, item in enumerate(items):
        rate = _number(item.get("rate"))
        if rate is None or rate <= 0:
            errors[f"rate_{index}"] = "Rate must be positive."
        if _blank(item.get("process")):
            errors[f"process_{index}"] = "Process is required."
    if data.get("tax_type") not in ("GST", "NGST"):
        errors["tax_type"] = "Tax type must be GST or NGST."
    return errors


def validate_timber_expense(data) -> dict:
    errors = {}
    _require(errors, data, "supplier_name", "Supplier is required.")
    if not data.get("date"):
        errors["date"] = "Date is required."
    _positive(errors, data, "load_weight", "Load Weight must be positive.")
    _positive(errors, data, "vehicle_weight", "Vehicle Weight must be positive.")
    load = _number(data.get("load_weight"))
    vehicle = _number(data.get("vehicle_weight"))
    if load is not None and vehicle is not None and load <= vehicle:
        errors["load_weight"] = "Load weight must be greater than vehicle weight."
    _positive(errors, data, "rate", "Rate must be positive.")
    _payment_rules(errors, data, status_field="payment_status")
    return errors


def validate_other_expense(data) -> dict:
    errors = {}
    _require(errors, data, "item_name", "Category is required.")
    if not data.get("date"):
        errors["date"] = "Date is required."
    _positive(errors, data, "amount", "Amount must be a positive number.")
    _payment_rules(errors, data, status_field="payment_status")
    return errors


def validate_supplier_payment(data) -> dict:
    errors = {}
    if not data.get("date"):
        errors["date"] = "Date is required."
    _require(errors, data, "supplier_name", "Supplier is required.")
    _positive(errors, data, "amount", "Amount must be positive.")
    if data.get("payment_mode") not in PAYMENT_MODES:
        errors["payment_mode"] = "Payment mode is required."
    return errors


def validate_payment_received(data) -> dict:
    errors = {}
    _require(errors, data, "client_name", "Client name is required.")
    if not data.get("payment_date"):
        errors["payment_date"] = "Payment date is required."
    _positive(errors, data, "amount", "Amount must be a positive number.")
    if data.get("payment_mode") not in PAYMENT_MODES:
        errors["payment_mode"] = "Payment mode is required."
    opening = _number(data.get("opening_balance"))
    if opening is not None and opening < 0:
        errors["opening_balance"] = "Opening balance cannot be negative."
    return errors


def validate_employee_advance(data) -> dict:
    errors = {}
    if not data.get("employee_id"):
        errors["employee_id"] = "Employee is required."
    if not data.get("date"):
        errors["date"] = "Date is required."
    _positive(errors, data, "amount", "Amount must be a positive number.")
    amount = _number(data.get("amount"))
    paid = _number(data.get("paid_amount"))
    paid = Decimal("0") if paid is None else paid
    if paid < 0:
        errors["paid_amount"] = "Paid amount cannot be negative."
    elif amount is not None and paid > amount:
        errors["paid_amount"] = "Paid amount cannot exceed the advance amount."
    return errors


def validate_payslip(data) -> dict:
    errors = {}
    if not data.get("employee_id"):
        errors["employee_id"] = "Employee is required."
    start, end = data.get("pay_period_start"), data.get("pay_period_end")
    if not start:
        errors["pay_period_start"] = "Start date is required."
    if not end:
        errors["pay_period_end"] = "End date is required."
    if start and end and start > end:
        errors["pay_period_end"] = "Start date cannot be after the end date."
    return errors
