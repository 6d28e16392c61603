"""
Derived-field calculators.

Pure functions: same inputs, same outputs, no database access. Models call
them from save() and the lifecycle controllers call them on every submit,
so a stored derived value is always the one recomputed from its sources.
Money is carried at paise precision (2 places, half-up).
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, List, Mapping, Optional

from django.conf import settings

from ..exceptions import PreconditionViolation

ZERO = Decimal("0")
MONEY = Decimal("0.01")
WHOLE = Decimal("1")
HALF_DAY = Decimal("0.5")
CFT = Decimal("0.001")

GST = "GST"
NGST = "NGST"


def to_decimal(value, default=ZERO) -> Decimal:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise PreconditionViolation(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # floats go through str so 0.1 stays 0.1
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise PreconditionViolation(f"Not a number: {value!r}")
    # NaN and Infinity parse, but no amount or quantity can hold them
    if not result.is_finite():
        raise PreconditionViolation(f"Not a number: {value!r}")
    return result


def money(value) -> Decimal:
    return to_decimal(value).quantize(MONEY, rounding=ROUND_HALF_UP)


def non_negative(value) -> Decimal:
    return max(ZERO, to_decimal(value))


def _field(obj, name, default=None):
    # line items arrive either as form dicts or as model instances
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


# ----------------------------
# Purchase orders
# ----------------------------
def line_item_amount(quantity, rate) -> Decimal:
    """Negative entries are clamped, rejecting them is the validator's job."""
    return money(non_negative(quantity) * non_negative(rate))


def is_billable(item) -> bool:
    return bool(str(_field(item, "name") or "").strip())


def billable_items(items) -> list:
    # rows left without a name are dropped from totals and from the saved PO
    return [item for item in items if is_billable(item)]


def purchase_order_total(items) -> Decimal:
    return sum(
        (line_item_amount(_field(i, "quantity"), _field(i, "rate"))
         for i in billable_items(items)),
        ZERO,
    ).quantize(MONEY)


# ----------------------------
# Timber expenses
# ----------------------------
def timber_cft(load_weight, vehicle_weight) -> Decimal:
    cft = max(ZERO, to_decimal(load_weight) - to_decimal(vehicle_weight))
    return cft.quantize(CFT, rounding=ROUND_HALF_UP)


def timber_amount(cft, rate) -> Decimal:
    return money(to_decimal(cft) * to_decimal(rate))


def supplier_outstanding(expenses, payments) -> Decimal:
    """What a timber supplier is still owed: bills plus opening balances,
    minus what has been paid."""
    billed = sum(
        (to_decimal(_field(e, "amount")) + to_decimal(_field(e, "opening_balance"))
         for e in expenses),
        ZERO,
    )
    paid = sum((to_decimal(_field(p, "amount")) for p in payments), ZERO)
    return money(billed - paid)


def balance_after_payment(outstanding, amount) -> Decimal:
    return money(max(ZERO, to_decimal(outstanding) - to_decimal(amount)))


def client_outstanding(invoices, receipts) -> Decimal:
    """What a client still owes: invoice totals plus the opening balances
    recorded on their receipts, minus what was received."""
    billed = sum((to_decimal(_field(i, "total_amount")) for i in invoices), ZERO)
    billed += sum((to_decimal(_field(r, "opening_balance")) for r in receipts), ZERO)
    received = sum((to_decimal(_field(r, "amount")) for r in receipts), ZERO)
    return money(billed - received)


# ----------------------------
# Invoices
# ----------------------------
@dataclass(frozen=True)
class TaxSplit:
    subtotal: Decimal
    cgst: Decimal
    sgst: Decimal
    amount: Decimal


@dataclass(frozen=True)
class InvoiceTotals:
    sub_total: Decimal
    total_cgst: Decimal
    total_sgst: Decimal
    total_tax_amount: Decimal
    rounded_off: Decimal
    total_amount: Decimal


def tax_rates_for(tax_type):
    """(cgst_rate, sgst_rate) for an invoice stream; NGST bills carry no tax."""
    if tax_type == NGST:
        return ZERO, ZERO
    return (
        to_decimal(getattr(settings, "JOBWORK_CGST_RATE", "0.025")),
        to_decimal(getattr(settings, "JOBWORK_SGST_RATE", "0.025")),
    )


def invoice_item_subtotal(mtr, rate) -> Decimal:
    return money(non_negative(mtr) * non_negative(rate))


def invoice_item_tax(subtotal, cgst_rate, sgst_rate) -> TaxSplit:
    subtotal = money(subtotal)
    cgst = money(subtotal * to_decimal(cgst_rate))
    sgst = money(subtotal * to_decimal(sgst_rate))
    return TaxSplit(subtotal=subtotal, cgst=cgst, sgst=sgst,
                    amount=subtotal + cgst + sgst)


def invoice_totals(items) -> InvoiceTotals:
    sub_total = sum((to_decimal(_field(i, "subtotal")) for i in items), ZERO)
    total_cgst = sum((to_decimal(_field(i, "cgst")) for i in items), ZERO)
    total_sgst = sum((to_decimal(_field(i, "sgst")) for i in items), ZERO)
    return totals_from_parts(sub_total, total_cgst, total_sgst)


def totals_from_parts(sub_total, total_cgst, total_sgst) -> InvoiceTotals:
    sub_total = to_decimal(sub_total)
    total_cgst = to_decimal(total_cgst)
    total_sgst = to_decimal(total_sgst)
    before_rounding = sub_total + total_cgst + total_sgst
    total_amount = before_rounding.quantize(WHOLE, rounding=ROUND_HALF_UP)
    return InvoiceTotals(
        sub_total=sub_total,
        total_cgst=total_cgst,
        total_sgst=total_sgst,
        total_tax_amount=total_cgst + total_sgst,
        # keep the rounding delta explicit
        rounded_off=total_amount - before_rounding,
        total_amount=total_amount,
    )


def process_label(processes) -> str:
    return ", ".join(processes or [])


def build_invoice_items(challans, client_rates=None, process_rates=None,
                        hsn_sac=None, tax_type=GST) -> List[dict]:
    """
    Turn delivery challans into invoice lines.
    Challans with the same process list, cumulative rate and HSN/SAC code
    collapse into one line with summed pcs/mtr.
    """
    client_rates = client_rates or {}
    process_rates = process_rates or {}
    hsn_sac = hsn_sac or getattr(settings, "JOBWORK_DEFAULT_HSN_SAC", "")
    cgst_rate, sgst_rate = tax_rates_for(tax_type)

    def rate_for(challan):
        total = ZERO
        for name in _field(challan, "process") or []:
            # a party's own rate wins over the master process rate
            if name in client_rates:
                total += to_decimal(client_rates[name])
            else:
                total += to_decimal(process_rates.get(name))
        return total

    ordered = sorted(
        challans,
        key=lambda c: (process_label(_field(c, "process")), str(_field(c, "date"))),
    )

    groups = {}
    for challan in ordered:
        label = process_label(_field(challan, "process"))
        rate = rate_for(challan)
        key = (label, rate, hsn_sac)
        group = groups.setdefault(key, {
            "process": label, "rate": rate, "hsn_sac": hsn_sac,
            "pcs": 0, "mtr": ZERO,
            "numbers": [], "dates": [], "designs": set(),
        })
        group["pcs"] += int(_field(challan, "pcs") or 0)
        group["mtr"] += to_decimal(_field(challan, "mtr"))
        group["numbers"].append(_field(challan, "challan_number"))
        group["dates"].append(_field(challan, "date"))
        design = _field(challan, "design_no")
        if design:
            group["designs"].add(design)

    lines = []
    for group in groups.values():
        split = invoice_item_tax(
            invoice_item_subtotal(group["mtr"], group["rate"]),
            cgst_rate, sgst_rate,
        )
        lines.append({
            "challan_number": ", ".join(sorted(group["numbers"])),
            "challan_date": max(group["dates"]) if group["dates"] else None,
            "process": group["process"],
            "description": "",
            "design_no": ", ".join(sorted(group["designs"])),
            "hsn_sac": group["hsn_sac"],
            "pcs": group["pcs"],
            "mtr": group["mtr"],
            "rate": group["rate"],
            "subtotal": split.subtotal,
            "cgst": split.cgst,
            "sgst": split.sgst,
            "amount": split.amount,
        })
    return lines


# ----------------------------
# Employees
# ----------------------------
def advance_balance(amount, paid_amount) -> Decimal:
    # shown on screens, never stored
    return to_decimal(amount) - to_decimal(paid_amount)


PRESENT_STATUSES = ("Present", "Holiday")


@dataclass(frozen=True)
class PayslipFigures:
    total_working_days: Decimal
    ot_hours: Decimal
    gross_salary: Decimal
    advance_deduction: Decimal
    net_salary: Decimal
    total_outstanding_advance: Decimal


def worked_days(attendance) -> Decimal:
    days = ZERO
    for record in attendance:
        # each half of the day counts separately
        if _field(record, "morning_status") in PRESENT_STATUSES:
            days += HALF_DAY
        if _field(record, "evening_status") in PRESENT_STATUSES:
            days += HALF_DAY
    return days


def compute_payslip(daily_wage, attendance, advances, start, end,
                    deduct_advances=True) -> PayslipFigures:
    """
    attendance: records inside the pay period.
    advances: every advance of the employee; those dated inside
    [start, end] are deducted, up to the gross salary.
    """
    attendance = [a for a in attendance if start <= _field(a, "date") <= end]
    days = worked_days(attendance)
    ot_hours = sum(
        (to_decimal(_field(a, "morning_overtime_hours"))
         + to_decimal(_field(a, "evening_overtime_hours"))
         for a in attendance),
        ZERO,
    )
    gross = money(days * to_decimal(daily_wage))

    outstanding_total = sum(
        (advance_balance(_field(a, "amount"), _field(a, "paid_amount"))
         for a in advances),
        ZERO,
    )
    in_period = sum(
        (advance_balance(_field(a, "amount"), _field(a, "paid_amount"))
         for a in advances if start <= _field(a, "date") <= end),
        ZERO,
    )
    deduction = min(gross, in_period) if deduct_advances else ZERO
    return PayslipFigures(
        total_working_days=days,
        ot_hours=ot_hours,
        gross_salary=gross,
        advance_deduction=money(deduction),
        net_salary=money(gross - deduction),
        total_outstanding_advance=money(outstanding_total - deduction),
    )


def optional_decimal(value) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return to_decimal(value)
