"""
Payment details as two distinct shapes instead of one record whose cheque
fields may or may not be filled: a ChequePayment cannot be built without a
bank and a cheque date, a DirectPayment has neither.
"""
import datetime
from dataclasses import dataclass
from typing import Union

CHEQUE = "Cheque"
PAYMENT_MODES = (
    "Cash", "Cheque", "NEFT", "GPay", "Credit Card", "Bank Transfer", "Other",
)


@dataclass(frozen=True)
class DirectPayment:
    mode: str

    bank_name = ""
    cheque_date = None


@dataclass(frozen=True)
class ChequePayment:
    bank_name: str
    cheque_date: datetime.date
    mode = CHEQUE

    def __post_init__(self):
        if not (self.bank_name or "").strip():
            raise ValueError("A cheque payment needs a bank name")
        if self.cheque_date is None:
            raise ValueError("A cheque payment needs a cheque date")


Payment = Union[DirectPayment, ChequePayment]


def payment_details(mode, bank_name=None, cheque_date=None) -> Payment:
    """Build the variant for `mode`; call only with validated data."""
    if mode == CHEQUE:
        return ChequePayment(bank_name=bank_name.strip(), cheque_date=cheque_date)
    return DirectPayment(mode=mode)


def cheque_errors(mode, bank_name, cheque_date) -> dict:
    # the rule behind ChequePayment, phrased as field errors for the forms
    errors = {}
    if mode == CHEQUE:
        if not (bank_name or "").strip():
            errors["bank_name"] = "Bank name is required for cheque payments."
        if not cheque_date:
            errors["cheque_date"] = "Cheque date is required for cheque payments."
    return errors
