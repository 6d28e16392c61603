from .auditlog import AuditLog
from .challan import DeliveryChallan
from .expenses import OtherExpense, SupplierPayment, TimberExpense
from .invoice import Invoice, InvoiceItem, PaymentReceived
from .masters import (Bank, Client, ClientProcessRate, Employee,
                      ExpenseCategory, MasterItem, ProcessType, PurchaseShop)
from .numbering import NumberingConfig
from .payroll import AttendanceRecord, EmployeeAdvance, Payslip
from .purchase import PurchaseOrder, PurchaseOrderItem
