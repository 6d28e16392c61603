from .actions import mark_challans_delivered, recompute_totals
from .auditlog import AuditLogAdmin, NumberingConfigAdmin
from .documents import (DeliveryChallanAdmin, InvoiceAdmin, OtherExpenseAdmin,
                        PaymentReceivedAdmin, PurchaseOrderAdmin,
                        SupplierPaymentAdmin, TimberExpenseAdmin)
from .forms import (BankForm, ClientForm, EmployeeForm, ExpenseCategoryForm,
                    MasterItemForm, NumberingConfigForm, ProcessTypeForm,
                    PurchaseShopForm)
from .inlines import (ClientProcessRateInline, InvoiceItemInline,
                      PurchaseOrderItemInline)
from .masters import (BankAdmin, ClientAdmin, EmployeeAdmin,
                      ExpenseCategoryAdmin, MasterItemAdmin, ProcessTypeAdmin,
                      PurchaseShopAdmin)
from .payroll import AttendanceRecordAdmin, EmployeeAdvanceAdmin, PayslipAdmin
