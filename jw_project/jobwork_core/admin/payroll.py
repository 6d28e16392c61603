from django.contrib import admin

from jobwork_core.models import AttendanceRecord, EmployeeAdvance, Payslip


@admin.register(EmployeeAdvance)
class EmployeeAdvanceAdmin(admin.ModelAdmin):
    list_display = ("id", "employee", "date", "amount", "paid_amount", "balance")
    list_filter = ("date",)
    search_fields = ("employee__name",)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("employee")


@admin.register(AttendanceRecord)
class AttendanceRecordAdmin(admin.ModelAdmin):
    list_display = ("id", "employee", "date", "morning_status",
                    "evening_status", "meters_produced")
    list_filter = ("date", "morning_status", "evening_status")
    search_fields = ("employee__name",)


@admin.register(Payslip)
class PayslipAdmin(admin.ModelAdmin):
    list_display = ("id", "employee_name", "pay_period_start", "pay_period_end",
                    "gross_salary", "advance_deduction", "net_salary")
    search_fields = ("employee_name",)

    # figures are computed when the payslip is finalised; never hand-edited
    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return [f.name for f in self.model._meta.fields]
        return super().get_readonly_fields(request, obj)
