from django.contrib import admin

from jobwork_core.models import (Bank, Client, Employee, ExpenseCategory,
                                 MasterItem, ProcessType, PurchaseShop)

from .forms import (BankForm, ClientForm, EmployeeForm, ExpenseCategoryForm,
                    MasterItemForm, ProcessTypeForm, PurchaseShopForm)
from .inlines import ClientProcessRateInline


@admin.register(PurchaseShop)
class PurchaseShopAdmin(admin.ModelAdmin):
    form = PurchaseShopForm
    list_display = ("id", "name", "phone", "gst_no", "payment_terms",
                    "opening_balance")
    search_fields = ("name", "gst_no", "phone")


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    form = ClientForm
    list_display = ("id", "name", "phone", "city", "gst_no")
    search_fields = ("name", "gst_no", "phone")
    inlines = [ClientProcessRateInline]


@admin.register(ProcessType)
class ProcessTypeAdmin(admin.ModelAdmin):
    form = ProcessTypeForm
    list_display = ("id", "name", "rate")
    search_fields = ("name",)


@admin.register(MasterItem)
class MasterItemAdmin(admin.ModelAdmin):
    form = MasterItemForm
    list_display = ("id", "name", "rate")
    search_fields = ("name",)


@admin.register(ExpenseCategory)
class ExpenseCategoryAdmin(admin.ModelAdmin):
    form = ExpenseCategoryForm
    search_fields = ("name",)


@admin.register(Bank)
class BankAdmin(admin.ModelAdmin):
    form = BankForm
    search_fields = ("name",)


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    form = EmployeeForm
    list_display = ("id", "name", "designation", "daily_wage", "rate_per_meter")
    search_fields = ("name", "phone")
