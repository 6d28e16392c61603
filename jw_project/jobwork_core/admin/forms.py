from django import forms

from jobwork_core.models import (Bank, Client, Employee, ExpenseCategory,
                                 MasterItem, NumberingConfig, ProcessType,
                                 PurchaseShop)
from jobwork_core.services.numbering import validate_numbering_settings
from jobwork_core.services.validation import (validate_master_name,
                                              validate_party)

# -----------------------------
# Master-data forms
# ----------------------------


class NamedMasterForm(forms.ModelForm):
    """Runs the same case-insensitive name check as the API."""
    noun = "name"

    def clean(self):
        cleaned = super().clean()
        errors = self.rule_errors(cleaned)
        for field, message in errors.items():
            # errors on fields the form does not show go to the top
            self.add_error(field if field in self.fields else None, message)
        return cleaned

    def rule_errors(self, cleaned):
        return validate_master_name(
            self._meta.model, cleaned, instance=self.instance, label=self.noun)


class PartyForm(NamedMasterForm):
    def rule_errors(self, cleaned):
        return validate_party(
            self._meta.model, cleaned, instance=self.instance, label=self.noun)


class PurchaseShopForm(PartyForm):
    noun = "shop name"

    class Meta:
        model = PurchaseShop
        fields = "__all__"


class ClientForm(PartyForm):
    noun = "client name"

    class Meta:
        model = Client
        fields = "__all__"


class ProcessTypeForm(NamedMasterForm):
    noun = "process"

    class Meta:
        model = ProcessType
        fields = "__all__"


class MasterItemForm(NamedMasterForm):
    noun = "item name"

    class Meta:
        model = MasterItem
        fields = "__all__"


class ExpenseCategoryForm(NamedMasterForm):
    noun = "category"

    class Meta:
        model = ExpenseCategory
        fields = "__all__"


class BankForm(NamedMasterForm):
    noun = "bank name"

    class Meta:
        model = Bank
        fields = "__all__"


class EmployeeForm(NamedMasterForm):
    noun = "employee name"

    class Meta:
        model = Employee
        fields = "__all__"


class NumberingConfigForm(forms.ModelForm):
    class Meta:
        model = NumberingConfig
        fields = ("doc_type", "prefix", "next_number", "mode")

    def clean(self):
        cleaned = super().clean()
        # only existing rows have a counter to protect
        if self.instance.pk:
            stored = NumberingConfig.objects.get(pk=self.instance.pk)
            for field, message in validate_numbering_settings(stored, cleaned).items():
                self.add_error(field if field in self.fields else None, message)
        return cleaned
