from django.conf import settings
from django.db import models

# -----------------------------------------
# Case-insensitive name lookups shared by
# every master-data model
# -----------------------------------------
class NamedQuerySet(models.QuerySet):
    def named(self, name):  # "Acme", "ACME " and "acme" are the same record
        return self.filter(name__iexact=(name or "").strip())

    def excluding(self, instance):
        # leave out the record being edited from uniqueness checks
        pk = getattr(instance, "pk", None)
        if pk is None:
            return self
        return self.exclude(pk=pk)

    def name_taken(self, name, instance=None):
        return self.excluding(instance).named(name).exists()


class NamedManager(models.Manager.from_queryset(NamedQuerySet)):
    pass
    # every master model using NamedManager can call:
    # PurchaseShop.objects.name_taken("acme", instance=shop)


# -----------------------------------------
# One NumberingConfig row per document type
# -----------------------------------------
class NumberingConfigManager(models.Manager):

    def _defaults(self, doc_type):
        defaults = getattr(settings, "JOBWORK_NUMBERING_DEFAULTS", {})
        entry = defaults.get(doc_type, {})
        return {
            "prefix": entry.get("prefix", doc_type),
            "mode": entry.get("mode", "auto"),
            "next_number": entry.get("next_number", 1),
        }

    def for_type(self, doc_type):
        # Fetch the row, creating it from settings the first time it is needed
        config, _ = self.get_or_create(
            doc_type=doc_type, defaults=self._defaults(doc_type)
        )
        return config

    def locked(self, doc_type):
        """Row-locked fetch; call inside transaction.atomic()."""
        self.for_type(doc_type)
        return self.select_for_update().get(doc_type=doc_type)
