from django.core.management.base import BaseCommand
from django.db import transaction

from jobwork_core.models import NumberingConfig
from jobwork_core.models.numbering import DOC_TYPE_CHOICES


class Command(BaseCommand):
    help = (
        "Create the numbering row of every document type from "
        "JOBWORK_NUMBERING_DEFAULTS. Existing rows are left untouched."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--doc-type",
            action="append",
            choices=[code for code, _ in DOC_TYPE_CHOICES],
            help="Seed only this document type (repeatable).",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        doc_types = options["doc_type"] or [code for code, _ in DOC_TYPE_CHOICES]
        created = 0
        for doc_type in doc_types:
            exists = NumberingConfig.objects.filter(doc_type=doc_type).exists()
            config = NumberingConfig.objects.for_type(doc_type)
            if not exists:
                created += 1
                self.stdout.write(f"  {doc_type}: next {config.next_preview or '(manual)'}")
        self.stdout.write(self.style.SUCCESS(
            f"Seeded {created} numbering rows ({len(doc_types) - created} already present)."))
