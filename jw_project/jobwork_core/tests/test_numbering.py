from django.test import SimpleTestCase, TestCase

from jobwork_core.exceptions import NumberingPreconditionError, PreconditionViolation
from jobwork_core.models import AuditLog, NumberingConfig
from jobwork_core.services.numbering import (reserve_document_number,
                                             update_numbering_settings)
from jobwork_core.services.sequence import (MANUAL, NumberingState, allocate,
                                            format_document_number, preview)


class FormatDocumentNumberTests(SimpleTestCase):
    def test_pads_to_four_digits(self):
        self.assertEqual(format_document_number("PO", 1), "PO-0001")
        self.assertEqual(format_document_number("DC", 42), "DC-0042")

    def test_large_numbers_keep_all_digits(self):
        self.assertEqual(format_document_number("INV", 12345), "INV-12345")

    def test_empty_prefix_still_has_the_dash(self):
        self.assertEqual(format_document_number("", 1), "-0001")

    def test_zero_is_allowed(self):
        self.assertEqual(format_document_number("PO", 0), "PO-0000")

    def test_negative_counter_is_rejected(self):
        with self.assertRaises(NumberingPreconditionError):
            format_document_number("PO", -1)

    def test_non_integer_counters_are_rejected(self):
        # bool and str are both programming errors, never formatted
        for bad in (True, "3", 2.0, None):
            with self.assertRaises(NumberingPreconditionError):
                format_document_number("PO", bad)

    def test_precondition_error_is_a_value_error(self):
        self.assertTrue(issubclass(NumberingPreconditionError, PreconditionViolation))
        self.assertTrue(issubclass(NumberingPreconditionError, ValueError))


class AllocateTests(SimpleTestCase):
    def test_allocate_returns_number_and_advanced_state(self):
        state = NumberingState(prefix="PO", next_number=7)
        number, new_state = allocate(state)

        self.assertEqual(number, "PO-0007")
        self.assertEqual(new_state.next_number, 8)
        self.assertEqual(new_state.prefix, "PO")
        # the input value is untouched
        self.assertEqual(state.next_number, 7)

    def test_repeated_allocation_never_repeats_a_number(self):
        state = NumberingState(prefix="DC", next_number=1)
        seen = []
        for _ in range(25):
            number, state = allocate(state)
            seen.append(number)
        self.assertEqual(len(seen), len(set(seen)))
        self.assertEqual(seen[0], "DC-0001")
        self.assertEqual(seen[-1], "DC-0025")

    def test_preview_does_not_consume(self):
        state = NumberingState(prefix="PO", next_number=3)
        self.assertEqual(preview(state), "PO-0003")
        self.assertEqual(preview(state), "PO-0003")
        self.assertEqual(state.next_number, 3)

    def test_preview_is_none_in_manual_mode(self):
        self.assertIsNone(preview(NumberingState("PO", 3, mode=MANUAL)))


class NumberingPersistenceTests(TestCase):
    def test_missing_row_is_created_from_settings(self):
        config = NumberingConfig.objects.for_type("OutsourcingChallan")
        self.assertEqual(config.prefix, "ODC")
        self.assertEqual(config.next_number, 1)
        self.assertEqual(config.mode, "auto")

    def test_reserve_in_auto_mode_advances_the_stored_counter(self):
        self.assertEqual(reserve_document_number("PO"), "PO-0001")
        self.assertEqual(reserve_document_number("PO"), "PO-0002")
        self.assertEqual(NumberingConfig.objects.get(doc_type="PO").next_number, 3)

    def test_reserve_in_manual_mode_leaves_counter_alone(self):
        config = NumberingConfig.objects.for_type("PO")
        config.mode = MANUAL
        config.save()

        for typed in ("MAN-1", "MAN-2", "MAN-3"):
            self.assertEqual(reserve_document_number("PO", typed), typed)

        config.refresh_from_db()
        self.assertEqual(config.next_number, 1)

    def test_reserve_steps_over_numbers_already_in_use(self):
        in_use = {"PO-0001", "PO-0002"}
        self.assertEqual(reserve_document_number("PO", taken=in_use.__contains__), "PO-0003")
        self.assertEqual(NumberingConfig.objects.get(doc_type="PO").next_number, 4)

    def test_streams_are_independent(self):
        reserve_document_number("Invoice-GST")
        reserve_document_number("Invoice-GST")
        self.assertEqual(reserve_document_number("Invoice-NGST"), "NGST-0001")

    def test_settings_update_cannot_lower_next_number(self):
        reserve_document_number("PO")
        reserve_document_number("PO")
        config, errors = update_numbering_settings("PO", {"next_number": 1})

        self.assertIn("next_number", errors)
        config.refresh_from_db()
        self.assertEqual(config.next_number, 3)

    def test_settings_update_changes_preview_and_is_audited(self):
        config, errors = update_numbering_settings(
            "PO", {"prefix": "PUR", "next_number": "10", "mode": "auto"}, actor="admin")

        self.assertEqual(errors, {})
        self.assertEqual(config.next_preview, "PUR-0010")
        entry = AuditLog.objects.get(object_type="NumberingConfig")
        self.assertEqual(entry.actor, "admin")
        self.assertEqual(entry.changes["before"]["prefix"], "PO")
        self.assertEqual(entry.changes["after"]["next_number"], 10)

    def test_settings_update_validates_prefix_and_mode(self):
        _, errors = update_numbering_settings("PO", {"prefix": "  ", "mode": "sometimes"})
        self.assertEqual(set(errors), {"prefix", "mode"})
