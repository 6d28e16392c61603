import logging
from django.db import transaction
from ..models import NumberingConfig
from .audit_helper import log_action
from .sequence import NUMBERING_MODES, allocate

logger = logging.getLogger(__name__)


# ----------------------------------------------
# Number reservation
# ----------------------------------------------
def reserve_document_number(doc_type: str, manual_number: str | None = None,
                            taken=None):
    """
    Return the number a new document of `doc_type` will be saved under.

    Auto mode mints the next number and stores the advanced counter.
    `taken(number)` says whether a number is already on a stored document
    (typed in while the type was in manual mode); those are stepped over.
    Manual mode returns `manual_number` as typed and leaves the counter alone.
    Must run inside the same transaction.atomic() block as the document
    insert, so a failed insert gives the number back.
    """
    with transaction.atomic():
        # Lock the config row until the surrounding transaction finishes
        config = NumberingConfig.objects.locked(doc_type)
        if config.mode == "manual":
            return (manual_number or "").strip()

        number, new_state = allocate(config.state())
        while taken is not None and taken(number):
            logger.info("skipping %s for %s, already in use", number, doc_type)
            number, new_state = allocate(new_state)
        config.apply_state(new_state)
        config.save(update_fields=["next_number", "updated_at"])
        logger.info("allocated %s for %s", number, doc_type)
        return number


def numbering_mode(doc_type: str) -> str:
    return NumberingConfig.objects.for_type(doc_type).mode


# ----------------------------------------------
# Settings screen
# ----------------------------------------------
def validate_numbering_settings(config: NumberingConfig, data) -> dict:
    errors = {}
    prefix = data.get("prefix", config.prefix)
    if prefix is None or not str(prefix).strip():
        errors["prefix"] = "Prefix is required."

    raw_next = data.get("next_number", config.next_number)
    try:
        next_number = int(str(raw_next).strip())
    except (TypeError, ValueError):
        errors["next_number"] = "Next number must be a whole number."
    else:
        if next_number < config.next_number:
            errors["next_number"] = (
                f"Next number cannot be lower than {config.next_number}.")

    if data.get("mode", config.mode) not in NUMBERING_MODES:
        errors["mode"] = "Mode must be 'auto' or 'manual'."
    return errors


def update_numbering_settings(doc_type: str, data, actor=None):
    """Returns (config, errors); nothing is saved when errors is non-empty."""
    with transaction.atomic():
        config = NumberingConfig.objects.locked(doc_type)
        errors = validate_numbering_settings(config, data)
        if errors:
            return config, errors

        before = {"prefix": config.prefix, "next_number": config.next_number,
                  "mode": config.mode}
        config.prefix = str(data.get("prefix", config.prefix)).strip()
        config.next_number = int(str(data.get("next_number", config.next_number)).strip())
        config.mode = data.get("mode", config.mode)
        config.save()
        log_action(
            action="update",
            instance=config,
            actor=actor,
            label=doc_type,
            changes={"before": before,
                     "after": {"prefix": config.prefix,
                               "next_number": config.next_number,
                               "mode": config.mode}},
        )
        logger.info("numbering for %s changed to %s", doc_type, config)
        return config, {}
