"""Input validation package."""

from pageledger.validation.validator import LedgerValidator, parse_record_id

__all__ = ["LedgerValidator", "parse_record_id"]
