"""
Input Validation

DESIGN DECISION: Callers hand the ledger plain data (dicts from a request
body, form values, CLI arguments). Validation happens in two stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Numeric / temporal coercion
- Page type must be one of the known variants
This is delegated to the pydantic input models.

STAGE 2 - REPORTING:
- Every pydantic error becomes a ValidationIssue
- All issues are raised together in one ValidationError
so the caller can fix everything in one round trip.

IMPORTANT: Validation NEVER silently fixes issues, and it always runs
before anything is written.
"""

from collections.abc import Mapping
from typing import Any, Optional, TypeVar
from uuid import UUID

import pydantic
from pydantic import BaseModel

from pageledger.errors import ValidationError
from pageledger.models.page import (
    EntryCreate,
    EntryUpdate,
    PageCreate,
    PageUpdate,
    RecordId,
    ValidationIssue,
)


ModelT = TypeVar("ModelT", bound=BaseModel)

# pydantic error types mapped onto our issue vocabulary
_ISSUE_TYPES = {
    "missing": "missing",
    "enum": "invalid_choice",
    "value_error": "invalid_value",
    "string_type": "invalid_type",
    "string_too_short": "empty",
    "int_type": "invalid_type",
    "decimal_type": "invalid_type",
}


def parse_record_id(value: Optional[RecordId]) -> Optional[UUID]:
    """
    Parse a page or entry identity.

    Returns None when the value is missing or cannot be an identity;
    whether that is a validation problem or a stale reference is the
    caller's decision.
    """
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return UUID(value.strip())
        except ValueError:
            return None
    return None


class LedgerValidator:
    """Validates caller payloads for every ledger operation."""

    def _issues_from(self, error: pydantic.ValidationError) -> list[ValidationIssue]:
        issues = []
        for err in error.errors():
            field = ".".join(str(part) for part in err["loc"]) or "payload"
            message = err["msg"]
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
            issues.append(ValidationIssue(
                field=field,
                issue_type=_ISSUE_TYPES.get(err["type"], err["type"]),
                message=message,
            ))
        return issues

    def _validate(
        self,
        model: type[ModelT],
        data: Any,
        operation: str,
    ) -> ModelT:
        if data is None:
            data = {}
        if isinstance(data, BaseModel):
            data = data.model_dump(exclude_unset=True)
        if not isinstance(data, Mapping):
            raise ValidationError(
                f"Invalid {operation}: payload must be a mapping",
                issues=[ValidationIssue(
                    field="payload",
                    issue_type="invalid_type",
                    message=f"Expected a mapping, got {type(data).__name__}",
                )],
            )

        try:
            return model.model_validate(dict(data))
        except pydantic.ValidationError as e:
            issues = self._issues_from(e)
            summary = "; ".join(f"{i.field}: {i.message}" for i in issues)
            raise ValidationError(f"Invalid {operation}: {summary}", issues=issues) from e

    def validate_page_create(self, title: Any, page_type: Any) -> PageCreate:
        """Title must be non-blank, type one of deoya / neoya."""
        return self._validate(
            PageCreate, {"title": title, "type": page_type}, "page"
        )

    def validate_page_update(self, data: Any) -> PageUpdate:
        """Only supplied fields are checked; absent fields stay None."""
        return self._validate(PageUpdate, data, "page update")

    def validate_entry_create(self, data: Any) -> EntryCreate:
        """`no` and `money` are required and must be numeric."""
        return self._validate(EntryCreate, data, "entry")

    def validate_entry_update(self, data: Any) -> EntryUpdate:
        """Supplied fields must be coercible; absent fields stay None."""
        return self._validate(EntryUpdate, data, "entry update")

    def require_entry_id(self, entry_id: Optional[RecordId]) -> Optional[UUID]:
        """
        Check that an entry identity was supplied at all.

        A supplied but unknown or malformed id is not a validation problem;
        it returns None and the mutator reports it as not found.
        """
        if entry_id is None or (isinstance(entry_id, str) and not entry_id.strip()):
            raise ValidationError(
                "Entry ID is required",
                issues=[ValidationIssue(
                    field="entry_id",
                    issue_type="missing",
                    message="Entry ID is required",
                )],
            )
        return parse_record_id(entry_id)
