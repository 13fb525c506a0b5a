"""Field partitioner — assigns every inspection field to exactly one step.

A save issued from step N must carry only step-N keys (plus, on the very
first create, the minimal top-level fields). Anything else would let a
partial update on one step overwrite another step's data with empty
values, so the partition is checked for disjointness on construction.
"""

import logging
from collections.abc import Mapping
from datetime import date
from typing import Any

from pydantic import ValidationError as SchemaValidationError

from inspection_engine.application.schemas.inspection_steps import (
    STEP_SCHEMAS,
    TOP_LEVEL_FIELDS,
    StepFields,
)
from inspection_engine.domain.entities import (
    EntityId,
    FieldValue,
    FieldValues,
    InspectionStatus,
)
from inspection_engine.domain.erp import POWER_FIELDS

logger = logging.getLogger(__name__)

_TRUTHY = {"true", "1", "yes", "on"}

# Values a step reads (never writes) from another step for derived calculations.
_READ_ONLY_INPUTS: dict[int, tuple[str, ...]] = {4: POWER_FIELDS}


class FieldPartitioner:
    """Owns the step → field mapping and builds step-scoped payloads."""

    def __init__(self, schemas: Mapping[int, type[StepFields]] | None = None):
        self._schemas = dict(schemas or STEP_SCHEMAS)
        self._owner: dict[str, int] = {}
        for step, schema in sorted(self._schemas.items()):
            for key in self._keys_for(schema):
                if key in TOP_LEVEL_FIELDS:
                    raise ValueError(f"Field '{key}' of step {step} is a top-level field")
                if key in self._owner:
                    raise ValueError(
                        f"Field '{key}' is assigned to both step "
                        f"{self._owner[key]} and step {step}"
                    )
                self._owner[key] = step

    @staticmethod
    def _keys_for(schema: type[StepFields]) -> tuple[str, ...]:
        return tuple(schema.model_fields) + tuple(schema.reference_fields)

    def schema(self, step: int) -> type[StepFields]:
        try:
            return self._schemas[step]
        except KeyError:
            raise ValueError(f"Unknown step {step}") from None

    @property
    def steps(self) -> list[int]:
        return sorted(self._schemas)

    def owned_fields(self, step: int) -> tuple[str, ...]:
        """Form fields declared by the step schema."""
        return tuple(self.schema(step).model_fields)

    def payload_keys(self, step: int) -> frozenset[str]:
        """Every key a save from this step may carry (form fields + reference slots)."""
        return frozenset(self._keys_for(self.schema(step)))

    def owner_of(self, field: str) -> int | None:
        return self._owner.get(field)

    def blocks_on_validation(self, step: int) -> bool:
        return self.schema(step).blocking_validation

    def has_meaningful_values(self, step: int, fields: Mapping[str, Any]) -> bool:
        return any(fields.get(name) for name in self.schema(step).meaningful_fields)

    def step_view(self, step: int, values: Mapping[str, Any]) -> FieldValues:
        """The subset of ``values`` owned by the step, ignoring nulls."""
        owned = self.owned_fields(step)
        return {
            key: _as_scalar(values[key])
            for key in owned
            if key in values and values[key] is not None
        }

    def read_only_inputs(self, step: int, values: Mapping[str, Any]) -> FieldValues:
        """Values from other steps that this step needs for derived fields."""
        return {
            key: _as_scalar(values[key])
            for key in _READ_ONLY_INPUTS.get(step, ())
            if values.get(key) is not None
        }

    def build_payload(
        self,
        step: int,
        fields: Mapping[str, Any],
        *,
        is_new: bool,
        references: Mapping[str, EntityId | None] | None = None,
        today: date | None = None,
    ) -> dict[str, Any]:
        """Build the save payload for ``step``.

        Every owned field is present, unset ones carrying the schema's
        explicit empty value. Reference slots carry resolved identities
        only and are omitted when unresolved. Status and date are added
        on the very first create only.
        """
        schema = self.schema(step)
        payload: dict[str, Any] = {}
        for name, info in schema.model_fields.items():
            value = fields.get(name)
            if info.annotation is bool:
                payload[name] = _as_bool(value) if value else info.default
            else:
                payload[name] = str(value) if value else info.default

        for key in schema.reference_fields:
            identity = (references or {}).get(key)
            if identity is not None:
                payload[key] = identity

        if is_new:
            payload["status"] = InspectionStatus.DRAFT.value
            payload["inspection_date"] = (today or date.today()).isoformat()
        return payload

    def validate(self, step: int, fields: Mapping[str, Any]) -> dict[str, list[str]]:
        """Synchronous schema validation; returns field → messages (empty when valid)."""
        schema = self.schema(step)
        candidate = {k: v for k, v in fields.items() if k in schema.model_fields}
        try:
            schema.model_validate(candidate)
        except SchemaValidationError as exc:
            errors: dict[str, list[str]] = {}
            for error in exc.errors():
                name = ".".join(str(part) for part in error["loc"]) or "non_field_errors"
                errors.setdefault(name, []).append(error["msg"])
            logger.debug("Step %d failed validation: %s", step, errors)
            return errors
        return {}


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUTHY


def _as_scalar(value: Any) -> FieldValue:
    if isinstance(value, (bool, str)):
        return value
    return str(value)
