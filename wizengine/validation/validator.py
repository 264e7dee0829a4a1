"""Step-level field validation."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from wizengine.models import ErrorMap

if TYPE_CHECKING:
    from wizengine.steps import FlowDefinition


class FieldValidator:
    """Validates one step of a flow against the full flattened values map.

    Pure and deterministic: no I/O, no state. Cross-step rules see every
    value collected so far because the whole map is passed through.
    """

    def __init__(self, definition: FlowDefinition) -> None:
        self._definition = definition

    def validate(
        self,
        step_id: str,
        values: Mapping[str, Any],
        skipping: bool | None = None,
    ) -> ErrorMap:
        """Return field key -> message for every failing field (empty = valid).

        ``skipping`` defaults to the step's own skip mode as read from ``values``.
        """
        step = self._definition.step(step_id)
        if skipping is None:
            skipping = step.is_skipping(values)
        return step.validate(values, skipping=skipping)
