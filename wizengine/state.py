"""Mutable per-session flow state."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from wizengine.logger import get_logger
from wizengine.models import ErrorMap, ExternalResolution, FlowSnapshot

if TYPE_CHECKING:
    from wizengine.steps import FlowDefinition

log = get_logger(__name__)


@dataclass
class FlowState:
    """State of one flow session, owned by its step sequencer.

    ``values`` is flattened across steps; ``errors`` is keyed by step id and
    never persisted; ``resolutions`` tracks the latest lookup per kind.
    ``jump_target`` holds the destination of a forward jump that stopped at
    an interstitial.
    """

    flow_id: str
    current_index: int = 0
    values: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, ErrorMap] = field(default_factory=dict)
    visited: set[str] = field(default_factory=set)
    interstitial: str | None = None
    jump_target: int | None = None
    resolutions: dict[str, ExternalResolution] = field(default_factory=dict)

    @classmethod
    def fresh(cls, definition: FlowDefinition) -> FlowState:
        return cls(flow_id=definition.flow_id, values=copy.deepcopy(dict(definition.defaults)))

    @classmethod
    def from_snapshot(cls, snapshot: FlowSnapshot, definition: FlowDefinition) -> FlowState:
        """Rehydrate from a snapshot, tolerating definition changes.

        Out-of-range indexes are clamped to the nearest valid step; visited
        step ids and value keys the current definition no longer knows are
        dropped.
        """
        last = len(definition.steps) - 1
        index = min(max(snapshot.current_index, 0), last)
        if index != snapshot.current_index:
            log.warning(
                "snapshot_index_clamped",
                flow_id=definition.flow_id,
                stored=snapshot.current_index,
                clamped=index,
            )

        known_fields = definition.field_keys
        values = copy.deepcopy(dict(definition.defaults))
        values.update(
            {k: copy.deepcopy(v) for k, v in snapshot.values.items() if k in known_fields}
        )
        visited = {step_id for step_id in snapshot.visited if step_id in definition.step_ids}

        return cls(
            flow_id=definition.flow_id,
            current_index=index,
            values=values,
            visited=visited,
        )

    def snapshot(self) -> FlowSnapshot:
        """Detached serializable copy; errors are never included."""
        return FlowSnapshot(
            flow_id=self.flow_id,
            current_index=self.current_index,
            values=copy.deepcopy(self.values),
            visited=set(self.visited),
        )
