"""Flow session: one user's pass through a flow definition."""

from __future__ import annotations

import asyncio
import copy
from typing import Any

from wizengine.exceptions import SubmissionRejectedError, UnknownLookupError
from wizengine.logger import get_logger
from wizengine.models import (
    ExternalResolution,
    InterstitialChoice,
    ResolutionStatus,
    SessionView,
    StepStatus,
    SubmissionPayload,
    SubmissionResult,
    TransitionResult,
)
from wizengine.persistence import SnapshotStore
from wizengine.plans import can_use_ai, get_plan
from wizengine.resolver import ExternalResolver
from wizengine.sequencer import STEP_ERROR_KEY, StepSequencer
from wizengine.state import FlowState
from wizengine.steps import FlowDefinition, LookupBinding
from wizengine.submission import BaseSubmitter
from wizengine.validation import is_empty

log = get_logger(__name__)

_DEFAULT_SUBMIT_TIMEOUT = 10.0


class FlowSession:
    """Wires a step sequencer to persistence, lookups and submission.

    The snapshot is loaded exactly once, here at construction, and saved after
    every committed transition. Abandoning the session clears the snapshot
    and starts over from the definition's defaults.
    """

    def __init__(
        self,
        definition: FlowDefinition,
        session_id: str,
        store: SnapshotStore,
        resolver: ExternalResolver | None = None,
        submit_timeout: float = _DEFAULT_SUBMIT_TIMEOUT,
    ) -> None:
        self.definition = definition
        self.session_id = session_id
        self.storage_key = f"{definition.flow_id}:{session_id}"
        self.submit_timeout = submit_timeout
        self._store = store
        self._resolver = resolver or ExternalResolver()
        self._generation = 0
        self.submitted = False
        self.account: dict[str, Any] | None = None
        self.last_transition: TransitionResult | None = None

        snapshot = store.load(self.storage_key)
        if snapshot is not None and snapshot.flow_id == definition.flow_id:
            state = FlowState.from_snapshot(snapshot, definition)
            self.restored = True
            log.info(
                "session_restored",
                flow_id=definition.flow_id,
                session_id=session_id,
                index=state.current_index,
            )
        else:
            state = FlowState.fresh(definition)
            self.restored = False

        self.sequencer = StepSequencer(definition, state, on_commit=self._save)

    @property
    def state(self) -> FlowState:
        return self.sequencer.state

    # --- Transitions ---

    def change_field(self, key: str, value: Any, step_id: str | None = None) -> TransitionResult:
        return self._record(self.sequencer.change_field(key, value, step_id=step_id))

    def advance(self) -> TransitionResult:
        return self._record(self.sequencer.advance())

    def retreat(self) -> TransitionResult:
        return self._record(self.sequencer.retreat())

    def jump(self, target: int) -> TransitionResult:
        return self._record(self.sequencer.jump(target))

    def resolve_interstitial(self, choice: InterstitialChoice | str) -> TransitionResult:
        return self._record(self.sequencer.resolve_interstitial(InterstitialChoice(choice)))

    # --- External lookups ---

    async def lookup(self, kind: str, key: str) -> ExternalResolution:
        """Run the lookup bound to ``kind`` and merge its payload into the values.

        A response is applied only if it belongs to the latest request for its
        kind and the session has not moved past the step that issued it.
        Prefill never overwrites a field the user has already changed.
        """
        binding = self.definition.lookup(kind)
        if binding is None or not self._resolver.has_lookup(kind):
            raise UnknownLookupError(kind)

        if binding.key_field is not None:
            self.sequencer.change_field(binding.key_field, key)

        generation = self._generation
        issuing_index = self._issuing_index(binding)
        resolution = self._resolver.issue(kind, key)
        self.state.resolutions[kind] = resolution

        result = await self._resolver.resolve(resolution)

        if generation != self._generation:
            log.info("lookup_discarded", kind=kind, key=key, reason="session_restarted")
            return result.model_copy(update={"status": ResolutionStatus.STALE, "payload": {}})
        if result.status == ResolutionStatus.STALE:
            return result

        if result.status == ResolutionStatus.RESOLVED and self.state.current_index > issuing_index:
            log.info(
                "lookup_stale",
                kind=kind,
                key=key,
                reason="step_left",
                issuing_index=issuing_index,
                current_index=self.state.current_index,
            )
            result = result.model_copy(update={"status": ResolutionStatus.STALE, "payload": {}})

        self.state.resolutions[kind] = result
        if result.status == ResolutionStatus.RESOLVED:
            written = self.sequencer.prefill(
                {
                    target: result.payload[source]
                    for source, target in binding.prefill.items()
                    if not is_empty(result.payload.get(source))
                }
            )
            log.info("lookup_applied", kind=kind, key=key, prefilled=written)
        return result

    def _issuing_index(self, binding: LookupBinding) -> int:
        if binding.key_field is not None:
            owner = self.definition.owner_of(binding.key_field)
            if owner is not None:
                return self.definition.index_of(owner.id)
        return self.definition.index_of(binding.step_id)

    # --- Recommendation ---

    @property
    def recommended_tier(self) -> str | None:
        recommender = self.definition.recommender
        if recommender is None:
            return None
        return recommender.recommend(self.state.values)

    @property
    def selected_tier(self) -> str | None:
        """The user's explicit choice, or the recommendation when none was made."""
        field = self.definition.selection_field
        if field is not None:
            chosen = self.state.values.get(field)
            if not is_empty(chosen):
                return str(chosen)
        return self.recommended_tier

    # --- Submission ---

    def is_submit_ready(self) -> bool:
        return not self.submitted and self.sequencer.is_submit_ready()

    def build_payload(self) -> SubmissionPayload:
        recommended = self.recommended_tier
        selected = self.selected_tier
        return SubmissionPayload(
            flow_id=self.definition.flow_id,
            session_id=self.session_id,
            values=copy.deepcopy(self.state.values),
            recommended_tier=recommended,
            selected_tier=selected,
            tier_overridden=(
                recommended is not None and selected is not None and selected != recommended
            ),
            skipped_steps=self.sequencer.skipped_steps(),
            lookups={
                kind: dict(resolution.payload)
                for kind, resolution in self.state.resolutions.items()
                if resolution.status == ResolutionStatus.RESOLVED
            },
        )

    async def submit(self, submitter: BaseSubmitter) -> SubmissionResult:
        if self.submitted:
            return SubmissionResult(status="not_ready", error="This session was already submitted")
        if not self.sequencer.at_final_step():
            return SubmissionResult(status="not_ready", error="Complete every step before submitting")
        invalid = self.sequencer.recheck()
        if invalid is not None:
            self._record(invalid)
            return SubmissionResult(
                status="not_ready", error=f"Correct the fields on step '{invalid.step_id}' first"
            )

        last_step = self.definition.steps[-1].id
        step_errors = self.state.errors.get(last_step)
        if step_errors:
            step_errors.pop(STEP_ERROR_KEY, None)

        payload = self.build_payload()
        error: str | None = None
        try:
            self.account = await asyncio.wait_for(
                submitter.submit(payload), timeout=self.submit_timeout
            )
        except asyncio.TimeoutError:
            error = "The account service did not respond in time"
            log.warning("submission_timeout", flow_id=self.definition.flow_id, session_id=self.session_id)
        except SubmissionRejectedError as exc:
            error = exc.detail
            log.info("submission_rejected", flow_id=self.definition.flow_id, detail=exc.detail)
        except Exception as exc:
            error = "Account creation failed"
            log.warning("submission_error", flow_id=self.definition.flow_id, error=str(exc))

        if error is not None:
            self.state.errors.setdefault(last_step, {})[STEP_ERROR_KEY] = error
            return SubmissionResult(status="rejected", error=error, payload=payload)

        self.submitted = True
        self._store.clear(self.storage_key)
        log.info(
            "submission_accepted",
            flow_id=self.definition.flow_id,
            session_id=self.session_id,
            selected_tier=payload.selected_tier,
            tier_overridden=payload.tier_overridden,
        )
        return SubmissionResult(status="accepted", payload=payload)

    def abandon(self) -> None:
        """Start over: drop the snapshot and reset to a fresh state."""
        self._store.clear(self.storage_key)
        self._generation += 1
        self.sequencer.state = FlowState.fresh(self.definition)
        self.submitted = False
        self.account = None
        self.last_transition = None
        log.info("session_abandoned", flow_id=self.definition.flow_id, session_id=self.session_id)

    # --- Rendering ---

    def view(self) -> SessionView:
        state = self.state
        locked = self.sequencer.locked_fields()
        steps = [
            StepStatus(
                step_id=step.id,
                index=index,
                title=step.title,
                completed=step.id in state.visited and index != state.current_index,
                active=index == state.current_index,
                clickable=index != state.current_index and self.sequencer.can_jump(index),
                has_errors=bool(state.errors.get(step.id)),
                locked=bool(locked & step.fields),
            )
            for index, step in enumerate(self.definition.steps)
        ]
        progress = round(100 * len(state.visited) / len(self.definition.steps), 1)
        return SessionView(
            session_id=self.session_id,
            flow_id=self.definition.flow_id,
            current_index=state.current_index,
            current_step=self.sequencer.current_step.id,
            steps=steps,
            values=copy.deepcopy(state.values),
            errors={step_id: dict(errors) for step_id, errors in state.errors.items() if errors},
            interstitial=state.interstitial,
            resolutions=dict(state.resolutions),
            recommended_tier=self.recommended_tier,
            selected_tier=self.selected_tier,
            ai_assistant=can_use_ai(get_plan(self.selected_tier)),
            submit_ready=self.is_submit_ready(),
            progress=min(progress, 100.0),
            last_transition=self.last_transition,
        )

    # --- Internals ---

    def _save(self, state: FlowState) -> None:
        self._store.save(self.storage_key, state.snapshot())

    def _record(self, result: TransitionResult) -> TransitionResult:
        self.last_transition = result
        return result
