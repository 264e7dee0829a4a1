"""Step sequencer: the flow state machine."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from wizengine.logger import get_logger
from wizengine.models import (
    ErrorMap,
    GuardAction,
    GuardDecision,
    InterstitialChoice,
    ResolutionStatus,
    TransitionResult,
    TransitionStatus,
)
from wizengine.state import FlowState
from wizengine.steps import FlowDefinition, StepDefinition
from wizengine.validation import is_empty

log = get_logger(__name__)

#: Error key for step-wide problems that are not tied to a single field.
STEP_ERROR_KEY = "__step__"


class StepSequencer:
    """Processes field changes and transition attempts for one flow session.

    The sequencer is the only writer of its ``FlowState``. Every event runs
    to completion and reports a ``TransitionResult``; rule, guard and hook
    failures are captured into state rather than raised.
    """

    def __init__(
        self,
        definition: FlowDefinition,
        state: FlowState,
        on_commit: Callable[[FlowState], None] | None = None,
    ) -> None:
        self.definition = definition
        self.state = state
        self._on_commit = on_commit

    # --- Properties ---

    @property
    def current_step(self) -> StepDefinition:
        return self.definition.steps[self.state.current_index]

    @property
    def last_index(self) -> int:
        return len(self.definition.steps) - 1

    def locked_fields(self) -> frozenset[str]:
        """Fields of entry-gated steps whose lookup is still pending."""
        locked: set[str] = set()
        for binding in self.definition.lookups:
            if not binding.gates_entry:
                continue
            resolution = self.state.resolutions.get(binding.kind)
            if resolution is not None and resolution.status == ResolutionStatus.PENDING:
                locked |= self.definition.step(binding.step_id).fields - {binding.key_field}
        return frozenset(locked)

    # --- Events ---

    def change_field(
        self, key: str, value: Any, step_id: str | None = None
    ) -> TransitionResult:
        owner = self.definition.owner_of(key)
        if owner is None:
            return self._result("ignored", reason=f"Unknown field '{key}'")
        if step_id is not None and step_id != owner.id:
            return self._result(
                "ignored", reason=f"Field '{key}' does not belong to step '{step_id}'"
            )
        if key in self.locked_fields():
            return self._result(
                "ignored", step_id=owner.id, reason="This step is waiting for a lookup to finish"
            )

        self.state.values[key] = value
        self.state.errors.pop(owner.id, None)
        return self._result("changed", step_id=owner.id)

    def advance(self) -> TransitionResult:
        if self.state.interstitial is not None:
            return self._pending_interstitial()

        step = self.current_step
        errors = self._validate(step)
        if errors:
            self.state.errors[step.id] = errors
            log.debug("step_invalid", flow_id=self.definition.flow_id, step_id=step.id, fields=sorted(errors))
            return self._result("stayed", errors=errors)

        self.state.errors.pop(step.id, None)
        self.state.visited.add(step.id)

        decision = self._run_guard(step)
        if decision.action == GuardAction.BLOCK:
            log.info("step_blocked", flow_id=self.definition.flow_id, step_id=step.id, reason=decision.reason)
            return self._result("blocked", reason=decision.reason)
        if decision.action == GuardAction.INTERSTITIAL:
            return self._enter_interstitial(decision)
        return self._step_forward("advance")

    def retreat(self) -> TransitionResult:
        if self.state.interstitial is not None:
            return self._pending_interstitial()
        if self.state.current_index == 0:
            return self._result("ignored", reason="Already at the first step")

        self.state.current_index -= 1
        self._commit("retreat")
        return self._result("retreated")

    def jump(self, target: int) -> TransitionResult:
        if self.state.interstitial is not None:
            return self._pending_interstitial()
        if not 0 <= target <= self.last_index:
            return self._result("ignored", reason=f"Step index {target} is out of range")

        current = self.state.current_index
        if target == current:
            return self._result("ignored", reason="Already on this step")

        if target > current:
            missing = self._unvisited_before(target)
            if missing:
                return self._result(
                    "ignored", reason=f"Complete step '{missing[0]}' before jumping ahead"
                )
            step = self.current_step
            errors = self._validate(step)
            if errors:
                self.state.errors[step.id] = errors
                return self._result("stayed", errors=errors)
            self.state.errors.pop(step.id, None)
            self.state.visited.add(step.id)

            decision = self._run_guard(step)
            if decision.action == GuardAction.BLOCK:
                return self._result("blocked", reason=decision.reason)
            if decision.action == GuardAction.INTERSTITIAL:
                self.state.jump_target = target
                return self._enter_interstitial(decision)

        self.state.current_index = target
        self._commit("jump")
        return self._result("jumped")

    def resolve_interstitial(self, choice: InterstitialChoice) -> TransitionResult:
        interstitial_id = self.state.interstitial
        if interstitial_id is None:
            return self._result("ignored", reason="No confirmation is pending")

        self.state.interstitial = None
        target, self.state.jump_target = self.state.jump_target, None
        if choice == InterstitialChoice.RETURN:
            log.info("interstitial_returned", flow_id=self.definition.flow_id, interstitial=interstitial_id)
            return self._result("stayed", interstitial_id=interstitial_id)

        step = self.current_step
        errors = self._validate(step)
        if errors:
            self.state.errors[step.id] = errors
            return self._result("stayed", errors=errors, interstitial_id=interstitial_id)

        log.info("interstitial_continued", flow_id=self.definition.flow_id, interstitial=interstitial_id)
        if target is not None:
            self.state.current_index = target
            self._commit("jump")
            return self._result("jumped", interstitial_id=interstitial_id)
        return self._step_forward("interstitial")

    def prefill(self, values: Mapping[str, Any]) -> list[str]:
        """Fill fields that are still empty or at their default; return the keys written."""
        written: list[str] = []
        known = self.definition.field_keys
        for key, value in values.items():
            if key not in known:
                continue
            current = self.state.values.get(key)
            if not (is_empty(current) or current == self.definition.defaults.get(key)):
                continue
            self.state.values[key] = value
            owner = self.definition.owner_of(key)
            if owner is not None:
                self.state.errors.pop(owner.id, None)
            written.append(key)
        return written

    # --- Queries ---

    def at_final_step(self) -> bool:
        return self.state.interstitial is None and self.state.current_index == self.last_index

    def is_submit_ready(self) -> bool:
        return self.at_final_step() and not self.invalid_steps()

    def invalid_steps(self) -> dict[str, ErrorMap]:
        """Current errors of every step up to the active one, in flow order.

        Fields of earlier steps stay editable from anywhere, so a step that
        was valid when it was left may not be valid any more.
        """
        found: dict[str, ErrorMap] = {}
        for step in self.definition.steps[: self.state.current_index + 1]:
            errors = self._validate(step)
            if errors:
                found[step.id] = errors
        return found

    def recheck(self) -> TransitionResult | None:
        """Re-validate all reached steps; return None when they all pass.

        Otherwise the errors are stored under their step ids and the flow
        moves back to the first invalid step.
        """
        invalid = self.invalid_steps()
        if not invalid:
            return None

        self.state.errors.update(invalid)
        first = next(iter(invalid))
        log.info("recheck_failed", flow_id=self.definition.flow_id, steps=list(invalid))
        index = self.definition.index_of(first)
        if index != self.state.current_index:
            self.state.current_index = index
            self._commit("recheck")
        return self._result("stayed", errors=invalid[first])

    def can_jump(self, target: int) -> bool:
        """Jump legality without running validation (for progress indicators)."""
        if self.state.interstitial is not None or not 0 <= target <= self.last_index:
            return False
        if target <= self.state.current_index:
            return True
        return not self._unvisited_before(target)

    def skipped_steps(self) -> list[str]:
        return [
            step.id
            for step in self.definition.steps
            if step.id in self.state.visited and step.is_skipping(self.state.values)
        ]

    # --- Internals ---

    def _validate(self, step: StepDefinition) -> ErrorMap:
        values = self.state.values
        try:
            return step.validate(values, skipping=step.is_skipping(values))
        except Exception as exc:
            log.warning("rule_error", flow_id=self.definition.flow_id, step_id=step.id, error=str(exc))
            return {STEP_ERROR_KEY: "This step could not be validated"}

    def _run_guard(self, step: StepDefinition) -> GuardDecision:
        if step.guard is None:
            return GuardDecision.proceed()
        try:
            return step.guard(self.state)
        except Exception as exc:
            log.warning("guard_error", flow_id=self.definition.flow_id, step_id=step.id, error=str(exc))
            return GuardDecision.block("This step cannot be completed right now")

    def _enter_interstitial(self, decision: GuardDecision) -> TransitionResult:
        interstitial_id = decision.interstitial_id
        self.state.interstitial = interstitial_id
        reason = decision.reason
        if reason is None and interstitial_id in self.definition.interstitials:
            reason = self.definition.interstitials[interstitial_id].message
        log.info("interstitial_shown", flow_id=self.definition.flow_id, interstitial=interstitial_id)
        return self._result("interstitial", reason=reason, interstitial_id=interstitial_id)

    def _step_forward(self, cause: str) -> TransitionResult:
        if self.state.current_index == self.last_index:
            self._commit(cause)
            return self._result("ready")
        self.state.current_index += 1
        self._commit(cause)
        return self._result("advanced")

    def _unvisited_before(self, target: int) -> list[str]:
        current = self.state.current_index
        return [
            step.id
            for index, step in enumerate(self.definition.steps[:target])
            if index != current and step.id not in self.state.visited
        ]

    def _pending_interstitial(self) -> TransitionResult:
        return self._result(
            "ignored",
            reason="Confirm or cancel the pending question first",
            interstitial_id=self.state.interstitial,
        )

    def _commit(self, cause: str) -> None:
        log.info(
            "step_committed",
            flow_id=self.definition.flow_id,
            cause=cause,
            index=self.state.current_index,
            step_id=self.current_step.id,
        )
        if self._on_commit is None:
            return
        try:
            self._on_commit(self.state)
        except Exception as exc:
            log.warning("commit_hook_error", flow_id=self.definition.flow_id, error=str(exc))

    def _result(
        self,
        status: TransitionStatus,
        step_id: str | None = None,
        errors: ErrorMap | None = None,
        reason: str | None = None,
        interstitial_id: str | None = None,
    ) -> TransitionResult:
        return TransitionResult(
            status=status,
            step_id=step_id or self.current_step.id,
            current_index=self.state.current_index,
            errors=dict(errors or {}),
            reason=reason,
            interstitial_id=interstitial_id,
        )
