"""Step and flow definitions, and the registry of available flows."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from wizengine.exceptions import FlowDefinitionError, FlowNotFoundError
from wizengine.logger import get_logger
from wizengine.models import ErrorMap, GuardDecision
from wizengine.validation import Rule, validate_rules

if TYPE_CHECKING:
    from wizengine.recommendation import Recommender
    from wizengine.state import FlowState

log = get_logger(__name__)

Guard = Callable[["FlowState"], GuardDecision]


@dataclass(frozen=True)
class StepDefinition:
    """One screen's worth of fields and the rules that validate them."""

    id: str
    fields: frozenset[str] = frozenset()
    rules: tuple[Rule, ...] = ()
    skippable: bool = False
    skip_field: str | None = None
    guard: Guard | None = None
    title: str | None = None

    def is_skipping(self, values: Mapping[str, Any]) -> bool:
        return self.skippable and bool(self.skip_field and values.get(self.skip_field))

    def validate(self, values: Mapping[str, Any], skipping: bool = False) -> ErrorMap:
        return validate_rules(self.rules, values, skipping=skipping)


@dataclass(frozen=True)
class InterstitialDefinition:
    """Confirmation screen that a guard can push in front of the next step."""

    id: str
    message: str
    title: str | None = None


@dataclass(frozen=True)
class LookupBinding:
    """Connects an external lookup kind to the step it gates or prefills.

    ``prefill`` maps payload keys to field keys. With ``gates_entry`` set, the
    fields of ``step_id`` (other than ``key_field``) stay locked while a
    lookup of this kind is pending.
    """

    kind: str
    step_id: str
    key_field: str | None = None
    prefill: Mapping[str, str] = field(default_factory=dict)
    gates_entry: bool = False


@dataclass(frozen=True)
class FlowDefinition:
    """Ordered steps plus everything the engine needs to run a flow."""

    flow_id: str
    steps: tuple[StepDefinition, ...]
    title: str | None = None
    recommender: Recommender | None = None
    selection_field: str | None = None
    defaults: Mapping[str, Any] = field(default_factory=dict)
    interstitials: Mapping[str, InterstitialDefinition] = field(default_factory=dict)
    lookups: tuple[LookupBinding, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))
        object.__setattr__(self, "lookups", tuple(self.lookups))
        object.__setattr__(self, "defaults", MappingProxyType(dict(self.defaults)))
        object.__setattr__(self, "interstitials", MappingProxyType(dict(self.interstitials)))
        self._check()

    # --- Lookups by id ---

    def step(self, step_id: str) -> StepDefinition:
        for step in self.steps:
            if step.id == step_id:
                return step
        raise KeyError(step_id)

    def index_of(self, step_id: str) -> int:
        for index, step in enumerate(self.steps):
            if step.id == step_id:
                return index
        raise KeyError(step_id)

    def owner_of(self, field_key: str) -> StepDefinition | None:
        for step in self.steps:
            if field_key in step.fields:
                return step
        return None

    def lookup(self, kind: str) -> LookupBinding | None:
        return next((b for b in self.lookups if b.kind == kind), None)

    @property
    def field_keys(self) -> frozenset[str]:
        return frozenset().union(*(step.fields for step in self.steps))

    @property
    def step_ids(self) -> list[str]:
        return [step.id for step in self.steps]

    def describe(self) -> dict[str, Any]:
        """JSON-ready outline of the flow for presentation layers."""
        return {
            "flow_id": self.flow_id,
            "title": self.title,
            "step_count": len(self.steps),
            "steps": [
                {
                    "step_id": step.id,
                    "title": step.title,
                    "fields": sorted(step.fields),
                    "skippable": step.skippable,
                    "skip_field": step.skip_field,
                }
                for step in self.steps
            ],
            "defaults": dict(self.defaults),
            "selection_field": self.selection_field,
            "recommends": self.recommender is not None,
            "tiers": self.recommender.tiers if self.recommender is not None else [],
            "interstitials": {
                key: {"title": item.title, "message": item.message}
                for key, item in self.interstitials.items()
            },
            "lookups": [binding.kind for binding in self.lookups],
        }

    # --- Consistency checks ---

    def _fail(self, detail: str) -> None:
        raise FlowDefinitionError(self.flow_id, detail)

    def _check(self) -> None:
        if not self.steps:
            self._fail("a flow needs at least one step")

        seen_steps: set[str] = set()
        owners: dict[str, str] = {}
        for step in self.steps:
            if step.id in seen_steps:
                self._fail(f"duplicate step id '{step.id}'")
            seen_steps.add(step.id)

            for key in step.fields:
                if key in owners:
                    self._fail(
                        f"field '{key}' belongs to both '{owners[key]}' and '{step.id}'"
                    )
                owners[key] = step.id

            for rule in step.rules:
                if rule.field not in step.fields:
                    self._fail(f"step '{step.id}' has a rule for foreign field '{rule.field}'")

            if step.skippable and (not step.skip_field or step.skip_field not in step.fields):
                self._fail(f"skippable step '{step.id}' must own its skip field")

        for key in self.defaults:
            if key not in owners:
                self._fail(f"default for unknown field '{key}'")

        if self.selection_field and self.selection_field not in owners:
            self._fail(f"selection field '{self.selection_field}' is not owned by any step")

        if self.recommender is not None:
            unknown = set(self.recommender.relevant_keys) - set(owners)
            if unknown:
                self._fail(f"recommender reads unknown fields {sorted(unknown)}")

        kinds: set[str] = set()
        for binding in self.lookups:
            if binding.kind in kinds:
                self._fail(f"duplicate lookup kind '{binding.kind}'")
            kinds.add(binding.kind)
            if binding.step_id not in seen_steps:
                self._fail(f"lookup '{binding.kind}' targets unknown step '{binding.step_id}'")
            if binding.key_field is not None and binding.key_field not in owners:
                self._fail(f"lookup '{binding.kind}' key field '{binding.key_field}' is unknown")
            for target in binding.prefill.values():
                if target not in owners:
                    self._fail(f"lookup '{binding.kind}' prefills unknown field '{target}'")


def confirm_skip(skip_field: str, interstitial_id: str) -> Guard:
    """Guard asking for confirmation before leaving a step in skip mode."""

    def guard(state: FlowState) -> GuardDecision:
        if state.values.get(skip_field):
            return GuardDecision.interstitial(interstitial_id)
        return GuardDecision.proceed()

    return guard


class FlowRegistry:
    """Holds flow definitions by id."""

    def __init__(self, definitions: list[FlowDefinition] | None = None) -> None:
        self._flows: dict[str, FlowDefinition] = {}
        for definition in definitions or []:
            self.register(definition)

    def register(self, definition: FlowDefinition) -> None:
        """Register a flow, replacing any earlier definition with the same id."""
        if definition.flow_id in self._flows:
            log.info("flow_replaced", flow_id=definition.flow_id)
        self._flows[definition.flow_id] = definition
        log.debug("flow_registered", flow_id=definition.flow_id, steps=len(definition.steps))

    def get(self, flow_id: str) -> FlowDefinition:
        try:
            return self._flows[flow_id]
        except KeyError:
            raise FlowNotFoundError(flow_id) from None

    def list(self) -> list[str]:
        return list(self._flows)

    def __contains__(self, flow_id: object) -> bool:
        return flow_id in self._flows

    def __iter__(self) -> Iterator[FlowDefinition]:
        return iter(self._flows.values())

    def __len__(self) -> int:
        return len(self._flows)
