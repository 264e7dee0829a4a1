#!/usr/bin/env python3
"""Interactive wizard runner: walk through a flow in the terminal."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

# Ensure project root is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from wizengine import EngineConfig, FlowSession, InterstitialChoice, WizardEngine
from wizengine.logger import configure_logging

TRUE_WORDS = {"y", "yes", "true", "1"}


def pick_flow(engine: WizardEngine) -> str:
    """Let the user choose a flow from the registry."""
    flows = engine.list_flows()
    print("\nAvailable flows:")
    for i, flow_id in enumerate(flows, 1):
        definition = engine.get_flow(flow_id)
        print(f"  {i}. {flow_id}  ({definition.title}, {len(definition.steps)} steps)")

    while True:
        choice = input(f"\nSelect flow [1-{len(flows)}]: ").strip()
        if choice.isdigit() and 1 <= int(choice) <= len(flows):
            return flows[int(choice) - 1]
        print("Invalid choice, try again.")


def parse_value(raw: str, current: Any) -> Any:
    """Coerce terminal input to the type of the field's current value."""
    if isinstance(current, bool):
        return raw.lower() in TRUE_WORDS
    if isinstance(current, int):
        try:
            return int(raw)
        except ValueError:
            return raw
    if isinstance(current, list):
        try:
            return json.loads(raw)
        except ValueError:
            return raw
    return raw


def collect_step(session: FlowSession) -> None:
    """Ask for every field of the current step; Enter keeps the shown value."""
    step = session.sequencer.current_step
    errors = session.state.errors.get(step.id, {})
    print(f"\n── {step.title or step.id} ──")
    for key in sorted(step.fields):
        current = session.state.values.get(key)
        if key in errors:
            print(f"  !  {errors[key]}")
        raw = input(f"  {key} [{current!r}]: ").strip()
        if raw:
            session.change_field(key, parse_value(raw, current))


def answer_interstitial(session: FlowSession, message: str | None) -> None:
    print(f"\n  ?  {message or 'Please confirm'}")
    raw = input("  Continue anyway? [y/N]: ").strip().lower()
    choice = InterstitialChoice.CONTINUE if raw in TRUE_WORDS else InterstitialChoice.RETURN
    session.resolve_interstitial(choice)


async def run(flow_id: str) -> None:
    async with WizardEngine.from_config(EngineConfig()) as engine:
        session = engine.start_session(flow_id)
        print(f"\n▶ Running flow: {flow_id}  (session {session.session_id})")

        while True:
            collect_step(session)
            result = session.advance()
            if result.status == "interstitial":
                answer_interstitial(session, result.reason)
                continue
            if result.status == "blocked":
                print(f"\n  ✗ {result.reason}")
                continue
            if result.status == "stayed":
                print("\n  ✗ Please fix the highlighted fields.")
                continue
            if result.status == "ready":
                break

        view = session.view()
        print(f"\n  Recommended tier: {view.recommended_tier}")
        print(f"  Selected tier:    {view.selected_tier}")

        outcome = await engine.submit(session.session_id)
        print(f"\n{'='*60}")
        print(f"  Status: {outcome.status}")
        if outcome.error:
            print(f"  Error: {outcome.error}")
        if outcome.payload is not None:
            print(json.dumps(outcome.payload.model_dump(mode="json"), indent=4))
        print(f"{'='*60}")


def main() -> None:
    configure_logging(level="WARNING")
    engine = WizardEngine()
    flow_id = pick_flow(engine)
    asyncio.run(run(flow_id))


if __name__ == "__main__":
    main()
