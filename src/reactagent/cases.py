"""Runs a fixed set of queries end to end with the debug transcript enabled."""

from __future__ import annotations

import asyncio
import dataclasses
import sys

from reactagent.agent import ReActAgent
from reactagent.config import build_agent_config, load_settings
from reactagent.factory import build_agent, build_model
from reactagent.util.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CASES = [
    {
        "id": "case-react-overview",
        "query": "Briefly describe the key stages of a ReAct agent and cite 1-2 sources.",
    },
    {
        "id": "case-energy-news",
        "query": "List two recent developments in renewable energy or energy storage, with sources.",
    },
]

MIN_CASE_STEPS = 8


async def run_cases(agent: ReActAgent, cases: list[dict[str, str]]) -> int:
    failures = 0
    for case in cases:
        print(f"\n=== {case['id']} ===")
        print(f"Query: {case['query']}")
        try:
            result = await agent.run(case["query"], debug=True)
        except Exception as exc:  # noqa: BLE001
            logger.error("Case %s failed: %s", case["id"], exc)
            print(f"Default case {case['id']} failed: {exc}", file=sys.stderr)
            failures += 1
            continue
        if result.transcript:
            print("Steps:\n" + "\n\n".join(result.transcript))
        print("\nAnswer:\n" + (result.answer or "(empty)"))
    return failures


async def _main() -> int:
    config = build_agent_config(load_settings())
    config = dataclasses.replace(config, max_steps=max(config.max_steps, MIN_CASE_STEPS))
    model = build_model(config)
    try:
        failures = await run_cases(build_agent(config, model=model), DEFAULT_CASES)
    finally:
        await model.aclose()
    return 1 if failures else 0


def run_default_cases() -> int:
    return asyncio.run(_main())


if __name__ == "__main__":
    sys.exit(run_default_cases())
