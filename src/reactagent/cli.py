"""Command-line interface."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from reactagent.config import build_agent_config, load_settings
from reactagent.console import ConsoleStreamObserver
from reactagent.evaluator import EvaluationRequest
from reactagent.factory import build_agent, build_evaluator, build_model


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="reactagent", description="Run the ReAct research agent over a query."
    )
    parser.add_argument("query", nargs="?", help="User question or task for the agent")
    parser.add_argument("--debug", action="store_true", help="Print the step transcript")
    parser.add_argument("--eval", action="store_true", dest="evaluate", help="Grade the answer afterwards")
    parser.add_argument("--no-stream", action="store_true", dest="no_stream")
    parser.add_argument("--env-file", dest="env_file")
    parser.add_argument("--model", dest="model")
    parser.add_argument("--max-steps", type=int, dest="max_steps")
    return parser.parse_args(argv)


def overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.model:
        overrides["model"] = args.model
    if args.max_steps:
        overrides["max_steps"] = args.max_steps
    if args.no_stream:
        overrides["stream"] = False
    return overrides


async def run_query(args: argparse.Namespace, query: str) -> int:
    config = build_agent_config(load_settings(args.env_file, **overrides_from_args(args)))
    model = build_model(config)
    try:
        agent = build_agent(config, model=model)
        result = await agent.run(query, debug=args.debug, stream_observer=ConsoleStreamObserver())
        if args.debug and result.transcript:
            print("\n--- Transcript ---\n" + "\n\n".join(result.transcript))
        print("\nAnswer:\n" + result.answer)
        if args.evaluate:
            evaluator = build_evaluator(config, model=model)
            evaluation = await evaluator.evaluate(EvaluationRequest(query=query, answer=result.answer))
            print(f"\nEvaluation: score={evaluation.score} verdict={evaluation.verdict}")
            print(f"Reasoning: {evaluation.reasoning}")
            if evaluation.improvements:
                print(f"Improvements: {evaluation.improvements}")
    finally:
        await model.aclose()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    query = (args.query or input("Enter a query for the agent: ")).strip()
    if not query:
        print("A query is required.", file=sys.stderr)
        return 2
    try:
        return asyncio.run(run_query(args, query))
    except Exception as exc:  # noqa: BLE001
        print(f"Agent run failed: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
