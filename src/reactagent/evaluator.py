"""LLM-graded answer quality evaluation."""

from __future__ import annotations

import math
import re
from typing import Any

from pydantic import BaseModel

from reactagent.config import AgentConfig
from reactagent.models.base import BaseChatModel, CompletionRequest
from reactagent.util.logging import get_logger

logger = get_logger(__name__)

DEFAULT_RUBRIC = (
    "Score from 1 (very poor) to 5 (excellent) based on factual accuracy, completeness, "
    "and citation quality. Penalize missing sources when they are requested."
)

GRADER_SYSTEM_PROMPT = """You are an impartial grader. Carefully read the user query and the agent's answer, then respond ONLY with an XML snippet of the form:
<evaluation>
  <verdict>short verdict</verdict>
  <score>integer between 1 and 5</score>
  <reasoning>concise justification</reasoning>
  <improvements>optional suggestions</improvements>
</evaluation>
If you have no suggestions, include an empty <improvements /> tag. Do not include any characters before or after the XML."""

GRADER_MAX_TOKENS = 400
MIN_SCORE = 1
MAX_SCORE = 5

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


class EvaluationRequest(BaseModel):
    query: str
    answer: str
    rubric: str | None = None
    references: str | None = None


class EvaluationResult(BaseModel):
    verdict: str = "unknown"
    score: int = 0
    reasoning: str = ""
    improvements: str | None = None
    raw: str | None = None


def extract_tag(text: str, tag: str) -> str | None:
    """Return the trimmed body of ``<tag>...</tag>``.

    A self-closing ``<tag/>`` yields an empty string; a missing tag yields
    ``None``.
    """
    name = re.escape(tag)
    match = re.search(rf"<{name}(?:\s[^>]*)?>(.*?)</{name}\s*>", text, re.IGNORECASE | re.DOTALL)
    if match:
        return match.group(1).strip()
    if re.search(rf"<{name}(?:\s[^>]*)?/>", text, re.IGNORECASE):
        return ""
    return None


def normalize_score(raw: str | None) -> int:
    """Coerce score text into 1..5, or 0 when nothing numeric is present."""
    if raw is None:
        return 0
    try:
        value = float(raw)
    except ValueError:
        match = _NUMBER_RE.search(raw)
        if match is None:
            return 0
        value = float(match.group(0))
    if not math.isfinite(value):
        return 0
    return max(MIN_SCORE, min(MAX_SCORE, math.floor(value + 0.5)))


def parse_evaluation_xml(text: str) -> EvaluationResult:
    """Parse loosely tagged grader output; never raises on malformed input."""
    stripped = text.strip()
    verdict = extract_tag(stripped, "verdict")
    improvements = extract_tag(stripped, "improvements")
    return EvaluationResult(
        verdict=verdict if verdict is not None else "unknown",
        score=normalize_score(extract_tag(stripped, "score")),
        reasoning=extract_tag(stripped, "reasoning") or "",
        improvements=improvements or None,
        raw=stripped,
    )


def build_grading_messages(request: EvaluationRequest) -> list[dict[str, Any]]:
    sections = [
        f"# Evaluation rubric\n{request.rubric or DEFAULT_RUBRIC}",
        f"\n# User query\n{request.query}",
        f"\n# Agent answer\n{request.answer}",
    ]
    if request.references:
        sections.append(f"\n# Additional context\n{request.references}")
    return [
        {"role": "system", "content": GRADER_SYSTEM_PROMPT},
        {"role": "user", "content": [{"type": "text", "text": section} for section in sections]},
    ]


class AnswerQualityEvaluator:
    """Grades a finished answer with a single deterministic completion call."""

    def __init__(self, model: BaseChatModel, config: AgentConfig, model_override: str | None = None) -> None:
        self.model = model
        self.model_name = model_override or config.model

    async def evaluate(self, request: EvaluationRequest | dict[str, Any]) -> EvaluationResult:
        request = EvaluationRequest.model_validate(request)
        turn = await self.model.complete(
            CompletionRequest(
                model=self.model_name,
                messages=build_grading_messages(request),
                temperature=0,
                top_p=1,
                max_tokens=GRADER_MAX_TOKENS,
                stream=False,
            )
        )
        result = parse_evaluation_xml(turn.text)
        logger.info("Evaluation: verdict=%s score=%s", result.verdict, result.score)
        return result
