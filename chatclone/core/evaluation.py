"""
Prompt evaluation - run one user message against two system prompts.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from ..models.evaluation import EvalResult
from ..storage.chat_store import generate_id
from .completion import CompletionService

logger = logging.getLogger(__name__)

EVAL_MAX_TOKENS = 200


class EvalStore:
    """
    In-process store for comparison results, created once per application.

    Results are kept for the life of the process and never evicted, so the
    store grows with every comparison run.
    """

    def __init__(self):
        self._results: Dict[str, EvalResult] = {}

    def add(self, result: EvalResult) -> None:
        self._results[result.id] = result

    def get(self, result_id: str) -> Optional[EvalResult]:
        return self._results.get(result_id)

    def for_user(self, user_id: str) -> List[EvalResult]:
        results = [r for r in self._results.values() if r.user_id == user_id]
        return sorted(results, key=lambda r: r.timestamp, reverse=True)

    def __len__(self) -> int:
        return len(self._results)


async def run_comparison(
    completion: CompletionService,
    user_id: str,
    user_message: str,
    prompt_a: str,
    prompt_b: str,
) -> EvalResult:
    """Query both prompts concurrently and collect responses, latency and tokens."""
    result_a, result_b = await asyncio.gather(
        completion.complete_text(user_message, system_prompt=prompt_a, max_tokens=EVAL_MAX_TOKENS),
        completion.complete_text(user_message, system_prompt=prompt_b, max_tokens=EVAL_MAX_TOKENS),
    )

    result = EvalResult(
        id=generate_id("eval"),
        user_id=user_id,
        user_message=user_message,
        prompt_a=prompt_a,
        prompt_b=prompt_b,
        response_a=result_a.text,
        response_b=result_b.text,
        latency_a=result_a.latency_ms,
        latency_b=result_b.latency_ms,
        tokens_a=result_a.tokens,
        tokens_b=result_b.tokens,
    )

    logger.info(
        "Comparison completed",
        extra={"extra_fields": {
            "result_id": result.id,
            "user_id": user_id,
            "latency_a": result.latency_a,
            "latency_b": result.latency_b,
            "tokens_a": result.tokens_a,
            "tokens_b": result.tokens_b,
        }}
    )
    return result
