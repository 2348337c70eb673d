"""
Prompt evaluation API - compare two system prompts on one message and rate the result.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status

from ..core import CompletionService, EvalStore, run_comparison
from ..models import EvalCompareRequest, EvalRateRequest, User
from ..utils.auth import get_verified_user
from .deps import get_completion_service, get_eval_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/eval", tags=["evaluation"])


@router.post("/compare")
async def compare_prompts(
    body: EvalCompareRequest,
    user: User = Depends(get_verified_user),
    completion: CompletionService = Depends(get_completion_service),
    store: EvalStore = Depends(get_eval_store),
):
    """Run the message against prompt A and prompt B concurrently."""
    if not body.user_message or not body.prompt_a or not body.prompt_b:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required fields"
        )

    result = await run_comparison(completion, user.id, body.user_message, body.prompt_a, body.prompt_b)
    store.add(result)
    return result.to_wire()


@router.post("/rate")
async def rate_result(
    body: EvalRateRequest,
    user: User = Depends(get_verified_user),
    store: EvalStore = Depends(get_eval_store),
):
    """Record which response the caller preferred."""
    if not body.result_id or body.rating not in ("A", "B"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid rating data")

    result = store.get(body.result_id)
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Result not found")
    if result.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to rate this result"
        )

    result.rating = body.rating
    logger.info(
        "Rating logged",
        extra={"extra_fields": {
            "result_id": result.id,
            "user_id": user.id,
            "rating": body.rating,
            "total_results": len(store),
        }}
    )
    return {"success": True, "rating": body.rating}


@router.get("/results")
async def list_results(
    user: User = Depends(get_verified_user),
    store: EvalStore = Depends(get_eval_store),
):
    """The caller's comparisons, newest first."""
    results = store.for_user(user.id)
    logger.info(f"Fetching results for user {user.id}: {len(results)} results found")
    return {"results": [result.to_wire() for result in results]}
