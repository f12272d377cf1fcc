#!/usr/bin/env python3
"""Run one generation session with interactive approval of each candidate."""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import logging

import structlog

from wordchains.config import settings
from wordchains.agents import CandidateGeneratorAgent
from wordchains.database import PuzzlePoolStore, StoreError
from wordchains.models import PuzzleCandidate
from wordchains.pipeline import GenerationPipeline, ApprovalDecision

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = structlog.get_logger(__name__)


def prompt_reviewer(candidate: PuzzleCandidate) -> ApprovalDecision:
    """Show a candidate and ask the reviewer what to do with it."""
    print("\nCandidate:")
    print(f"Difficulty: {candidate.difficulty}")
    print(f"Chain: {' -> '.join(candidate.chain)}")
    print(f"Dummies: {', '.join(candidate.dummy)}")
    print(f"QA: {' | '.join(candidate.links)}")

    answer = input("Approve? (y/n/q): ").strip().lower()
    if answer.startswith("q"):
        return ApprovalDecision.QUIT
    if answer.startswith("y"):
        return ApprovalDecision.APPROVE
    return ApprovalDecision.SKIP


def main():
    """Generate, review and store one batch of candidates."""
    if not settings.openai_api_key and not settings.generation_model.startswith("claude-"):
        logger.error("Missing OPENAI_API_KEY.")
        return 1

    pool_store = PuzzlePoolStore()
    if not pool_store.health_check():
        logger.error("Redis is not reachable", redis_url=settings.redis_url)
        return 1

    pipeline = GenerationPipeline(generator=CandidateGeneratorAgent(), pool_store=pool_store)

    try:
        result = asyncio.run(pipeline.run_session(approve=prompt_reviewer))
    except StoreError as e:
        logger.error("Store unavailable", error=str(e))
        return 1
    finally:
        pool_store.close()

    for difficulty in result["failed_slots"]:
        logger.warning("Slot exhausted its retry budget", difficulty=difficulty)
    logger.info("Done", approved=result["approved"], rejected=result["rejected"])
    return 0


if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
