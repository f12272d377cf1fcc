"""Generation session: produce, validate and approve one batch of candidates."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, Any, List, Optional

from pydantic import BaseModel, Field

from ..agents.base import GenerationError
from ..config import settings
from ..models.puzzles import PuzzleCandidate
from ..models.validation import BannedSet
from ..rules.normalize import normalize_link, normalize_word
from ..rules.validator import CandidateValidator, escalate, parse_candidate
from ..scheduling.recency import RecencyTracker

logger = logging.getLogger(__name__)


class ApprovalDecision(str, Enum):
    """Editorial decision on an accepted candidate."""
    APPROVE = "approve"
    SKIP = "skip"
    QUIT = "quit"


class SlotOutcome(BaseModel):
    """Result of filling one difficulty slot."""

    difficulty: str
    success: bool
    candidate: Optional[PuzzleCandidate] = None
    attempts: int = 0
    errors: List[str] = Field(default_factory=list, description="Reasons from the last rejected attempt")
    warnings: List[str] = Field(default_factory=list)
    decision: Optional[ApprovalDecision] = None
    puzzle_id: Optional[int] = None


def auto_approve(candidate: PuzzleCandidate) -> ApprovalDecision:
    return ApprovalDecision.APPROVE


class GenerationPipeline:
    """Runs the retry-with-escalation loop for each slot of a difficulty plan."""

    def __init__(self, generator, pool_store, validator: Optional[CandidateValidator] = None,
                 tracker: Optional[RecencyTracker] = None, retry_attempts: Optional[int] = None,
                 hard_block_endpoints: Optional[bool] = None, retry_delay_seconds: Optional[float] = None):
        """Initialize the generation pipeline."""
        self.generator = generator
        self.pool_store = pool_store
        self.hard_block_endpoints = (
            settings.hard_block_endpoints if hard_block_endpoints is None else hard_block_endpoints
        )
        self.validator = validator or CandidateValidator(hard_block_endpoints=self.hard_block_endpoints)
        self.tracker = tracker or RecencyTracker()
        self.retry_attempts = settings.retry_attempts if retry_attempts is None else retry_attempts
        self.retry_delay_seconds = (
            settings.retry_delay_seconds if retry_delay_seconds is None else retry_delay_seconds
        )

        # Exclusions accumulated during one session
        self.batch_exclusions = BannedSet()
        self.hard_block = BannedSet()

        # Pipeline statistics
        self.stats = {
            "total_slots": 0,
            "successful_slots": 0,
            "failed_slots": 0,
            "total_attempts": 0,
            "approved": 0,
            "rejected": 0,
            "last_session_time": None
        }

    async def run_session(
        self,
        difficulty_plan: Optional[List[str]] = None,
        approve: Optional[Callable[[PuzzleCandidate], ApprovalDecision]] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Fill every slot of ``difficulty_plan``; failed slots are skipped, not fatal."""
        start_time = time.time()
        plan = difficulty_plan or settings.difficulty_plan
        approve = approve or auto_approve

        history = self.tracker.from_pool_history(self.pool_store.list_puzzles(), now=now)
        logger.info(
            f"Starting generation session: {len(plan)} slots, {len(history.links)} banned links, "
            f"{len(history.endpoints)} banned endpoints"
        )

        self.batch_exclusions = BannedSet()
        self.hard_block = BannedSet()
        outcomes: List[SlotOutcome] = []

        for difficulty in plan:
            outcome = await self._generate_slot(difficulty, history)
            outcomes.append(outcome)
            self.stats["total_slots"] += 1

            if not outcome.success:
                self.stats["failed_slots"] += 1
                logger.warning(f"Failed to generate valid {difficulty} candidate: {'; '.join(outcome.errors)}")
                continue

            self.stats["successful_slots"] += 1
            outcome.decision = ApprovalDecision(approve(outcome.candidate))

            if outcome.decision == ApprovalDecision.QUIT:
                logger.info("Session stopped by reviewer")
                break

            if outcome.decision == ApprovalDecision.APPROVE:
                entry = self.pool_store.add_puzzle(outcome.candidate)
                outcome.puzzle_id = entry.id
                self._record_approval(outcome.candidate)
                self.stats["approved"] += 1
            else:
                self.stats["rejected"] += 1
                logger.info(f"Skipped {difficulty} candidate")

        processing_time = time.time() - start_time
        self.stats["last_session_time"] = datetime.now(timezone.utc).isoformat()
        approved = sum(1 for outcome in outcomes if outcome.decision == ApprovalDecision.APPROVE)
        rejected = sum(1 for outcome in outcomes if outcome.decision == ApprovalDecision.SKIP)

        logger.info(f"Session done in {processing_time:.2f} seconds. Approved: {approved}, Rejected: {rejected}")

        return {
            "approved": approved,
            "rejected": rejected,
            "failed_slots": [outcome.difficulty for outcome in outcomes if not outcome.success],
            "slots": outcomes,
            "processing_time_seconds": processing_time
        }

    async def _generate_slot(self, difficulty: str, history: BannedSet) -> SlotOutcome:
        """Retry one slot, tightening the hard-block set after every collision."""
        errors: List[str] = []

        for attempt in range(self.retry_attempts):
            self.stats["total_attempts"] += 1
            banned = history.union(self.batch_exclusions)

            try:
                raw = self.generator.produce_candidate(difficulty, banned, self.hard_block)
            except GenerationError as e:
                errors = [str(e)]
                logger.warning(f"Generation attempt {attempt + 1}/{self.retry_attempts} [{difficulty}] failed: {e}")
                await self._pause(attempt)
                continue

            parsed = parse_candidate(raw)
            if not parsed.ok:
                errors = [issue.message for issue in parsed.errors]
                logger.info(f"Rejected candidate (auto) [{difficulty}] -> {'; '.join(errors)}")
                await self._pause(attempt)
                continue

            issues = self.validator.collect_issues(parsed.candidate, difficulty, banned.union(self.hard_block))
            blocking = [issue for issue in issues if issue.is_error]
            if not blocking:
                warnings = [issue.message for issue in issues if not issue.is_error]
                for warning in warnings:
                    logger.info(f"Warning on {difficulty} candidate: {warning}")
                return SlotOutcome(
                    difficulty=difficulty,
                    success=True,
                    candidate=parsed.candidate,
                    attempts=attempt + 1,
                    warnings=warnings,
                )

            errors = [issue.message for issue in blocking]
            logger.info(f"Rejected candidate (auto) [{difficulty}] -> {'; '.join(errors)}")
            self.hard_block = escalate(self.hard_block, blocking, self.hard_block_endpoints)
            await self._pause(attempt)

        return SlotOutcome(difficulty=difficulty, success=False, attempts=self.retry_attempts, errors=errors)

    async def _pause(self, attempt: int) -> None:
        if self.retry_delay_seconds and attempt < self.retry_attempts - 1:
            await asyncio.sleep(self.retry_delay_seconds)

    def _record_approval(self, candidate: PuzzleCandidate) -> None:
        """Exclude an approved candidate's links and endpoints for the rest of the session."""
        self.batch_exclusions = self.batch_exclusions.add_links(
            normalize_link(link) for link in candidate.links
        ).add_endpoints(normalize_word(word) for word in candidate.endpoints)

    def get_status(self) -> Dict[str, Any]:
        """Get current pipeline configuration and statistics."""
        return {
            "generator": {"model": getattr(self.generator, "model_name", None)},
            "statistics": self.stats,
            "configuration": {
                "retry_attempts": self.retry_attempts,
                "hard_block_endpoints": self.hard_block_endpoints,
                "max_reused_words": self.validator.max_reused_words,
                "variety_days": settings.variety_days
            }
        }
