"""Candidate generator agent: asks an LLM for one Word Chains puzzle."""

import logging
import uuid
from typing import Dict, Any, Optional

from .base import BaseAgent, GenerationError
from ..config import settings
from ..models.validation import BannedSet

logger = logging.getLogger(__name__)


class CandidateGeneratorAgent(BaseAgent):
    """Produces raw puzzle candidates. Output is untrusted and validated elsewhere."""

    def __init__(self, model_name: Optional[str] = None, variety_days: Optional[int] = None,
                 hard_block_endpoints: Optional[bool] = None):
        """Initialize the generator agent."""
        super().__init__(model_name=model_name)
        self.variety_days = settings.variety_days if variety_days is None else variety_days
        self.hard_block_endpoints = (
            settings.hard_block_endpoints if hard_block_endpoints is None else hard_block_endpoints
        )

    def produce_candidate(self, difficulty: str, banned: BannedSet,
                          hard_block: Optional[BannedSet] = None) -> Dict[str, Any]:
        """Request one candidate in the flat ``word_1`` .. ``qa_link_7`` layout.

        Raises GenerationError when the call fails or the reply is not JSON.
        """
        prompt = self.build_prompt(difficulty, banned, hard_block or BannedSet(), uuid.uuid4().hex[:12])
        response = self.call_llm(prompt)
        candidate = self.parse_json_response(response)
        logger.debug(f"Generator returned keys: {sorted(candidate)}")
        return candidate

    def build_prompt(self, difficulty: str, banned: BannedSet, hard_block: BannedSet, request_id: str) -> str:
        """Render the generation prompt for one attempt."""
        hard_words = sorted(hard_block.endpoints) if self.hard_block_endpoints else []

        return f"""REQUEST_ID: {request_id}

Create ONE Word Chains puzzle. Every rule below is mandatory; the output is
ingested automatically and any deviation is rejected.

ANTI-DUPLICATION
Do not reuse any qa_link from the last {self.variety_days} days.
Avoid reusing endpoints (word_1 or word_8) from the last {self.variety_days} days.
You may reuse one or two words if they form new links.

BANNED QA_LINKS (hard block, rejected on sight):
{self.format_word_list(sorted(hard_block.links))}

BANNED WORDS (hard block):
{self.format_word_list(hard_words)}

BANNED QA_LINKS:
{self.format_word_list(sorted(banned.links))}

BANNED ENDPOINTS:
{self.format_word_list(sorted(banned.endpoints))}

RECENT WORDS TO AVOID (soft):
{self.format_word_list(sorted(banned.words))}

STRUCTURE
An 8-word chain word_1 -> word_2 -> ... -> word_8 with exactly one valid order.
Each adjacent pair forms a common compound (paper + clip -> paperclip) or a
recognised two-word phrase (court + case -> court case). Links must not rely on
implied letters, prefixes or suffixes.

WORDS
All words are single words: no spaces, no hyphens. Proper nouns are allowed.
No duplicates anywhere, case-insensitive. Avoid plural/singular pairs.
Words are Title Case unless a proper noun requires otherwise.

WORD BANK
Exactly 10 dummy words (dummy_1 .. dummy_10), tempting but unable to form an
alternate chain. A dummy may never equal a chain word, another dummy, or the
fused form of any adjacent chain pair (Dead + Line -> "deadline" is banned).

DIFFICULTY
EASY: obvious compounds. MEDIUM: mild abstraction. HARD: layered but fair.
The difficulty for this puzzle MUST be: {difficulty}

QA LINKS
qa_link_1 .. qa_link_7, lowercase, no hyphens, each exactly the compound or the
two-word phrase of its pair (qa_link_1 = word_1 + word_2).

OUTPUT
A single JSON object with keys difficulty, word_1..word_8, dummy_1..dummy_10,
qa_link_1..qa_link_7. No other keys, no explanations."""


__all__ = ["CandidateGeneratorAgent", "GenerationError"]
