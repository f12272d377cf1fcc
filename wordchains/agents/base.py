"""Base agent class with common LLM functionality."""

import json
import logging
import re
from abc import ABC
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List

import anthropic
import openai

from ..config import settings

logger = logging.getLogger(__name__)


class GenerationError(RuntimeError):
    """The candidate producer failed to return usable output."""


class BaseAgent(ABC):
    """Base class for LLM-backed agents."""

    system_message = "You are a puzzle generator that follows instructions exactly."

    def __init__(self, model_name: Optional[str] = None):
        """Initialize the base agent. LLM clients are created on first use."""
        self.model_name = model_name or settings.generation_model
        self._openai_client = None
        self._anthropic_client = None

    @property
    def openai_client(self) -> openai.OpenAI:
        if self._openai_client is None:
            self._openai_client = openai.OpenAI(api_key=settings.openai_api_key)
        return self._openai_client

    @property
    def anthropic_client(self) -> Optional[anthropic.Anthropic]:
        if self._anthropic_client is None and settings.anthropic_api_key:
            self._anthropic_client = anthropic.Anthropic(api_key=settings.anthropic_api_key)
        return self._anthropic_client

    def call_llm(self, prompt: str, model: Optional[str] = None, max_tokens: Optional[int] = None,
                 temperature: Optional[float] = None) -> str:
        """Call the appropriate LLM based on model name."""
        model = model or self.model_name
        max_tokens = max_tokens or settings.generation_max_tokens
        temperature = settings.generation_temperature if temperature is None else temperature

        try:
            if model.startswith("claude-"):
                return self._call_anthropic(prompt, model, max_tokens, temperature)
            # Default to OpenAI
            return self._call_openai(prompt, model, max_tokens, temperature)

        except (openai.OpenAIError, anthropic.AnthropicError) as e:
            logger.error(f"Error calling LLM {model}: {e}")
            raise GenerationError(f"LLM call failed: {e}") from e

    def _call_openai(self, prompt: str, model: str, max_tokens: int, temperature: float) -> str:
        """Call OpenAI API in JSON mode."""
        response = self.openai_client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": self.system_message},
                {"role": "user", "content": prompt},
            ],
            max_tokens=max_tokens,
            temperature=temperature,
            top_p=1,
            frequency_penalty=settings.frequency_penalty,
            presence_penalty=settings.presence_penalty,
            response_format={"type": "json_object"},
        )
        content = response.choices[0].message.content
        if not content:
            raise GenerationError("No content returned from OpenAI.")
        return content

    def _call_anthropic(self, prompt: str, model: str, max_tokens: int, temperature: float) -> str:
        """Call Anthropic API."""
        if not self.anthropic_client:
            raise GenerationError("Anthropic client not initialized")

        response = self.anthropic_client.messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=self.system_message,
            messages=[{"role": "user", "content": prompt}]
        )
        return response.content[0].text

    def get_agent_metadata(self) -> Dict[str, Any]:
        """Get metadata about this agent."""
        return {
            "agent_name": self.__class__.__name__,
            "model_name": self.model_name,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    def parse_json_response(self, response: str) -> Dict[str, Any]:
        """Parse JSON response from LLM, handling common formatting issues."""
        response = response.strip()

        # Remove markdown code blocks if present
        if response.startswith("```"):
            lines = response.split("\n")
            end_idx = next(i for i in range(len(lines) - 1, -1, -1) if lines[i].startswith("```"))
            response = "\n".join(lines[1:end_idx] if end_idx > 0 else lines[1:])

        json_match = re.search(r"\{.*\}", response, re.DOTALL)
        if json_match:
            response = json_match.group(0)

        try:
            parsed = json.loads(response)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON response: {e}")
            logger.debug(f"Response was: {response}")
            raise GenerationError(f"Invalid JSON response: {e}") from e

        if not isinstance(parsed, dict):
            raise GenerationError("LLM response is not a JSON object")
        return parsed

    def format_word_list(self, words: List[str]) -> str:
        """Format a list of words for display in prompts."""
        return ", ".join(words) if words else "none"
