"""LLM agents for the Word Chains editorial engine."""

from .base import BaseAgent, GenerationError
from .generator import CandidateGeneratorAgent

__all__ = ["BaseAgent", "GenerationError", "CandidateGeneratorAgent"]
