"""Candidate generation pipeline."""

from .generation import GenerationPipeline, ApprovalDecision, SlotOutcome, auto_approve

__all__ = ["GenerationPipeline", "ApprovalDecision", "SlotOutcome", "auto_approve"]
