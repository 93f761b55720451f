"""Scoring of AI agent traces: deterministic checks, LLM judge, failure clusters and scorecards."""

__version__ = "0.1.5"

__all__ = ["clusters", "config", "deterministic", "judge", "models", "scorer"]