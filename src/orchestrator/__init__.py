"""Orchestrator - webhook service that drives deployment locks from PR comments."""

from .config import Settings

__all__ = [
    "Settings",
]
