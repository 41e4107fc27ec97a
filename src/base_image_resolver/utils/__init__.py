"""Utility functions for the base image resolver."""

from .digest import calculate_digest, chain_id, chain_ids, validate_digest

__all__ = ["calculate_digest", "chain_id", "chain_ids", "validate_digest"]
