"""Utility functions for Tensor Logic."""

from .metrics import compute_stats, format_stats, chain_confidences

__all__ = ["compute_stats", "format_stats", "chain_confidences"]
