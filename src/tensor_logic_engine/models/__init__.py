"""Inference engine for Tensor Logic."""

from .engine import InferenceEngine, InferenceNode, InferenceState

__all__ = ["InferenceEngine", "InferenceNode", "InferenceState"]
