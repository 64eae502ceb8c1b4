#!/usr/bin/env python3
"""
Neural-Symbolic Reasoning Agent

Answers belief queries against an AtomSpace and explains itself:
    1. Retrieves the atoms most relevant to the query
    2. Chains weighted rules forward from them
    3. Reports the chain of rule applications that produced the answer

The agent returns THREE outcomes:
    - TRUE: the final conclusion is strong and confident
    - FALSE: the final conclusion is confidently weak
    - UNKNOWN: no rule fired, or confidence is too low to commit
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List

import torch

from tensor_logic_engine import InferenceEngine
from tensor_logic_engine.bridge import (
    add_rule_by_names,
    cognitive_update,
    engine_create,
    engine_destroy,
    goal_gradient,
    sync_truth_value,
)
from tensor_logic_engine.utils.metrics import chain_confidences, compute_stats, format_stats


class Answer(Enum):
    TRUE = "TRUE"
    FALSE = "FALSE"
    UNKNOWN = "UNKNOWN"


@dataclass
class ReasoningStep:
    """A single rule application in the reasoning chain."""
    rule: str
    conclusion: str
    strength: float
    confidence: float


@dataclass
class ReasoningResult:
    """Complete result of a reasoning query."""
    query: str
    answer: Answer
    confidence: float
    chain: List[ReasoningStep]
    termination: str
    explanation: str


class ReasoningAgent:
    """Wraps an engine with answer thresholds and chain explanations."""

    def __init__(self, engine: InferenceEngine, confidence_threshold: float = 0.3, max_steps: int = 5):
        self.engine = engine
        self.confidence_threshold = confidence_threshold
        self.max_steps = max_steps

    def query(self, name: str) -> ReasoningResult:
        atom = self.engine.atomspace.find_by_name(name)
        if atom is None:
            return ReasoningResult(name, Answer.UNKNOWN, 0.0, [], "none", f"No atom named '{name}'")

        chain = self.engine.infer(atom, self.max_steps)
        termination = self.engine.termination.value if self.engine.termination else "none"

        steps = [
            ReasoningStep(
                rule=node.rule.name,
                conclusion=node.conclusion.name,
                strength=node.conclusion.tv.strength,
                confidence=node.confidence,
            )
            for node in chain or []
        ]

        if not steps:
            return ReasoningResult(name, Answer.UNKNOWN, 0.0, [], termination, "No rule matched the retrieved atoms")

        final = steps[-1]
        if final.confidence < self.confidence_threshold:
            answer = Answer.UNKNOWN
        elif final.strength >= 0.5:
            answer = Answer.TRUE
        else:
            answer = Answer.FALSE

        explanation = " -> ".join(f"{s.rule}[{s.conclusion} s={s.strength:.3f}]" for s in steps)
        return ReasoningResult(name, answer, final.confidence, steps, termination, explanation)


def build_engine() -> InferenceEngine:
    engine = engine_create(128)

    facts = [
        ("tweety_is_bird", 0.95, 0.9),
        ("birds_fly", 0.8, 0.7),
        ("tweety_flies", 0.5, 0.1),
        ("flyers_have_wings", 0.9, 0.8),
        ("tweety_has_wings", 0.5, 0.1),
        ("rock_is_mineral", 0.9, 0.9),
    ]
    for name, strength, confidence in facts:
        sync_truth_value(engine, 0, name, strength, confidence)

    add_rule_by_names(engine, "bird_flies", ["tweety_is_bird", "birds_fly"], "tweety_flies")
    add_rule_by_names(engine, "flyer_wings", ["tweety_flies", "flyers_have_wings"], "tweety_has_wings")
    return engine


def main():
    logging.basicConfig(level=logging.WARNING)
    torch.manual_seed(0)

    print("=" * 70)
    print(" NEURAL-SYMBOLIC REASONING AGENT")
    print("=" * 70)
    print()

    engine = build_engine()
    print(format_stats(compute_stats(engine)))
    print()

    agent = ReasoningAgent(engine)
    queries = ["tweety_is_bird", "tweety_flies", "rock_is_mineral", "unicorn_is_real"]

    for name in queries:
        result = agent.query(name)
        print(f"Q: {result.query}")
        print(f"A: [{result.answer.value}] confidence={result.confidence:.3f} ({result.termination})")
        print(f"   {result.explanation}")
        print()

    chain = engine.infer(engine.atomspace.find_by_name("tweety_is_bird"), 5)
    print(f"Chain confidences: {[round(c, 3) for c in chain_confidences(chain)]}")

    state = torch.rand(engine.atomspace.embed_dim)
    updated = cognitive_update(engine, state)
    print(f"Cognitive update moved state by {torch.norm(updated - state).item():.4f}")

    goal = engine.atomspace.find_by_name("tweety_has_wings").embedding
    print(f"Goal gradient norm: {torch.norm(goal_gradient(engine, goal)).item():.4f}")

    engine_destroy(engine)


if __name__ == "__main__":
    main()
