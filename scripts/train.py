#!/usr/bin/env python3
"""
Train the Tensor Logic Engine on a Small Syllogism Knowledge Base

This script:
    1. Builds an AtomSpace of facts and weighted rules
    2. Trains rule weights and attention projections on target beliefs
    3. Reports engine statistics
    4. Plots the training curve
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import argparse
import json
import logging

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import torch

from tensor_logic_engine import TruthValue, settings
from tensor_logic_engine.bridge import add_rule_by_names, engine_create, sync_atomspace, sync_back
from tensor_logic_engine.training import Trainer
from tensor_logic_engine.utils.metrics import compute_stats, format_stats

# (name, strength, confidence)
FACTS = [
    ("socrates_is_man", 0.95, 0.9),
    ("plato_is_man", 0.95, 0.9),
    ("men_are_mortal", 0.9, 0.8),
    ("socrates_is_mortal", 0.5, 0.1),
    ("plato_is_mortal", 0.5, 0.1),
    ("mortals_die", 0.85, 0.7),
    ("socrates_dies", 0.5, 0.1),
]

# (rule name, premises, conclusion)
RULES = [
    ("socrates_mortal", ["socrates_is_man", "men_are_mortal"], "socrates_is_mortal"),
    ("plato_mortal", ["plato_is_man", "men_are_mortal"], "plato_is_mortal"),
    ("socrates_dies", ["socrates_is_mortal", "mortals_die"], "socrates_dies"),
]

# (query atom, target strength, target confidence)
TARGETS = [
    ("socrates_is_man", 0.9, 0.8),
    ("plato_is_man", 0.9, 0.8),
    ("socrates_is_mortal", 0.8, 0.7),
]


def parse_args():
    parser = argparse.ArgumentParser(description="Train the Tensor Logic Engine")
    parser.add_argument("--capacity", type=int, default=256)
    parser.add_argument("--epochs", type=int, default=50)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--output_dir", type=str, default="results")
    parser.add_argument("--debug", action="store_true")
    return parser.parse_args()


def build_engine(capacity: int):
    engine = engine_create(capacity)

    sync_atomspace(engine, [(0, name, strength, confidence) for name, strength, confidence in FACTS])

    for name, premises, conclusion in RULES:
        add_rule_by_names(engine, name, premises, conclusion)

    return engine


def build_examples(engine):
    examples = []
    for name, strength, confidence in TARGETS:
        atom = engine.atomspace.find_by_name(name)
        target = TruthValue.create(strength, confidence, engine.atomspace.embed_dim)
        examples.append((atom.embedding.clone(), target))
    return examples


def plot_training_history(history, output_dir):
    """Plot training curves."""
    fig, axes = plt.subplots(1, 2, figsize=(12, 5))

    ax = axes[0]
    ax.plot(history["train_loss"])
    ax.set_xlabel("Epoch")
    ax.set_ylabel("Loss")
    ax.set_title("Training Loss")
    ax.grid(True, alpha=0.3)

    ax = axes[1]
    if history["chain_length"]:
        ax.plot(history["chain_length"])
    ax.set_xlabel("Epoch")
    ax.set_ylabel("Steps")
    ax.set_title("Mean Inference Chain Length")
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(f"{output_dir}/training_curves.png", dpi=150)
    plt.close()


def main():
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug or settings.debug else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    torch.manual_seed(args.seed)
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print(" Tensor Logic Engine Training")
    print("=" * 60)
    print(f"Output: {output_dir}")
    print()

    print("Building knowledge base...")
    engine = build_engine(args.capacity)
    print(format_stats(compute_stats(engine)))
    print()

    trainer = Trainer(engine, build_examples(engine))

    print("Training...")
    print("-" * 60)
    history = trainer.train(
        num_epochs=args.epochs,
        checkpoint_dir=str(output_dir),
        verbose=True,
    )
    print("-" * 60)
    print()

    print("Plotting training curves...")
    plot_training_history(history, output_dir)

    losses = np.array(history["train_loss"])
    stats = compute_stats(engine)
    print(format_stats(stats))
    print(f"Loss: first={losses[0]:.6f} last={losses[-1]:.6f} min={losses.min():.6f}")
    print()

    print("Rules:")
    for rule in engine.rules:
        weights = np.round(rule.premise_weights.numpy(), 4).tolist()
        print(f"  {rule}  premise weights={weights}")

    beliefs = sync_back(engine, [name for name, _, _ in FACTS])
    print()
    print("Beliefs:")
    for name, (strength, confidence) in beliefs.items():
        print(f"  {name}: <{strength:.4f}, {confidence:.4f}>")

    results = {
        "config": vars(args),
        "stats": stats,
        "final_loss": float(losses[-1]),
        "beliefs": beliefs,
        "rules": {
            rule.name: {"weight": rule.weight, "premise_weights": rule.premise_weights.tolist()}
            for rule in engine.rules
        },
    }

    with open(output_dir / "results.json", "w") as f:
        json.dump(results, f, indent=2)

    print()
    print("=" * 60)
    print(" Training Complete")
    print("=" * 60)
    print(f"Results saved to: {output_dir}")
    print(f"  - training_curves.png")
    print(f"  - results.json")
    print(f"  - best.pt (lowest loss)")
    print(f"  - final.pt (final engine)")


if __name__ == "__main__":
    main()
