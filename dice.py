"""
Grimoire Ledger v1.0 — Dice
Full audit trail on every roll, so a weather result can be explained later.
"""

import random


def roll_percentile(label: str = "", rng=None) -> dict:
    """
    Uniform draw in [0, 100). Pass `rng` (anything with .random()) for a
    seeded or scripted draw.
    """
    source = rng if rng is not None else random
    roll = source.random() * 100
    return {
        "expression": "d100",
        "roll": roll,
        "label": label,
    }
