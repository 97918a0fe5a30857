"""
seqrules.datasets.clickstream — Web/app interaction log generators.

Datasets shaped like a raw analytics export: one row per user action with a
session key, an action label and a timestamp.
"""
from __future__ import annotations
import numpy as np
import pandas as pd
from typing import Optional


def generate_clickstream_data(seed: Optional[int] = None) -> pd.DataFrame:
    """
    Generate a small interaction log with known ordering patterns.

    Structure:
    - **Funnel**: ``search`` → ``view product`` → ``add to cart`` in most
      sessions, ``checkout`` after the cart in two of them.
    - **Dead end**: one session goes ``search`` → ``help page``.
    - Rows are deliberately *not* in time order within sessions, and some
      timestamps carry fractional seconds.

    Columns: ``Username``, ``Action``, ``DateTime`` (text, ``YYYY-MM-DD HH:MM:SS[.fff]``)

    Returns
    -------
    pd.DataFrame
        17 rows across 5 sessions.

    Example
    -------
    >>> from seqrules.datasets import generate_clickstream_data
    >>> df = generate_clickstream_data()
    >>> df.groupby("Username").size()
    """
    rows = [
        # U1: full funnel, checkout listed before the cart
        ("U1", "search", "2024-03-01 09:00:00"),
        ("U1", "checkout", "2024-03-01 09:01:00"),
        ("U1", "view product", "2024-03-01 09:00:05.250"),
        ("U1", "add to cart", "2024-03-01 09:00:30"),
        # U2: funnel without checkout
        ("U2", "search", "2024-03-01 10:00:00"),
        ("U2", "view product", "2024-03-01 10:00:12.500"),
        ("U2", "add to cart", "2024-03-01 10:00:40"),
        # U3: direct product landing
        ("U3", "add to cart", "2024-03-01 11:00:20"),
        ("U3", "view product", "2024-03-01 11:00:00"),
        ("U3", "checkout", "2024-03-01 11:00:50"),
        # U4: browsing loop
        ("U4", "search", "2024-03-01 12:00:00"),
        ("U4", "view product", "2024-03-01 12:00:03"),
        ("U4", "search", "2024-03-01 12:00:09"),
        ("U4", "view product", "2024-03-01 12:00:15.125"),
        ("U4", "add to cart", "2024-03-01 12:00:41"),
        # U5: dead end
        ("U5", "search", "2024-03-01 13:00:00"),
        ("U5", "help page", "2024-03-01 13:01:00"),
    ]
    return pd.DataFrame(rows, columns=["Username", "Action", "DateTime"])


def generate_large_clickstream(
    n_sessions: int = 1_000,
    mean_length: int = 6,
    seed: Optional[int] = 42,
) -> pd.DataFrame:
    """
    Generate a random interaction log driven by a fixed Markov chain.

    Each session starts at ``landing``; every next action is drawn from the
    transition row of the current one, so ``view product`` → ``add to cart``
    is the strongest ordered signal. Session lengths are Poisson distributed
    around ``mean_length`` (at least one event).

    Columns: ``session_id``, ``action``, ``timestamp`` (``datetime64``)
    """
    rng = np.random.default_rng(seed)
    actions = ["landing", "search", "view product", "add to cart", "checkout", "help page"]
    transitions = np.array([
        [0.00, 0.50, 0.35, 0.05, 0.00, 0.10],
        [0.00, 0.15, 0.70, 0.05, 0.00, 0.10],
        [0.00, 0.15, 0.20, 0.55, 0.05, 0.05],
        [0.00, 0.10, 0.25, 0.05, 0.55, 0.05],
        [0.30, 0.30, 0.30, 0.00, 0.00, 0.10],
        [0.20, 0.50, 0.20, 0.00, 0.00, 0.10],
    ])
    base = pd.Timestamp("2024-01-01")

    sessions, labels, stamps = [], [], []
    for s in range(n_sessions):
        length = max(1, int(rng.poisson(mean_length)))
        t = base + pd.Timedelta(minutes=int(rng.integers(0, 60 * 24 * 30)))
        state = 0
        for _ in range(length):
            sessions.append(f"S{s:05d}")
            labels.append(actions[state])
            stamps.append(t)
            t = t + pd.Timedelta(milliseconds=int(rng.integers(200, 90_000)))
            state = int(rng.choice(len(actions), p=transitions[state]))

    return pd.DataFrame({"session_id": sessions, "action": labels, "timestamp": stamps})
