from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any

@dataclass(frozen=True)
class MiningParameters:
    """
    Options forwarded untouched to a sequential-pattern engine.

    Parameters
    ----------
    min_support : float
        Fraction of sequences a pattern must occur in, in (0, 1].
    min_confidence : float
        Minimum rule confidence, in (0, 1].
    max_length : int, optional
        Maximum number of items in a mined sequence.
    min_gap, max_gap : int, optional
        Bounds on the ``event_id`` distance between consecutive items.
    """
    min_support: float = 0.2
    min_confidence: float = 0.5
    max_length: Optional[int] = None
    min_gap: Optional[int] = None
    max_gap: Optional[int] = None

    def __post_init__(self):
        if not (0 < self.min_support <= 1): raise ValueError("min_support must be in (0, 1]")
        if not (0 < self.min_confidence <= 1): raise ValueError("min_confidence must be in (0, 1]")
        if self.max_length is not None and self.max_length < 1: raise ValueError("max_length must be at least 1")
        if self.min_gap is not None and self.min_gap < 1: raise ValueError("min_gap must be at least 1")
        if self.max_gap is not None and self.max_gap < (self.min_gap or 1):
            raise ValueError("max_gap must be at least min_gap")

    def as_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}
