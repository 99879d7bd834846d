# Author: Bradley R. Kinnard
# decay - type-dependent exponential forgetting of triples

import math
from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np

from knowledge.triples import MemoryType, Metadata


DEFAULT_HALF_LIVES = {
    MemoryType.PERCEPTION: 30.0,
    MemoryType.EPISODIC: 120.0,
    MemoryType.SEMANTIC: 600.0,
    MemoryType.CULTURAL: 14400.0,
}


@dataclass
class DecayPolicy:
    """
    strength(age) = 0.5 ** (age / adjusted_half_life)
    adjusted_half_life = half_life * (1 + salience * salience_multiplier)

    intrinsic and procedural memories have no half-life and never decay.
    """
    half_lives: dict[MemoryType, float] = field(default_factory=lambda: dict(DEFAULT_HALF_LIVES))
    salience_multiplier: float = 2.0
    forget_threshold: float = 0.1

    def __post_init__(self):
        for mt, hl in self.half_lives.items():
            if not mt.decays:
                raise ValueError(f"{mt.name.lower()} memories cannot have a half-life")
            if hl <= 0:
                raise ValueError(f"half-life must be positive, got {hl} for {mt.name.lower()}")
        if not 0.0 <= self.forget_threshold <= 1.0:
            raise ValueError("forget_threshold must be between 0 and 1")

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "DecayPolicy":
        cfg = config.get("decay", {})
        half_lives = dict(DEFAULT_HALF_LIVES)
        for name, hl in cfg.get("half_lives", {}).items():
            half_lives[MemoryType[name.upper()]] = float(hl)
        return cls(
            half_lives=half_lives,
            salience_multiplier=cfg.get("salience_multiplier", 2.0),
            forget_threshold=cfg.get("forget_threshold", 0.1),
        )

    def half_life(self, memory_type: MemoryType) -> float:
        """base half-life in seconds, inf for non-decaying types."""
        if not memory_type.decays:
            return math.inf
        return self.half_lives.get(memory_type, DEFAULT_HALF_LIVES[memory_type])

    def adjusted_half_life(self, meta: Metadata) -> float:
        return self.half_life(meta.memory_type) * (1.0 + meta.salience * self.salience_multiplier)

    def strength(self, meta: Metadata, now: float) -> float:
        """current strength in [0, 1]. negative age is clamped to zero."""
        if not meta.memory_type.decays:
            return 1.0
        age = max(0.0, now - meta.timestamp)
        return 0.5 ** (age / self.adjusted_half_life(meta))

    def decayed_confidence(self, meta: Metadata, now: float) -> float:
        return meta.confidence * self.strength(meta, now)

    def should_forget(self, meta: Metadata, now: float) -> bool:
        return self.strength(meta, now) < self.forget_threshold

    def strengths(self, metas: Sequence[Metadata], now: float) -> np.ndarray:
        """vectorised strength for a sweep over many triples."""
        if not metas:
            return np.empty(0)
        ages = np.maximum(0.0, now - np.fromiter((m.timestamp for m in metas), dtype=float, count=len(metas)))
        half = np.fromiter(
            (self.adjusted_half_life(m) for m in metas), dtype=float, count=len(metas)
        )
        # inf half-life yields 0.5 ** 0 == 1
        return np.power(0.5, ages / half)
