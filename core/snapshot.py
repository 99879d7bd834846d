# Author: Bradley R. Kinnard
# snapshot - read-only body and perception inputs for one decision tick

from dataclasses import dataclass, field

from knowledge.triples import ActionKind, Concept, EmotionType


@dataclass(frozen=True)
class PhysiologicalSnapshot:
    """body and emotional state supplied by the world each tick."""
    hunger: float = 0.0
    energy: float = 100.0
    pain: float = 0.0
    alertness: float = 1.0
    stress: float = 0.0
    emotions: dict[EmotionType, float] = field(default_factory=dict)
    mood_swing: float = 0.0
    is_sleeping: bool = False
    current_activity: ActionKind | None = None
    inventory: dict[Concept, int] = field(default_factory=dict)
    location: tuple[int, int] | None = None

    def __post_init__(self):
        for name in ("hunger", "energy", "pain", "stress"):
            value = getattr(self, name)
            if not 0.0 <= value <= 100.0:
                raise ValueError(f"{name} must be between 0 and 100, got {value}")
        if not 0.0 <= self.alertness <= 1.0:
            raise ValueError("alertness must be between 0 and 1")
        if not 0.0 <= self.mood_swing <= 1.0:
            raise ValueError("mood_swing must be between 0 and 1")
        for emotion, intensity in self.emotions.items():
            if not 0.0 <= intensity <= 1.0:
                raise ValueError(f"{emotion.name.lower()} intensity must be between 0 and 1")

    def emotion(self, emotion: EmotionType) -> float:
        return self.emotions.get(emotion, 0.0)


@dataclass(frozen=True)
class VisibleObject:
    """a world object currently in view, with its classification tags."""
    entity_id: int
    tags: tuple[Concept, ...] = ()
    tile: tuple[int, int] | None = None
    contents: dict[Concept, int] | None = None
