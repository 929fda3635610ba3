"""
Heuristic event type classification.

A cluster is described by its duration (minutes), photo density (photos per
hour) and the hour of its first photo.  :data:`RULES` is evaluated top to
bottom and the first matching rule names the event; when nothing matches the
event is labelled by time of day with a low confidence.  Thresholds follow
typical wedding timelines and are fixed, not learned.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Iterable, List, Tuple

from .models import DeviceCount, EventType, Photo

UNKNOWN_CONFIDENCE = 0.40

EVENT_COLORS = {
    EventType.CEREMONY: "#3B82F6",
    EventType.COCKTAILS: "#10B981",
    EventType.DINNER: "#F59E0B",
    EventType.FIRST_DANCE: "#EC4899",
    EventType.PARTY: "#8B5CF6",
    EventType.PREP: "#14B8A6",
    EventType.UNKNOWN: "#6B7280",
}


@dataclass(frozen=True)
class Classification:
    """Result of classifying one cluster."""
    name: str
    event_type: EventType
    confidence: float

    @property
    def color(self) -> str:
        return color_for(self.event_type)


@dataclass(frozen=True)
class Rule:
    """One row of the classification table."""
    event_type: EventType
    name: str
    confidence: float
    # (duration_minutes, photos_per_hour, start_hour) -> bool
    matches: Callable[[float, float, int], bool]

    def classification(self) -> Classification:
        return Classification(self.name, self.event_type, self.confidence)


RULES: Tuple[Rule, ...] = (
    Rule(EventType.CEREMONY, "Ceremony", 0.85,
         lambda d, p, h: 20 <= d <= 60 and p > 15 and 13 <= h <= 17),
    Rule(EventType.COCKTAILS, "Cocktail Hour", 0.75,
         lambda d, p, h: 45 <= d <= 120 and 16 <= h <= 19),
    Rule(EventType.DINNER, "Dinner", 0.70,
         lambda d, p, h: 60 <= d <= 240 and p < 30 and 18 <= h <= 22),
    Rule(EventType.FIRST_DANCE, "First Dance", 0.65,
         lambda d, p, h: 10 <= d <= 40 and p > 20),
    Rule(EventType.PARTY, "Party Time", 0.80,
         lambda d, p, h: d >= 85 and p > 12 and h >= 20),
    Rule(EventType.PREP, "Getting Ready", 0.60,
         lambda d, p, h: 10 <= h <= 14 and d < 120),
)


def time_of_day_label(hour: int) -> str:
    """Morning [5, 12), Afternoon [12, 17), Evening [17, 21), Night otherwise."""
    if 5 <= hour < 12:
        return "Morning"
    if 12 <= hour < 17:
        return "Afternoon"
    if 17 <= hour < 21:
        return "Evening"
    return "Night"


def classify_event(duration: float, photo_density: float, start_hour: int,
                   rules: Iterable[Rule] = RULES) -> Classification:
    """Return the first rule matching the cluster, or the time-of-day fallback."""
    for rule in rules:
        if rule.matches(duration, photo_density, start_hour):
            return rule.classification()
    return Classification(
        name=f"Event {time_of_day_label(start_hour)}",
        event_type=EventType.UNKNOWN,
        confidence=UNKNOWN_CONFIDENCE,
    )


def color_for(event_type: EventType) -> str:
    return EVENT_COLORS.get(event_type, EVENT_COLORS[EventType.UNKNOWN])


def tally_devices(photos: Iterable[Photo]) -> List[DeviceCount]:
    """Count photos per camera, keyed ``"make model"`` or just ``model``.

    Photos without a model are not counted.  Devices keep the order in which
    they first appear.
    """
    counts: "OrderedDict[str, int]" = OrderedDict()
    for photo in photos:
        if not photo.device_model:
            continue
        key = f"{photo.device_make} {photo.device_model}" if photo.device_make else photo.device_model
        counts[key] = counts.get(key, 0) + 1
    return [DeviceCount(model=model, count=count) for model, count in counts.items()]
