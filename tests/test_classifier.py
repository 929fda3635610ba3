import pytest

from photo_events.classifier import (
    EVENT_COLORS, RULES, classify_event, color_for, tally_devices, time_of_day_label,
)
from photo_events.models import EventType, Photo


@pytest.mark.parametrize("duration, density, hour, expected_type, name, confidence", [
    (33, 21.8, 14, EventType.CEREMONY, "Ceremony", 0.85),
    (90, 10, 17, EventType.COCKTAILS, "Cocktail Hour", 0.75),
    (150, 20, 19, EventType.DINNER, "Dinner", 0.70),
    (15, 100, 22, EventType.FIRST_DANCE, "First Dance", 0.65),
    (120, 40, 21, EventType.PARTY, "Party Time", 0.80),
    (90, 5, 11, EventType.PREP, "Getting Ready", 0.60),
])
def test_each_rule_matches_its_pattern(duration, density, hour, expected_type, name, confidence):
    result = classify_event(duration, density, hour)
    assert result.event_type == expected_type
    assert result.name == name
    assert result.confidence == confidence
    assert result.color == EVENT_COLORS[expected_type]


def test_rules_are_evaluated_in_priority_order():
    # Satisfies ceremony, first dance and prep; ceremony is listed first.
    assert classify_event(30, 25, 14).event_type == EventType.CEREMONY
    # Satisfies cocktails and dinner; cocktails wins.
    assert classify_event(100, 20, 18).event_type == EventType.COCKTAILS
    assert [r.event_type for r in RULES] == [
        EventType.CEREMONY, EventType.COCKTAILS, EventType.DINNER,
        EventType.FIRST_DANCE, EventType.PARTY, EventType.PREP,
    ]


def test_boundaries_are_inclusive_where_documented():
    assert classify_event(20, 15.1, 13).event_type == EventType.CEREMONY
    assert classify_event(60, 15.1, 17).event_type == EventType.CEREMONY
    # density must be strictly above 15
    assert classify_event(20, 15, 15).event_type != EventType.CEREMONY


@pytest.mark.parametrize("hour, label", [
    (5, "Morning"), (11, "Morning"), (12, "Afternoon"), (16, "Afternoon"),
    (17, "Evening"), (20, "Evening"), (21, "Night"), (0, "Night"), (4, "Night"),
])
def test_time_of_day_label(hour, label):
    assert time_of_day_label(hour) == label


def test_fallback_uses_time_of_day():
    result = classify_event(300, 2, 7)
    assert result.event_type == EventType.UNKNOWN
    assert result.name == "Event Morning"
    assert result.confidence == 0.40
    assert result.color == "#6B7280"
    assert classify_event(0, 30, 3).name == "Event Night"


def test_colors_cover_every_event_type():
    assert set(EVENT_COLORS) == set(EventType)
    assert color_for(EventType.PARTY) == "#8B5CF6"
    assert color_for(EventType.PREP) == "#14B8A6"


def test_tally_devices_groups_by_make_and_model():
    photos = [
        Photo(1, None, "Apple", "iPhone 13"),
        Photo(2, None, None, "Pixel 8"),
        Photo(3, None, "Apple", "iPhone 13"),
        Photo(4, None, "Apple", None),
        Photo(5, None, None, None),
        Photo(6, None, None, "Pixel 8"),
    ]
    tally = tally_devices(photos)
    assert [(d.model, d.count) for d in tally] == [("Apple iPhone 13", 2), ("Pixel 8", 2)]
    assert tally_devices([]) == []
