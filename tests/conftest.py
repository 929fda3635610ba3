from datetime import datetime, timedelta

import pytest
from loguru import logger

from photo_events.models import Photo

BASE = datetime(2024, 6, 15)


def _series(start, count, step_minutes, first_id=1, make=None, model=None):
    return [
        Photo(id=first_id + i, captured_at=start + timedelta(minutes=i * step_minutes),
              device_make=make, device_model=model)
        for i in range(count)
    ]


@pytest.fixture
def make_photos():
    """Factory: ``make_photos(start, count, step_minutes, first_id=1, make=None, model=None)``."""
    return _series


@pytest.fixture
def wedding_photos():
    """A wedding day with six well separated segments.

    Getting ready 10:00, ceremony 14:00, cocktails 16:00, dinner 18:30,
    first dance 22:00 and party 23:30 (running past midnight).
    """
    photos = []
    next_id = [1]

    def add(hour, minute, model="iPhone 13"):
        make = "Apple" if "iPhone" in model else "Samsung"
        photos.append(Photo(
            id=next_id[0],
            captured_at=BASE + timedelta(hours=hour, minutes=minute),
            device_make=make,
            device_model=model,
        ))
        next_id[0] += 1

    for i in range(15):
        add(10, i * 7)
    for i in range(80):
        add(14, int(i * 0.56), "iPhone 14 Pro" if i % 3 == 0 else "iPhone 13")
    for i in range(40):
        add(16, i * 2.25)
    for i in range(50):
        add(18, 30 + i * 3)
    for i in range(25):
        add(22, int(i * 0.6), "Galaxy S23")
    for i in range(90):
        add(23, 30 + i)
    return photos


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    # cli.main() installs sinks bound to the captured stderr of one test
    logger.remove()
    logger.disable("photo_events")
