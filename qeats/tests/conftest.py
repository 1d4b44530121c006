from __future__ import annotations

import math
import threading
from collections import Counter

import pytest

from qeats.restaurants.errors import StoreUnavailableError
from qeats.restaurants.models import GeoPoint, MenuItem, MenuRecord, RestaurantRecord

CENTER = GeoPoint(latitude=12.9121, longitude=77.6446)


def north_of(point: GeoPoint, km: float) -> GeoPoint:
    """Point *km* due north of *point* (exact along a meridian for haversine)."""
    return GeoPoint(
        latitude=point.latitude + math.degrees(km / 6371.0),
        longitude=point.longitude,
    )


class FakeStore:
    """In-memory RestaurantStore that counts calls.

    ``barrier`` makes the four search entry points wait for each other, which
    only succeeds when they run at the same time. ``fail_on`` names a method
    that raises ``StoreUnavailableError``.
    """

    SEARCH_ENTRY_POINTS = (
        "find_by_name_pattern",
        "find_by_attribute_pattern",
        "find_menus_by_item_name_pattern",
        "find_menus_by_item_attribute_pattern",
    )

    def __init__(self, restaurants=(), menus=(), barrier=None, fail_on=None):
        self.restaurants = list(restaurants)
        self.menus = list(menus)
        self.barrier = barrier
        self.fail_on = fail_on
        self.calls: Counter[str] = Counter()
        self._lock = threading.Lock()

    def _enter(self, method: str) -> None:
        with self._lock:
            self.calls[method] += 1
        if method == self.fail_on:
            raise StoreUnavailableError(f"{method} failed")
        if self.barrier is not None and method in self.SEARCH_ENTRY_POINTS:
            self.barrier.wait()

    def find_all(self):
        self._enter("find_all")
        return list(self.restaurants)

    def find_by_name_pattern(self, pattern):
        self._enter("find_by_name_pattern")
        return [r for r in self.restaurants if pattern.lower() in r.name.lower()]

    def find_by_attribute_pattern(self, pattern):
        self._enter("find_by_attribute_pattern")
        return [
            r for r in self.restaurants
            if any(pattern.lower() in a.lower() for a in r.attributes)
        ]

    def find_menus_by_item_name_pattern(self, pattern):
        self._enter("find_menus_by_item_name_pattern")
        return [
            m for m in self.menus
            if any(pattern.lower() in i.name.lower() for i in m.items)
        ]

    def find_menus_by_item_attribute_pattern(self, pattern):
        self._enter("find_menus_by_item_attribute_pattern")
        return [
            m for m in self.menus
            if any(pattern.lower() in a.lower() for i in m.items for a in i.attributes)
        ]

    def find_by_id(self, restaurant_id):
        self._enter("find_by_id")
        for r in self.restaurants:
            if r.restaurant_id == restaurant_id:
                return r
        return None

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


def make_record(
    restaurant_id: str = "10",
    name: str = "A2B",
    location: GeoPoint = CENTER,
    opens_at: str = "06:00",
    closes_at: str = "23:00",
    attributes: tuple[str, ...] = ("Tamil", "South Indian"),
    city: str = "Hsr Layout",
) -> RestaurantRecord:
    return RestaurantRecord(
        restaurant_id=restaurant_id,
        name=name,
        city=city,
        image_url=f"https://images.qeats.example/{restaurant_id}.jpg",
        latitude=location.latitude,
        longitude=location.longitude,
        opens_at=opens_at,
        closes_at=closes_at,
        attributes=attributes,
    )


def make_menu(restaurant_id: str, *items: tuple[str, tuple[str, ...]]) -> MenuRecord:
    return MenuRecord(
        restaurant_id=restaurant_id,
        items=tuple(MenuItem(name=name, attributes=attrs) for name, attrs in items),
    )


@pytest.fixture
def center() -> GeoPoint:
    return CENTER


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def menu_factory():
    return make_menu


@pytest.fixture
def store_factory():
    return FakeStore


@pytest.fixture
def north():
    return north_of


@pytest.fixture
def search_barrier():
    return threading.Barrier(len(FakeStore.SEARCH_ENTRY_POINTS), timeout=5)
