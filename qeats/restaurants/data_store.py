from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

import pandas as pd
from pydantic import ValidationError

from ..config import DEFAULT_DISCOVERY_CONFIG, DiscoveryConfig
from .errors import StoreUnavailableError
from .models import MenuRecord, RestaurantRecord

logger = logging.getLogger(__name__)

RESTAURANTS_FILENAME = "restaurants.json"
MENUS_FILENAME = "menus.json"

RESTAURANT_COLUMNS = [
    "restaurantId", "name", "city", "imageUrl", "latitude", "longitude",
    "opensAt", "closesAt", "attributes",
]
MENU_COLUMNS = ["restaurantId", "items"]


class RestaurantStore(Protocol):
    """Read-only document store of restaurants and menus.

    Patterns are case-insensitive substring matches. Implementations raise
    ``StoreUnavailableError`` when they cannot answer.
    """

    def find_all(self) -> list[RestaurantRecord]: ...

    def find_by_name_pattern(self, pattern: str) -> list[RestaurantRecord]: ...

    def find_by_attribute_pattern(self, pattern: str) -> list[RestaurantRecord]: ...

    def find_menus_by_item_name_pattern(self, pattern: str) -> list[MenuRecord]: ...

    def find_menus_by_item_attribute_pattern(self, pattern: str) -> list[MenuRecord]: ...

    def find_by_id(self, restaurant_id: str) -> RestaurantRecord | None: ...


def _read_documents(path: Path) -> pd.DataFrame:
    try:
        return pd.read_json(path, orient="records", dtype=False, convert_dates=False)
    except (OSError, ValueError) as exc:
        raise StoreUnavailableError(f"Cannot load {path}: {exc}") from exc


def _with_columns(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """Add any of *columns* the export lacks; an empty export has none at all."""
    missing = [c for c in columns if c not in df.columns]
    return df.reindex(columns=[*df.columns, *missing])


def _is_missing(value) -> bool:
    return isinstance(value, float) and pd.isna(value)


def _as_list(value) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


class DataFrameRestaurantStore:
    """Restaurant store backed by two in-memory DataFrames.

    Loads ``restaurants.json`` and ``menus.json`` (document exports) once at
    construction. Frames are never mutated afterwards, so the store can be
    queried from several threads at once.
    """

    def __init__(self, restaurants: pd.DataFrame, menus: pd.DataFrame) -> None:
        self._restaurants = self._prepare_restaurants(restaurants)
        self._menus = _with_columns(menus, MENU_COLUMNS)
        self._menus["restaurantId"] = self._menus["restaurantId"].astype(str)
        self._menu_items = self._prepare_menu_items(self._menus)

    @classmethod
    def from_directory(cls, data_dir: Path) -> "DataFrameRestaurantStore":
        restaurants = _read_documents(data_dir / RESTAURANTS_FILENAME)
        menus_path = data_dir / MENUS_FILENAME
        if menus_path.exists():
            menus = _read_documents(menus_path)
        else:
            logger.warning("No menus file at %s; item searches will match nothing", menus_path)
            menus = pd.DataFrame(columns=MENU_COLUMNS)
        return cls(restaurants, menus)

    @staticmethod
    def _prepare_restaurants(df: pd.DataFrame) -> pd.DataFrame:
        df = _with_columns(df, RESTAURANT_COLUMNS)
        df["restaurantId"] = df["restaurantId"].astype(str)
        df["name_lower"] = df["name"].fillna("").astype(str).str.lower()
        df["attributes"] = df["attributes"].apply(_as_list)
        return df

    @staticmethod
    def _prepare_menu_items(menus: pd.DataFrame) -> pd.DataFrame:
        """One row per (restaurantId, item) with lowercased item name."""
        if menus.empty:
            return pd.DataFrame(columns=["restaurantId", "item_name", "item_attributes"])
        items = menus[["restaurantId", "items"]].copy()
        items["items"] = items["items"].apply(_as_list)
        items = items.explode("items").dropna(subset=["items"])
        items["item_name"] = items["items"].apply(lambda i: str(i.get("name", "")).lower())
        items["item_attributes"] = items["items"].apply(
            lambda i: [str(a).lower() for a in _as_list(i.get("attributes"))]
        )
        return items[["restaurantId", "item_name", "item_attributes"]]

    def _to_records(self, rows: pd.DataFrame) -> list[RestaurantRecord]:
        records: list[RestaurantRecord] = []
        for row in rows.drop(columns=["name_lower"]).to_dict(orient="records"):
            doc = {k: v for k, v in row.items() if not _is_missing(v)}
            try:
                records.append(RestaurantRecord.model_validate(doc))
            except ValidationError:
                logger.warning("Skipping malformed restaurant document %r", doc.get("restaurantId"))
        return records

    def _menus_for(self, restaurant_ids: pd.Series) -> list[MenuRecord]:
        ids = list(dict.fromkeys(restaurant_ids.tolist()))
        menus = self._menus[self._menus["restaurantId"].isin(ids)]
        return [
            MenuRecord.model_validate({k: v for k, v in doc.items() if not _is_missing(v)})
            for doc in menus.to_dict(orient="records")
        ]

    def find_all(self) -> list[RestaurantRecord]:
        return self._to_records(self._restaurants)

    def find_by_name_pattern(self, pattern: str) -> list[RestaurantRecord]:
        mask = self._restaurants["name_lower"].str.contains(pattern.lower(), regex=False)
        return self._to_records(self._restaurants.loc[mask])

    def find_by_attribute_pattern(self, pattern: str) -> list[RestaurantRecord]:
        needle = pattern.lower()
        mask = self._restaurants["attributes"].apply(
            lambda attrs: any(needle in str(a).lower() for a in attrs)
        )
        return self._to_records(self._restaurants.loc[mask])

    def find_menus_by_item_name_pattern(self, pattern: str) -> list[MenuRecord]:
        mask = self._menu_items["item_name"].str.contains(pattern.lower(), regex=False)
        return self._menus_for(self._menu_items.loc[mask, "restaurantId"])

    def find_menus_by_item_attribute_pattern(self, pattern: str) -> list[MenuRecord]:
        needle = pattern.lower()
        mask = self._menu_items["item_attributes"].apply(
            lambda attrs: any(needle in a for a in attrs)
        )
        return self._menus_for(self._menu_items.loc[mask, "restaurantId"])

    def find_by_id(self, restaurant_id: str) -> RestaurantRecord | None:
        rows = self._restaurants[self._restaurants["restaurantId"] == str(restaurant_id)]
        records = self._to_records(rows.head(1))
        return records[0] if records else None


_default_store: DataFrameRestaurantStore | None = None


def get_default_store(config: DiscoveryConfig = DEFAULT_DISCOVERY_CONFIG) -> DataFrameRestaurantStore:
    """Return the process-wide store, loading it on first call."""
    global _default_store
    if _default_store is None:
        _default_store = DataFrameRestaurantStore.from_directory(config.data_dir)
    return _default_store
