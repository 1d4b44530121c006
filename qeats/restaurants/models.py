from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class RestaurantRecord(BaseModel):
    """A restaurant document as stored; extra store fields are ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    restaurant_id: str = Field(alias="restaurantId")
    name: str
    city: str = ""
    image_url: str = Field(default="", alias="imageUrl")
    latitude: float
    longitude: float
    # Raw "HH:MM" strings, parsed when the open-now check runs
    opens_at: str = Field(alias="opensAt")
    closes_at: str = Field(alias="closesAt")
    attributes: tuple[str, ...] = ()

    @property
    def location(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)


class MenuItem(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    attributes: tuple[str, ...] = ()


class MenuRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    restaurant_id: str = Field(alias="restaurantId")
    items: tuple[MenuItem, ...] = ()


class Restaurant(BaseModel):
    """Public projection of a restaurant; equality and hash cover every field."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    restaurant_id: str = Field(alias="restaurantId")
    name: str
    city: str
    image_url: str = Field(alias="imageUrl")
    latitude: float
    longitude: float
    opens_at: str = Field(alias="opensAt")
    closes_at: str = Field(alias="closesAt")
    attributes: tuple[str, ...] = ()


def to_restaurant(record: RestaurantRecord) -> Restaurant:
    return Restaurant(
        restaurant_id=record.restaurant_id,
        name=record.name,
        city=record.city,
        image_url=record.image_url,
        latitude=record.latitude,
        longitude=record.longitude,
        opens_at=record.opens_at,
        closes_at=record.closes_at,
        attributes=record.attributes,
    )


class DiscoveryRequest(BaseModel):
    latitude: float
    longitude: float
    search_for: str | None = None

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)


class RestaurantsResponse(BaseModel):
    restaurants: list[Restaurant]
