from __future__ import annotations

import re
from datetime import date, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


Locale = Literal["en", "jp"]
SortBy = Literal["distance", "price"]
SortOrder = Literal["asc", "desc"]

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")

PartySize = Annotated[int, Field(ge=1, le=20)]
Budget = Annotated[int, Field(ge=0)]


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class FrozenModel(BaseModel):
    # Normalized records are built once per call and never mutated afterwards.
    model_config = ConfigDict(extra="forbid", frozen=True)


def _check_date(v: str | None, field: str) -> str | None:
    if v is None:
        return v
    if not _DATE_RE.match(v):
        raise ValueError(f"Invalid {field} format. Use YYYY-MM-DD")
    try:
        date.fromisoformat(v)
    except ValueError as e:
        raise ValueError(f"Invalid {field} format. Use YYYY-MM-DD") from e
    return v


class Coordinate(FrozenModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class LinkParams(StrictModel):
    """
    Search parameters that can be carried over into a reservation link.
    """

    num_people: PartySize | None = None
    date_min: str | None = None
    date_max: str | None = None
    time: str | None = None
    budget_min: Budget | None = None
    budget_max: Budget | None = None
    location: Coordinate | None = None
    geo_distance: str | None = None
    sort_by: SortBy | None = None
    sort_order: SortOrder | None = None

    @field_validator("date_min", "date_max")
    @classmethod
    def _dates(cls, v, info):
        return _check_date(v, info.field_name)

    @field_validator("time")
    @classmethod
    def _time(cls, v):
        if v is not None and not _TIME_RE.match(v):
            raise ValueError("Invalid time format. Use HH:MM")
        return v

    @model_validator(mode="after")
    def _budget_window(self):
        if self.budget_min is not None and self.budget_max is not None and self.budget_min > self.budget_max:
            raise ValueError("budget_min cannot be greater than budget_max")
        return self


class SearchRequest(LinkParams):
    query: str | None = None
    cuisines: list[str] | None = None
    locale: Locale = "en"


class AvailabilityRequest(StrictModel):
    shop_id: str = Field(min_length=1)
    start_at: str = Field(min_length=1)
    num_people: PartySize
    locale: Locale = "en"

    @field_validator("start_at")
    @classmethod
    def _iso_timestamp(cls, v):
        try:
            datetime.fromisoformat(v.replace("Z", "+00:00"))
        except ValueError as e:
            raise ValueError("Invalid start_at. Use ISO format: YYYY-MM-DDTHH:MM:SS.sssZ") from e
        return v


class PriceRange(FrozenModel):
    min: int | float | None = None
    max: int | float | None = None
    currency: str = "JPY"


class RestaurantRecord(FrozenModel):
    id: str
    name: str
    slug: str = Field(min_length=1)
    cuisines: list[str] = Field(default_factory=list)
    location: Coordinate | None = None
    currency: str = "JPY"
    price_avg: int | float | None = None
    lunch_price_range: PriceRange
    dinner_price_range: PriceRange
    available_dates: list[str] = Field(default_factory=list)
    image_url: str | None = None
    reservation_url: str
    distance_km: float | None = None


class AvailabilitySlot(FrozenModel):
    date: str
    time: str
    available: bool
    party_size: int


class CuisineRecord(FrozenModel):
    id: str
    name: str
    locale: str
    # Every translation the upstream carries, keyed by its translation locale.
    names: dict[str, str] = Field(default_factory=dict)


class UpstreamRequest(FrozenModel):
    method: Literal["GET", "POST"] = "GET"
    path: str
    params: list[tuple[str, str]] = Field(default_factory=list)
    body: dict[str, Any] | None = None

    def param_values(self, name: str) -> list[str]:
        return [v for k, v in self.params if k == name]


# Tool inputs. Locations may arrive as a place name or as coordinates.


class SearchRestaurantsInput(SearchRequest):
    location: Coordinate | str | None = None


class GetAvailabilityInput(AvailabilityRequest):
    pass


class ListCuisinesInput(StrictModel):
    locale: Locale = "en"


class GenerateReservationLinkInput(StrictModel):
    shop_id: str = Field(min_length=1)
    num_people: PartySize | None = None
    date: str | None = None
    time: str | None = None
    location: Coordinate | str | None = None
    locale: Locale = "en"

    @field_validator("date")
    @classmethod
    def _date(cls, v):
        return _check_date(v, "date")

    @field_validator("time")
    @classmethod
    def _time(cls, v):
        if v is not None and not _TIME_RE.match(v):
            raise ValueError("Invalid time format. Use HH:MM")
        return v


# Tool result envelopes


class ToolError(StrictModel):
    kind: str
    message: str
    status_code: int | None = None


class ToolResult(StrictModel):
    is_error: bool = False
    error: ToolError | None = None
    text: str = ""


class SearchRestaurantsResponse(ToolResult):
    restaurants: list[RestaurantRecord] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict)


class GetAvailabilityResponse(ToolResult):
    slots: list[AvailabilitySlot] = Field(default_factory=list)


class ListCuisinesResponse(ToolResult):
    cuisines: list[CuisineRecord] = Field(default_factory=list)


class GenerateReservationLinkResponse(ToolResult):
    reservation_url: str | None = None


class ToolDefinition(StrictModel):
    name: str
    description: str
    input_schema: dict[str, Any]


class ToolListResponse(StrictModel):
    tools: list[ToolDefinition]
