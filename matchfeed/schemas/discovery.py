from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from typing import Optional


class CandidateOut(BaseModel):
    """Public shape of one discoverable profile."""

    id: UUID
    display_name: str = ""
    first_name: str = ""
    age: Optional[int] = None
    gender: str = ""
    city: str = ""
    state: str = ""
    bio: str = ""
    height_inches: Optional[int] = None
    body_type: str = ""
    ethnicity: list[str] = []
    religion: str = ""
    education: str = ""
    zodiac_sign: str = ""
    interests: list[str] = []
    is_verified: bool = False
    image_url: Optional[str] = None
    photo_urls: list[str] = []
    distance_in_km: Optional[float] = None
    has_liked_me: bool = False
    is_favorite: bool = False


class DiscoverResponse(BaseModel):
    success: bool = True
    data: list[CandidateOut] = []
    msg: str = ""
    total: int = 0
    has_more: bool = False
    empty_reason: Optional[str] = None


class ErrorEnvelope(BaseModel):
    success: bool = False
    data: list = []
    msg: str


class NearbyParams(BaseModel):
    """Body of ``POST /discover/nearby``; same names as the query form."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    latitude: Optional[str] = Field(None, alias="Latitude")
    longitude: Optional[str] = Field(None, alias="Longitude")
    max_distance: Optional[str] = Field(None, description="kilometres")
    limit: Optional[str] = None
    offset: Optional[str] = None
