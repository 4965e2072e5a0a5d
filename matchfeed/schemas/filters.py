from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class RawFilterParams(BaseModel):
    """Filter overrides exactly as a client sends them.

    Every field is an optional string so that malformed values reach the
    normalizer (which degrades them to "unset") instead of failing request
    validation.  Aliases match the mobile client's query/form names.
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    min_age: Optional[str] = None
    max_age: Optional[str] = None
    min_height: Optional[str] = Field(None, description="feet")
    max_height: Optional[str] = Field(None, description="feet")
    body_type: Optional[str] = Field(None, alias="BodyType")
    ethnicity: Optional[str] = Field(None, alias="Ethnicity")
    drinks: Optional[str] = Field(None, alias="Drinks")
    religion: Optional[str] = Field(None, alias="Religion")
    education: Optional[str] = Field(None, alias="Education")
    have_child: Optional[str] = Field(None, alias="HaveChild")
    want_child: Optional[str] = Field(None, alias="WantChild")
    hsign: Optional[str] = Field(None, alias="Hsign")
    marijuana: Optional[str] = Field(None, alias="Marijuana")
    smoke: Optional[str] = Field(None, alias="Smoke")
    political_view: Optional[str] = Field(None, alias="PoliticalView")
    max_distance: Optional[str] = Field(None, description="miles")


class FilterSettingsResponse(BaseModel):
    """Saved filters in canonical units (inches, miles, lowercase tokens)."""

    min_age: Optional[int] = None
    max_age: Optional[int] = None
    min_height_inches: Optional[int] = None
    max_height_inches: Optional[int] = None
    max_distance_miles: Optional[float] = None
    body_types: list[str] = []
    ethnicities: list[str] = []
    religions: list[str] = []
    education_levels: list[str] = []
    zodiac_signs: list[str] = []
    smoking: Optional[str] = None
    drinking: Optional[str] = None
    marijuana: Optional[str] = None
    has_kids: Optional[str] = None
    wants_kids: Optional[str] = None
    political_views: Optional[str] = None


class FilterEnvelope(BaseModel):
    success: bool = True
    data: Optional[FilterSettingsResponse] = None
    msg: str = ""
