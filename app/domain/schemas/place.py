"""Pydantic schemas for Place."""

from pydantic import AliasChoices, BaseModel, Field, field_validator


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class Coordinates(BaseModel):
    lat: float
    lng: float


class PlaceCreate(BaseModel):
    title: str
    description: str = Field(min_length=5)
    address: str

    @field_validator("title", "address")
    @classmethod
    def check_not_blank(cls, value: str) -> str:
        return _not_blank(value)


class PlaceUpdate(BaseModel):
    title: str
    description: str = Field(min_length=5)

    @field_validator("title")
    @classmethod
    def check_not_blank(cls, value: str) -> str:
        return _not_blank(value)


class PlaceRead(BaseModel):
    id: str
    title: str
    description: str
    address: str
    location: Coordinates
    image: str
    creator: str = Field(validation_alias=AliasChoices("creator_id", "creator"))

    model_config = {"from_attributes": True}


class PlaceResponse(BaseModel):
    place: PlaceRead


class PlaceList(BaseModel):
    places: list[PlaceRead]


class MessageResponse(BaseModel):
    message: str
