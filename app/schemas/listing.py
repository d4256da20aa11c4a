from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field


class ListingCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    # clients send the path returned by /upload; older clients send it as image_url
    image_path: str = Field(min_length=1, validation_alias=AliasChoices("image_path", "image_url"))


class ListingUpdate(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    description: str | None = None
    image_path: str | None = Field(default=None, validation_alias=AliasChoices("image_path", "image_url"))


class ListingOut(BaseModel):
    id: str
    owner_id: str
    title: str
    description: str
    image_path: str
    # freshly signed on every read; None when the storage provider could not sign
    image_url: str | None
    created_at: datetime
    updated_at: datetime


class ListingEnvelope(BaseModel):
    listing: ListingOut


class ListingsEnvelope(BaseModel):
    listings: list[ListingOut]
