# models/common.py

from typing import Optional

from pydantic import BaseModel


class Coordinates(BaseModel):
    latitude: float
    longitude: float


class Address(BaseModel):
    street: str = ""
    city: str = ""
    province: str = ""
    postal_code: str = ""
    country: str = ""
    coordinates: Optional[Coordinates] = None


class SiteAddress(Address):
    access_instructions: Optional[str] = None
