"""Common shared schemas used across multiple domains."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON while keeping snake_case attributes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LatLng(BaseModel):
    """A point as sent by the map client. Range checks happen in the domain layer."""
    lat: float
    lng: float
