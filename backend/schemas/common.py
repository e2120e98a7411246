# backend/schemas/common.py
from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


# Base configuration: ORM compatibility and camelCase on the wire
class ORMBase(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


# Uniform response wrapper used by every endpoint
class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: str = ""


def ok(data=None, message: str = "OK") -> dict:
    return {"success": True, "data": data, "message": message}


def fail(message: str, code: str = "Error", data=None) -> dict:
    return {"success": False, "data": data, "message": message, "error": code}
