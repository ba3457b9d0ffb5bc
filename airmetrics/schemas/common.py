from pydantic import BaseModel, Field
from typing import Any, Literal


class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class SuccessEnvelope(BaseModel):
    status: Literal["success"] = "success"
    data: Any


class ErrorEnvelope(BaseModel):
    status: Literal["fail", "error"]
    code: str
    message: str
