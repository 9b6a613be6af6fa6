"""Pydantic models for blob API responses"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class GetAction(str, Enum):
    count = "count"
    all = "all"
    random = "random"

    @classmethod
    def parse(cls, raw: str | None) -> GetAction:
        # Anything unrecognised, including a missing action, means random
        try:
            return cls(raw)
        except ValueError:
            return cls.random


class CountResponse(BaseModel):
    count: int


class BlobResponse(BaseModel):
    blob: str


class BlobListResponse(BaseModel):
    blobs: list[str]


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    pool_size: int
    pool_available: int
