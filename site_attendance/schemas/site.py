"""Pydantic schemas for site CRUD and the service health check."""

from __future__ import annotations

from pydantic import BaseModel, field_validator


class SiteCreate(BaseModel):
    record_id: str
    name: str
    client: str | None = None

    @field_validator("record_id", "name")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Must not be empty")
        return v


class SiteRead(BaseModel):
    record_id: str
    name: str
    client: str | None = None

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str
    database: str
    version: str
