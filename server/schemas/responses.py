"""Pydantic response models (DTOs) for FastAPI endpoints."""

from typing import Literal

from pydantic import BaseModel, Field

from api.base_client import ModelDescriptor


class ErrorResponseDTO(BaseModel):
    error: str


class ConfigResponseDTO(BaseModel):
    mode: Literal["local", "cloud"]
    host: str
    defaultModel: str | None = None


class ModelDTO(BaseModel):
    name: str
    model: str
    owned_by: str | None = None
    created: int | None = None

    @classmethod
    def from_descriptor(cls, descriptor: ModelDescriptor) -> "ModelDTO":
        return cls(**descriptor.to_dict())


class ModelsResponseDTO(BaseModel):
    models: list[ModelDTO] = Field(default_factory=list)


class HealthResponseDTO(BaseModel):
    status: str
    timestamp: str
    version: str = "1.0.0"
