"""
Models for tool configuration.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class EngineSettings(BaseModel):
    """
    Settings shared by every tool that talks to the container engine.
    """
    engine: str = Field("docker", alias="PGIMAGE_ENGINE")

    model_config = ConfigDict(populate_by_name=True)


class ValidatorSettings(EngineSettings):
    """
    Settings for the extension validator.
    """
    image: str = Field("postgres:latest", alias="PGIMAGE_IMAGE")
    user: str = Field("postgres", alias="POSTGRES_USER")
    password: str = Field("postgres", alias="POSTGRES_PASSWORD")
    ready_attempts: int = Field(30, alias="PGIMAGE_READY_ATTEMPTS", ge=1)
    ready_interval: float = Field(1.0, alias="PGIMAGE_READY_INTERVAL", ge=0)


class FlattenSettings(EngineSettings):
    """
    Settings for the image flattener.
    """
    platform: Optional[str] = Field(None, alias="PGIMAGE_PLATFORM")
    definition_file: str = Field("Dockerfile.flatten", alias="PGIMAGE_DEFINITION_FILE")
    archive_dir: Optional[str] = Field(None, alias="PGIMAGE_ARCHIVE_DIR")
