"""
Models describing the outcome of a flatten run.
"""
from typing import Optional
from pydantic import BaseModel


class FlattenResult(BaseModel):
    """
    The retained image and the engine's human-readable sizes before and after.
    """
    image: str
    source_size: Optional[str] = None
    final_size: Optional[str] = None
