"""Schema for bulk JSON import."""

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class ImportCharactersRequest(BaseModel):
    """Character sheets exported from another tool, one object per character."""
    characters: List[Dict[str, Any]] = Field(min_length=1)
