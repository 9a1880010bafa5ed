"""Scoring-table records as served by the points endpoints.

The backend serializes rows in PascalCase (``Category``, ``Mark``...), so
every field also accepts its capitalised alias.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, Field


class TrackPoints(BaseModel):
    id: Optional[int] = Field(default=None, validation_alias=AliasChoices("id", "Id"))
    category: str = Field(validation_alias=AliasChoices("category", "Category"))
    event: str = Field(validation_alias=AliasChoices("event", "Event"))
    gender: str = Field(validation_alias=AliasChoices("gender", "Gender"))
    mark: float = Field(validation_alias=AliasChoices("mark", "Mark"))
    points: int = Field(validation_alias=AliasChoices("points", "Points"))

    model_config = {"populate_by_name": True}


CATEGORIES = ("Indoor", "Outdoor")
GENDERS = ("Male", "Female")


class PointsQuery(BaseModel):
    """Lookup parameters collected from the points search form."""

    category: Literal["Indoor", "Outdoor"]
    gender: Literal["Male", "Female"]
    event: str = Field(..., min_length=1, max_length=20)
    mark: float = Field(..., gt=0)
