from __future__ import annotations

from pydantic import BaseModel, Field


class AccessToken(BaseModel):
    status: str = ""
    access_token: str = Field(..., min_length=1)

    model_config = {
        "json_schema_extra": {
            "example": {"status": "success", "access_token": "<jwt>"}
        }
    }
