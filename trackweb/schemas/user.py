from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    id: int
    user_name: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: Optional[str] = None
    active: Optional[bool] = None
    # The backend never sends a real hash back; kept for shape parity only.
    password: str = Field(default="", repr=False, exclude=True)

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": 5,
                "user_name": "alice",
                "first_name": "Alice",
                "last_name": "Runner",
                "email": "alice@example.com",
                "phone": "555-0100",
            }
        },
    }

    @property
    def display_name(self) -> str:
        full = f"{self.first_name} {self.last_name}".strip()
        return full or self.user_name or self.email


class UpdateUserRequest(BaseModel):
    user_name: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: Optional[str] = None


class NewUserRequest(UpdateUserRequest):
    password: str = Field(default="", repr=False)
