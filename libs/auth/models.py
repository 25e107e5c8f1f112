from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AuthUser(BaseModel):
    """
    Represents an authenticated user from a Supabase-issued JWT.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="sub")
    email: Optional[EmailStr] = None
    name: str = ""
    role: str = "authenticated"
    # Commerce tier claim; drives promotion audience checks and fee waivers
    tier: Literal["user", "superfan", "streamer"] = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "service_role"
