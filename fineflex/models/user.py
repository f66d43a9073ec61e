from pydantic import AliasChoices, BaseModel, EmailStr, Field
from typing import Optional


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    username: Optional[str] = None
    monthly_income: float = Field(default=0, ge=0)
    savings_goal: float = Field(default=0, ge=0)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserSettingsUpdate(BaseModel):
    monthly_income: Optional[float] = Field(default=None, ge=0)
    savings_goal: Optional[float] = Field(default=None, ge=0)
    # Older clients send this as openai_key
    ai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ai_api_key", "openai_key"),
    )


class UserPublic(BaseModel):
    id: int
    username: str
    email: EmailStr
    monthly_income: float
    savings_goal: float
    has_ai_api_key: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_record(cls, user: dict) -> "UserPublic":
        return cls(
            id=user["id"],
            username=user["username"],
            email=user["email"],
            monthly_income=user.get("monthly_income") or 0,
            savings_goal=user.get("savings_goal") or 0,
            has_ai_api_key=bool(user.get("ai_api_key")),
            created_at=user.get("created_at"),
        )


class AuthResponse(BaseModel):
    message: str
    token: str
    token_type: str = "bearer"
    user: UserPublic
