from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from ...domain.entities import SIGNUP_ROLES, User

class SignupReq(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8)
    password_confirmation: str
    role_id: int

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("role_id")
    @classmethod
    def signup_role(cls, v: int) -> int:
        if v not in {int(r) for r in SIGNUP_ROLES.values()}:
            raise ValueError("role_id must be one of 2 (employee) or 3 (client)")
        return v

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.password_confirmation:
            raise ValueError("The password confirmation does not match")
        return self

class LoginReq(BaseModel):
    email: EmailStr
    password: str

class UserResp(BaseModel):
    id: int
    name: str
    email: str
    role: str

    @classmethod
    def from_user(cls, user: User) -> "UserResp":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role.label)

class TokenResp(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResp

class MessageResp(BaseModel):
    message: str

class AreaResp(BaseModel):
    area: str
    user: UserResp
