from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Fields are optional here so the routers can answer a missing field with 400.
class RegisterRequest(BaseModel):
    email: Optional[str] = Field(default=None, max_length=254)
    password: Optional[str] = Field(default=None, max_length=128)
    name: Optional[str] = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    email: Optional[str] = Field(default=None, max_length=254)
    password: Optional[str] = Field(default=None, max_length=128)


class UserOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    email: str
    name: str
    created_at: str


class UserEnvelope(BaseModel):
    user: UserOut


class LoginResponse(BaseModel):
    user: UserOut
    access_token: Optional[str] = None
    token_type: str = "bearer"
    message: str = "Login successful"
