"""Auth schemas."""

from pydantic import BaseModel


class SignInRequest(BaseModel):
    email: str
    password: str


class SignUpRequest(BaseModel):
    email: str
    password: str
    confirm_password: str


class IdentityOut(BaseModel):
    uid: str
    email: str


class MessageResponse(BaseModel):
    message: str
