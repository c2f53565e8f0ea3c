from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320)  # plain str to allow .local and other dev domains
    password: str = Field(min_length=8, max_length=128)
    full_name: str = Field(default="", max_length=200)
    phone: str = Field(default="", max_length=20)


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
