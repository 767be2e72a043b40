from pydantic import BaseModel, EmailStr, Field


class AdminRegister(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)


class AdminLogin(BaseModel):
    email: EmailStr
    password: str
