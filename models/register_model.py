from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List


class RegisterUser(BaseModel):
    email: EmailStr
    name: str = Field(min_length=1)
    password: str = Field(min_length=6)
    securityAnswers: List[str]

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("All fields are required")
        return value

    @field_validator("securityAnswers")
    @classmethod
    def three_answers(cls, value: List[str]) -> List[str]:
        if len(value) != 3 or any(not answer or not answer.strip() for answer in value):
            raise ValueError("Three security answers are required")
        return value
