from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List


class ForgotPassword(BaseModel):
    email: EmailStr


class ResetPassword(BaseModel):
    email: EmailStr
    otp: str
    newPassword: str = Field(min_length=6)


class SecurityAnswers(BaseModel):
    email: EmailStr
    answers: List[str]

    @field_validator("answers")
    @classmethod
    def three_answers(cls, value: List[str]) -> List[str]:
        if len(value) != 3:
            raise ValueError("Email and three security answers are required")
        return value


class ResetPasswordWithAnswers(SecurityAnswers):
    newPassword: str = Field(min_length=6)


class UpdatePassword(BaseModel):
    currentPassword: str
    newPassword: str = Field(min_length=6)
