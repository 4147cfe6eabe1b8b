from pydantic import BaseModel, ConfigDict, Field, field_validator
from security import MAX_PASSWORD_BYTES, password_too_long

# Emails are kept exactly as given (no case folding), so plain str rather than EmailStr.

def _check_password_length(value: str) -> str:
    if password_too_long(value):
        raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value

class AccountBase(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")

class Register(AccountBase):
    name: str = Field(min_length=1, max_length=200)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_length(value)

class VerifyOTP(AccountBase):
    otp: str

class Login(AccountBase):
    password: str

class ForgotPassword(AccountBase):
    pass

class ResetPassword(AccountBase):
    model_config = ConfigDict(populate_by_name=True)

    otp: str
    new_password: str = Field(alias="newPassword", min_length=1)

    @field_validator("new_password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_length(value)

class Token(BaseModel):
    token: str

class Message(BaseModel):
    message: str

class DisplayName(BaseModel):
    name: str

class Profile(BaseModel):
    """Public view of an account: name, avatar and social counters only."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    avatar: str | None = None
    posts_count: int = Field(serialization_alias="postsCount")
    followers_count: int = Field(serialization_alias="followersCount")
    following_count: int = Field(serialization_alias="followingCount")
