from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from schemas.base import convert_datetime_to_brazil_time


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    username: Optional[str] = Field(default=None, min_length=2)


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class ProfileBrief(BaseModel):
    id: str
    username: str
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class ProfileResponse(BaseModel):
    id: str
    username: str
    avatar_url: Optional[str] = None
    banner_url: Optional[str] = None
    bio: Optional[str] = None
    sector: Optional[str] = None
    instagram_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    facebook_url: Optional[str] = None
    youtube_url: Optional[str] = None
    twitter_url: Optional[str] = None
    is_verified: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        json_encoders = {datetime: convert_datetime_to_brazil_time}


class PublicProfileResponse(ProfileResponse):
    article_count: int = 0
    follower_count: int = 0
    following_count: int = 0


class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=2)
    sector: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    banner_url: Optional[str] = None
    instagram_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    facebook_url: Optional[str] = None
    youtube_url: Optional[str] = None
    twitter_url: Optional[str] = None


class SessionUser(BaseModel):
    id: str
    email: EmailStr
    profile: Optional[ProfileResponse] = None

    class Config:
        from_attributes = True


class TokenUserResponse(BaseModel):
    access_token: str
    token_type: str
    user: SessionUser


class FCMTokenUpdate(BaseModel):
    fcm_token: Optional[str] = None
