from typing import Any, Optional, List, Union
from pydantic import BaseModel


class ProfileRecord(BaseModel):
    username: str
    full_name: str = ""
    biography: str = ""
    profile_pic_url: str = ""
    followers_count: int = 0
    following_count: int = 0
    posts_count: int = 0
    media_count: int = 0
    is_verified: bool = False
    is_private: bool = False
    website: str = ""
    email: str = ""
    phone_number: str = ""
    follower_count: int = 0
    raw_data: Any = None


class PostRecord(BaseModel):
    id: str = ""
    caption: str = ""
    timestamp: Optional[Union[int, float, str]] = None
    media_type: str = "image"
    media_url: str = ""
    like_count: int = 0
    comment_count: int = 0
    raw_data: Any = None


class ProfileResponse(BaseModel):
    success: bool = True
    profile: ProfileRecord


class PostsResponse(BaseModel):
    success: bool = True
    posts: List[PostRecord]
    raw_response: Any = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
