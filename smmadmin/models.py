"""Data models for smmadmin."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any


INSTAGRAM = "instagram"
FACEBOOK = "facebook"

# Providers whose tokens are exchanged through the Meta Graph API
META_PROVIDERS = (INSTAGRAM, FACEBOOK)


class PostStatus(str, Enum):
    """Lifecycle states of a post."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    APPROVED = "approved"
    SENT = "sent"
    FAILED = "failed"


# Only these states may be handed to the publishing webhook
DELIVERABLE_STATUSES = (PostStatus.APPROVED, PostStatus.SCHEDULED)


@dataclass(frozen=True)
class AppCredentials:
    """Canonical Meta app identity extracted from a brand credentials mapping."""

    app_id: str
    app_secret: str


@dataclass
class User:
    """Admin panel user."""

    id: int
    email: str
    password_hash: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Brand:
    """Brand (tenant) with per-platform credentials and languages."""

    id: int
    name: str
    description: Optional[str] = None
    telegram_channel: Optional[str] = None
    telegram_languages: List[str] = field(default_factory=list)
    wordpress_credentials: Optional[Dict[str, Any]] = None
    wordpress_languages: List[str] = field(default_factory=list)
    linkedin_credentials: Optional[Dict[str, Any]] = None
    linkedin_languages: List[str] = field(default_factory=list)
    tiktok_credentials: Optional[str] = None
    tiktok_languages: List[str] = field(default_factory=list)
    instagram_credentials: Optional[Dict[str, Any]] = None
    instagram_languages: List[str] = field(default_factory=list)
    facebook_credentials: Optional[Dict[str, Any]] = None
    facebook_languages: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None

    def credentials_for(self, provider: str) -> Optional[Dict[str, Any]]:
        """Return the stored credentials mapping for a Meta provider."""
        if provider == FACEBOOK:
            return self.facebook_credentials
        return self.instagram_credentials


@dataclass
class BrandDocument:
    """Reference document uploaded for a brand."""

    id: int
    brand_id: int
    filename: str
    original_name: str
    mime: Optional[str] = None
    uploaded_at: Optional[datetime] = None


@dataclass
class Post:
    """Social media post owned by a brand."""

    id: int
    brand_id: int
    status: PostStatus = PostStatus.DRAFT
    title: Optional[str] = None
    body: Optional[str] = None
    image_path: Optional[str] = None
    video_path: Optional[str] = None
    platform: Optional[str] = None
    language: Optional[str] = None
    schedule_at: Optional[datetime] = None
    created_by_id: Optional[int] = None
    created_at: Optional[datetime] = None
    last_error: Optional[str] = None
    short_text: Optional[str] = None
    long_text: Optional[str] = None
    caption: Optional[str] = None
    hashtags: List[str] = field(default_factory=list)
    is_generating: bool = False
