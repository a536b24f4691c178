from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Boolean, DateTime

from devprofile.core.database import Base

class User(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(190), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(120))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # GitHub link (username/id/urls are kept after disconnect)
    github_username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    github_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    github_connected: Mapped[bool] = mapped_column(Boolean, default=False)
    github_avatar_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    github_profile_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    github_access_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # iv:ciphertext hex
    github_last_synced_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
