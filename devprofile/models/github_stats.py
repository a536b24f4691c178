from datetime import datetime
from typing import Any, Dict, List
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, ForeignKey, DateTime, JSON

from devprofile.core.database import Base


class GitHubStats(Base):
    """Aggregated GitHub statistics, one row per user."""
    __tablename__ = "github_stats"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True)
    total_public_repos: Mapped[int] = mapped_column(Integer, default=0)
    total_stars: Mapped[int] = mapped_column(Integer, default=0)
    total_forks: Mapped[int] = mapped_column(Integer, default=0)
    followers: Mapped[int] = mapped_column(Integer, default=0)
    following: Mapped[int] = mapped_column(Integer, default=0)
    top_languages: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)  # name -> {bytes, percentage}
    top_repos: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)
    last_calculated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
