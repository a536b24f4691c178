import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from devprofile.models.github_stats import GitHubStats
from devprofile.models.user import User
from devprofile.schemas.github import GitHubProfile


class AccountStore:
    """Reads and writes the GitHub fields of a user and their stats row."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: str) -> Optional[User]:
        return (await self.db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        return (await self.db.execute(select(User).where(User.email == email))).scalar_one_or_none()

    async def create_user(self, *, email: str, password_hash: str, name: str) -> User:
        user = User(id=str(uuid.uuid4()), email=email, password_hash=password_hash, name=name)
        self.db.add(user)
        await self.db.commit()
        return user

    async def get_stats(self, user_id: str) -> Optional[GitHubStats]:
        return (
            await self.db.execute(select(GitHubStats).where(GitHubStats.user_id == user_id))
        ).scalar_one_or_none()

    async def save_connection(self, user: User, profile: GitHubProfile, encrypted_token: str) -> None:
        user.github_username = profile.login
        user.github_id = str(profile.id)
        user.github_connected = True
        user.github_avatar_url = profile.avatar_url
        user.github_profile_url = profile.html_url
        user.github_access_token = encrypted_token
        user.github_last_synced_at = datetime.utcnow()
        await self.db.commit()

    async def clear_credential(self, user: User) -> None:
        # Username, id and urls stay for reference
        user.github_connected = False
        user.github_access_token = None
        await self.db.commit()

    async def upsert_stats(
        self,
        user_id: str,
        *,
        total_public_repos: int,
        total_stars: int,
        total_forks: int,
        followers: int,
        following: int,
        top_languages: Dict[str, Any],
        top_repos: List[Dict[str, Any]],
    ) -> GitHubStats:
        stats = await self.get_stats(user_id)
        if stats is None:
            stats = GitHubStats(user_id=user_id)
            self.db.add(stats)

        stats.total_public_repos = total_public_repos
        stats.total_stars = total_stars
        stats.total_forks = total_forks
        stats.followers = followers
        stats.following = following
        stats.top_languages = top_languages
        stats.top_repos = top_repos
        stats.last_calculated_at = datetime.utcnow()
        await self.db.commit()
        return stats
