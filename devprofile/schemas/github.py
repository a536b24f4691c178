from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


# ---------- GitHub API values ----------

class GitHubProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    login: str
    id: int
    avatar_url: str = ""
    html_url: str = ""
    name: Optional[str] = None
    bio: Optional[str] = None
    public_repos: int = 0
    followers: int = 0
    following: int = 0


class GitHubRepo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    html_url: str
    stargazers_count: int = 0
    forks_count: int = 0
    language: Optional[str] = None
    description: Optional[str] = None
    updated_at: Optional[str] = None
    private: bool = False


# language name -> bytes
LanguageBytes = Dict[str, int]


# ---------- Aggregated stats ----------

class LanguageStat(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    bytes: int
    percentage: float


class TopRepo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    stars: int
    forks: int
    language: Optional[str] = None
    description: Optional[str] = None


# ---------- Sync results ----------

class SyncErrorKind(str, Enum):
    AUTH_EXPIRED = "AuthExpired"
    RATE_LIMITED = "RateLimited"
    NETWORK_ERROR = "NetworkError"
    NOT_CONNECTED = "NotConnected"
    UNKNOWN = "Unknown"


class SyncSummary(BaseModel):
    username: str
    public_repos: int
    total_stars: int
    total_forks: int
    followers: int
    following: int
    languages_count: int
    top_repos_count: int
    repos_processed: int = 0
    language_failures: int = 0


class SyncResult(BaseModel):
    success: bool
    message: str
    error_kind: Optional[SyncErrorKind] = None
    summary: Optional[SyncSummary] = None


# ---------- API responses ----------

class GitHubConnectionStatus(BaseModel):
    connected: bool
    github_username: Optional[str] = None
    avatar_url: Optional[str] = None
    profile_url: Optional[str] = None
    last_synced_at: Optional[str] = None


class GitHubOAuthStartResponse(BaseModel):
    auth_url: str


class LanguageShare(BaseModel):
    bytes: int
    percentage: float
    rank: Optional[int] = None


class GitHubStatsBody(BaseModel):
    total_public_repos: int
    total_stars: int
    total_forks: int
    followers: int
    following: int
    top_languages: Dict[str, LanguageShare] = Field(default_factory=dict)
    top_repos: List[TopRepo] = Field(default_factory=list)
    last_calculated_at: Optional[str] = None


class GitHubStatsResponse(BaseModel):
    connected: bool
    username: Optional[str] = None
    stats: GitHubStatsBody
    last_synced_at: Optional[str] = None


class GitHubSyncResponse(BaseModel):
    message: str
    stats: SyncSummary
    synced_at: str


class GitHubDisconnectResponse(BaseModel):
    message: str
