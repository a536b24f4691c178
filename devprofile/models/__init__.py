from devprofile.models.user import User
from devprofile.models.github_stats import GitHubStats

__all__ = ["User", "GitHubStats"]
