from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from devprofile.schemas.github import GitHubRepo, LanguageBytes, LanguageStat, TopRepo

MAX_LANGUAGES = 10
MAX_TOP_REPOS = 6
DESCRIPTION_LIMIT = 100
ELLIPSIS = "..."
CENTS = Decimal("0.01")


def _percentage(size: int, total: int) -> float:
    # halves round up: 0.125 -> 0.13
    return float((Decimal(size) * 100 / Decimal(total)).quantize(CENTS, rounding=ROUND_HALF_UP))


def calculate_language_stats(all_language_data: Iterable[LanguageBytes]) -> List[LanguageStat]:
    """Merge per-repo language bytes into ranked percentages (top 10).

    Percentages are taken over the bytes of every language seen, so the
    truncated list may sum to less than 100. Equal percentages keep the
    order in which languages were first encountered.
    """
    totals: Dict[str, int] = {}
    for repo_languages in all_language_data:
        for language, size in repo_languages.items():
            totals[language] = totals.get(language, 0) + size

    total_bytes = sum(totals.values())

    stats = [
        LanguageStat(
            name=name,
            bytes=size,
            percentage=_percentage(size, total_bytes) if total_bytes > 0 else 0,
        )
        for name, size in totals.items()
    ]
    stats.sort(key=lambda s: s.percentage, reverse=True)
    return stats[:MAX_LANGUAGES]


def _truncate_description(description):
    if description is None:
        return None
    if len(description) > DESCRIPTION_LIMIT:
        return description[:DESCRIPTION_LIMIT] + ELLIPSIS
    return description


def rank_by_stars(repos: Sequence[GitHubRepo]) -> List[GitHubRepo]:
    # sorted() is stable, ties keep input order
    return sorted(repos, key=lambda r: r.stargazers_count, reverse=True)


def select_repositories_for_languages(repos: Sequence[GitHubRepo], limit: int) -> List[GitHubRepo]:
    return rank_by_stars(repos)[:limit]


def select_top_repositories(repos: Sequence[GitHubRepo]) -> List[TopRepo]:
    return [
        TopRepo(
            name=repo.name,
            url=repo.html_url,
            stars=repo.stargazers_count,
            forks=repo.forks_count,
            language=repo.language,
            description=_truncate_description(repo.description),
        )
        for repo in rank_by_stars(repos)[:MAX_TOP_REPOS]
    ]


def summarize_totals(repos: Sequence[GitHubRepo]) -> Tuple[int, int]:
    """(total stars, total forks) across repositories."""
    return (
        sum(r.stargazers_count for r in repos),
        sum(r.forks_count for r in repos),
    )


def languages_to_mapping(stats: Sequence[LanguageStat]) -> Dict[str, Dict[str, Any]]:
    """Stored form of the ranked languages.

    The rank is kept in each entry since JSON columns (MySQL) do not
    preserve object key order.
    """
    return {
        s.name: {"bytes": s.bytes, "percentage": s.percentage, "rank": rank}
        for rank, s in enumerate(stats, start=1)
    }


def ordered_languages(mapping: Mapping[str, Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
    # Rows written before ranks were stored fall back to percentage order
    ranked = sorted(
        mapping.items(),
        key=lambda item: (item[1].get("rank") is None, item[1].get("rank") or 0, -item[1].get("percentage", 0)),
    )
    return {name: dict(entry) for name, entry in ranked}
