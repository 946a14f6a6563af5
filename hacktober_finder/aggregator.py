"""Repository search across preferred languages, plus per-repository issue collection.

Sources for one repository search:
  1. A one-item unfiltered query, used only for its approximate total count
  2. One paged query per preferred language (or a single unfiltered one)
Results are deduplicated by (owner, name), scored, ranked and capped.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Sequence

from .config import API_MAX_PER_PAGE, DEFAULT_TOPIC
from .github_api import GitHubAPIError, GitHubClient
from .logs import FetchObserver, FetchRecord
from .models import IssueCollection, Issue, RepoKey, Repository
from .scoring import score_issue, score_repository

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepoSearchResult:
    repositories: list[Repository] = field(default_factory=list)
    total_estimate: int = 0


class SearchAggregator:
    """Merges per-language searches into one deduplicated, ranked page."""

    def __init__(
        self,
        client: GitHubClient,
        *,
        topic: str = DEFAULT_TOPIC,
        observer: FetchObserver | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.client = client
        self.topic = topic
        self.observer = observer or FetchObserver()
        self._clock = clock

    def base_query(self, min_stars: int) -> str:
        return f"topic:{self.topic} stars:>={min_stars} archived:false"

    def language_query(self, min_stars: int, language: str) -> str:
        query = self.base_query(min_stars)
        if language:
            query += f" language:{language.lower()}"
        return query

    # ── Repositories ────────────────────────────────────────────

    def search_repositories(
        self,
        min_stars: int,
        preferred_languages: Sequence[str],
        max_results: int,
        page: int = 1,
    ) -> RepoSearchResult:
        if max_results <= 0:
            raise ValueError(f"max_results must be positive, got {max_results}")
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")

        log.info(
            "Starting repository search with languages: %s, page: %d",
            list(preferred_languages), page,
        )
        total_estimate = self._global_total(min_stars)

        languages = list(preferred_languages) or [""]
        now = self._clock() if self._clock else None
        merged: dict[RepoKey, Repository] = {}

        for language in languages:
            query = self.language_query(min_stars, language)
            started = time.monotonic()
            try:
                result = self.client.search_repositories(
                    query,
                    sort="stars",
                    order="desc",
                    page=page,
                    per_page=min(API_MAX_PER_PAGE, max_results),
                )
            except GitHubAPIError as e:
                self._record("repositories/search", query, 0, started, error=str(e))
                log.error("Failed to search repositories for language %r: %s", language, e)
                continue

            self._record("repositories/search", query, len(result.items), started, rate_limit=result.rate_limit)
            log.info(
                "Language %r search completed: %d total found, %d returned",
                language, result.total_count, len(result.items),
            )

            for item in result.items:
                try:
                    repo = Repository.from_api(item)
                except (AttributeError, TypeError, ValueError) as e:
                    log.warning("Skipping malformed repository item in %r results: %s", language, e)
                    continue
                if repo.stars < min_stars:
                    continue
                if repo.archived:
                    log.debug("Repository %s is archived, skipping", repo.full_name)
                    continue
                if repo.key in merged:
                    log.debug("Repository %s already found, skipping duplicate", repo.full_name)
                    continue
                merged[repo.key] = repo.with_score(
                    score_repository(repo, preferred_languages, now=now)
                )

            if len(merged) >= max_results:
                log.info("Reached maximum results (%d), stopping search", max_results)
                break

        # dicts keep insertion order and sorted() is stable, so ties keep discovery order
        ranked = sorted(merged.values(), key=lambda r: r.relevance_score, reverse=True)[:max_results]
        log.info(
            "Repository search completed: %d returned (limit %d), global total: %d",
            len(ranked), max_results, total_estimate,
        )
        return RepoSearchResult(repositories=ranked, total_estimate=total_estimate)

    def _global_total(self, min_stars: int) -> int:
        query = self.base_query(min_stars)
        started = time.monotonic()
        try:
            result = self.client.search_repositories(query, sort="stars", order="desc", page=1, per_page=1)
        except GitHubAPIError as e:
            self._record("repositories/search_total", query, 0, started, error=str(e))
            log.error("Failed to retrieve global total repository count: %s", e)
            return 0
        self._record("repositories/search_total", query, len(result.items), started, rate_limit=result.rate_limit)
        log.info("Global %s repositories total: %d", self.topic, result.total_count)
        return result.total_count

    # ── Issues ──────────────────────────────────────────────────

    def fetch_issues(self, repository: Repository, max_issues: int) -> IssueCollection:
        """Open issues of one repository, pull requests excluded, each scored.

        Transport errors propagate to the caller.
        """
        started = time.monotonic()
        endpoint = f"{repository.owner}/{repository.name}"
        log.info("Starting issue search for %s", repository.full_name)
        try:
            page = self.client.list_issues(
                repository.owner,
                repository.name,
                state="open",
                sort="updated",
                page=1,
                per_page=min(max_issues, API_MAX_PER_PAGE),
            )
        except GitHubAPIError as e:
            self._record("issues/list", endpoint, 0, started, error=str(e))
            raise

        issues: list[Issue] = []
        pr_count = 0
        for item in page.items:
            try:
                if Issue.is_pull_request(item):
                    pr_count += 1
                    continue
                issue = Issue.from_api(repository.key, item)
            except (AttributeError, TypeError, ValueError) as e:
                log.warning("Skipping malformed issue item for %s: %s", repository.full_name, e)
                continue
            issues.append(issue.with_difficulty(score_issue(issue)))

        collection = IssueCollection.build(repository, issues)
        self._record("issues/list", endpoint, len(issues), started, rate_limit=page.rate_limit)
        log.info(
            "Processing complete for %s: %d total items, %d PRs skipped, %d issues, %d unique labels",
            repository.full_name, len(page.items), pr_count, len(issues), len(collection.label_counts),
        )
        return collection

    def _record(self, endpoint, query, count, started, *, rate_limit=None, error=None) -> None:
        self.observer.record(FetchRecord(
            endpoint=endpoint,
            query=query,
            result_count=count,
            duration_s=time.monotonic() - started,
            rate_limit=rate_limit,
            error=error,
        ))
