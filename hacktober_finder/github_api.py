"""GitHub REST API client with retries and rate-limit awareness."""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import requests

from .config import API_MAX_PER_PAGE
from .models import RateLimitInfo

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
MAX_RETRIES = 3
INITIAL_BACKOFF = 2.0
BACKOFF_MULTIPLIER = 1.5
MAX_RATE_LIMIT_WAIT = 60.0


class GitHubAPIError(Exception):
    pass


class RateLimitExceeded(GitHubAPIError):
    pass


@dataclass(frozen=True)
class SearchPage:
    items: list = field(default_factory=list)
    total_count: int = 0
    rate_limit: RateLimitInfo = field(default_factory=RateLimitInfo)


@dataclass(frozen=True)
class IssuePage:
    items: list = field(default_factory=list)
    rate_limit: RateLimitInfo = field(default_factory=RateLimitInfo)


class GitHubClient:
    """Handles all communication with the GitHub REST API."""

    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.token = token
        self.timeout = timeout
        self._sleep = sleep
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "hacktober-finder",
        })
        if token:
            self.session.headers["Authorization"] = f"token {token}"

    @staticmethod
    def _is_rate_limited(response: requests.Response) -> bool:
        if response.status_code == 429:
            return True
        if response.status_code == 403:
            if response.headers.get("X-RateLimit-Remaining") == "0":
                return True
            return "rate limit" in response.text.lower()
        return False

    def _rate_limit_wait(self, response: requests.Response, backoff: float) -> float:
        retry_after = response.headers.get("Retry-After")
        if retry_after and retry_after.isdigit():
            return min(float(retry_after), MAX_RATE_LIMIT_WAIT)
        reset = response.headers.get("X-RateLimit-Reset")
        if reset and reset.isdigit():
            return min(max(backoff, int(reset) - time.time() + 1), MAX_RATE_LIMIT_WAIT)
        return backoff

    def _request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        url = f"{self.BASE_URL}{endpoint}" if endpoint.startswith("/") else endpoint
        backoff = INITIAL_BACKOFF

        for attempt in range(MAX_RETRIES + 1):
            try:
                response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except requests.exceptions.RequestException as e:
                if attempt < MAX_RETRIES:
                    logger.warning("Request failed (%s). Retrying in %.1f seconds.", e, backoff)
                    self._sleep(backoff)
                    backoff *= BACKOFF_MULTIPLIER
                    continue
                raise GitHubAPIError(f"Request failed after {MAX_RETRIES} retries: {e}") from e

            if self._is_rate_limited(response):
                if attempt < MAX_RETRIES:
                    wait = self._rate_limit_wait(response, backoff)
                    logger.warning("Rate limited. Retrying in %.1f seconds.", wait)
                    self._sleep(wait)
                    backoff *= BACKOFF_MULTIPLIER
                    continue
                raise RateLimitExceeded(
                    f"GitHub API rate limit exceeded (reset at epoch={response.headers.get('X-RateLimit-Reset')})"
                )

            if response.status_code >= 400:
                raise GitHubAPIError(f"GitHub API error {response.status_code}: {response.text[:500]}")
            return response

        raise GitHubAPIError("Max retries exceeded")

    @staticmethod
    def _json(response: requests.Response):
        try:
            return response.json()
        except ValueError as e:
            raise GitHubAPIError(
                f"Invalid JSON from {response.url or 'GitHub'} (status {response.status_code}): {e}"
            ) from e

    def search_repositories(
        self,
        query: str,
        sort: str = "stars",
        order: str = "desc",
        page: int = 1,
        per_page: int = 30,
    ) -> SearchPage:
        params = {
            "q": query,
            "sort": sort,
            "order": order,
            "page": page,
            "per_page": min(per_page, API_MAX_PER_PAGE),
        }
        response = self._request("GET", "/search/repositories", params=params)
        rate_limit = RateLimitInfo.from_headers(response.headers)
        logger.debug("Rate limit remaining: %s, resets at: %s", rate_limit.remaining, rate_limit.reset_at)
        payload = self._json(response)
        if not isinstance(payload, dict):
            raise GitHubAPIError(f"Expected a search result object, got {type(payload).__name__}")
        try:
            items = payload.get("items") or []
            total_count = int(payload.get("total_count") or 0)
        except (TypeError, ValueError) as e:
            raise GitHubAPIError(f"Malformed search result: {e}") from e
        if not isinstance(items, list):
            raise GitHubAPIError(f"Expected a list of search items, got {type(items).__name__}")
        return SearchPage(items=items, total_count=total_count, rate_limit=rate_limit)

    def list_issues(
        self,
        owner: str,
        repo: str,
        state: str = "open",
        sort: str = "updated",
        direction: str = "desc",
        page: int = 1,
        per_page: int = 30,
    ) -> IssuePage:
        params = {
            "state": state,
            "sort": sort,
            "direction": direction,
            "page": page,
            "per_page": min(per_page, API_MAX_PER_PAGE),
        }
        response = self._request("GET", f"/repos/{owner}/{repo}/issues", params=params)
        rate_limit = RateLimitInfo.from_headers(response.headers)
        logger.debug(
            "Rate limit remaining: %s, resets at: %s, Link: %s",
            rate_limit.remaining, rate_limit.reset_at, response.headers.get("Link"),
        )
        items = self._json(response)
        if not isinstance(items, list):
            raise GitHubAPIError(f"Expected a list of issues for {owner}/{repo}, got {type(items).__name__}")
        return IssuePage(items=items, rate_limit=rate_limit)
