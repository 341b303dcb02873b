"""
Defect Tracker API Client
Owner: ① Tracker Integration & Sync Owner

Responsibilities:
- URL building against the versioned REST API (bugs on v3, comments on v1)
- Bearer-token headers
- Retry with exponential backoff on network errors and 429/5xx
- Bug queries, single-bug lookup, release listing, comment fetching
- Pure fetching focus - no mapping to internal records

The client is synchronous (requests); async callers wrap it with
asyncio.to_thread.
"""

import json
import time
import logging
from typing import Any, Callable, Dict, Optional, Sequence, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from relnotes.config import get_settings
from relnotes.integrations.tracker.auth import TokenProvider, TrackerAuthError
from relnotes.integrations.tracker.models import (
    BugFilters,
    CommentsResponse,
    TrackerBug,
    TrackerResponse,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
DEFAULT_BACKOFFS = (1.0, 2.0, 4.0)
DEFAULT_QUERY_LIMIT = 100
RELEASE_QUERY_LIMIT = 1000
COMMENTS_LIMIT = 1000
_ERROR_BODY_LIMIT = 500


# Custom Exceptions


class TrackerError(Exception):
    """Base class for tracker failures."""

    pass


class TrackerRetryExhaustedError(TrackerError):
    """
    Raised when every attempt failed with a network error or retryable status.
    Transient by nature, but terminal for this call.
    """

    def __init__(self, message: str, attempts: int, last_status: Optional[int] = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_status = last_status


class TrackerAPIError(TrackerError):
    """Raised for a non-2xx response that is not retried."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Tracker API error (status {status_code}): {body}")
        self.status_code = status_code
        self.body = body


class TrackerResponseError(TrackerError):
    """Raised when a 2xx response body is not valid JSON or does not fit the expected shape."""

    pass


class TrackerBugNotFoundError(TrackerError):
    """Raised when a bug id matches nothing in the tracker."""

    def __init__(self, bug_id: int):
        super().__init__(f"Bug {bug_id} not found in tracker")
        self.bug_id = bug_id


class TrackerClient:
    """Defect tracker REST client with retry/backoff."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_version: Optional[str] = None,
        token: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoffs: Sequence[float] = DEFAULT_BACKOFFS,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        settings = get_settings()
        self.logger = logger or logging.getLogger(__name__)
        self.base_url = (base_url or settings.tracker_base_url).rstrip("/")
        self.api_version = api_version or settings.tracker_api_version
        self.timeout = timeout if timeout is not None else settings.tracker_timeout
        self.max_retries = max_retries if max_retries is not None else settings.tracker_max_retries
        self.backoffs = list(backoffs)
        self.session = session or requests.Session()
        self._sleep = sleep

        if token is None:
            provider = token_provider or TokenProvider(
                env_var=settings.tracker_token_env_var,
                token_file=settings.tracker_token_file,
            )
            try:
                token = provider.get_token()
            except TrackerAuthError as e:
                self.logger.warning(f"No tracker token available, requests are unauthenticated: {e}")
                token = ""
        self.token = token

    # Request plumbing

    def build_url(self, endpoint: str) -> str:
        """
        Resolve an endpoint against the base URL.

        Absolute URLs pass through unchanged; relative ones get the API
        version segment unless they already start with it.
        """
        if endpoint.startswith("http://") or endpoint.startswith("https://"):
            return endpoint

        endpoint = endpoint.lstrip("/")
        if endpoint != self.api_version and not endpoint.startswith(self.api_version + "/"):
            endpoint = f"{self.api_version}/{endpoint}"

        return f"{self.base_url}/{endpoint}"

    def build_headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if extra:
            headers.update(extra)
        return headers

    def _backoff(self, attempt: int) -> float:
        if attempt < len(self.backoffs):
            return self.backoffs[attempt]
        return self.backoffs[-1] if self.backoffs else 0.0

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Any] = None,
    ) -> requests.Response:
        """
        Send a request with retry.

        Transport errors (any requests.RequestException) and
        429/500/502/503/504 are retried up to max_retries
        attempts with backoff between attempts. Any other response, success or
        not, is returned as-is on the first attempt that produces it.

        Raises:
            TrackerRetryExhaustedError: If every attempt failed retryably
        """
        url = self.build_url(endpoint)
        headers = self.build_headers()
        last_status = None
        last_error = None

        for attempt in range(self.max_retries):
            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    json=body,
                    headers=headers,
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                last_error = e
                self.logger.warning(
                    f"Tracker {method} {url} failed (attempt {attempt + 1}/{self.max_retries}): {e}"
                )
            else:
                if response.status_code not in RETRYABLE_STATUS_CODES:
                    return response
                last_status = response.status_code
                last_error = None
                self.logger.warning(
                    f"Tracker {method} {url} returned {response.status_code} "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )

            if attempt < self.max_retries - 1:
                self._sleep(self._backoff(attempt))

        detail = f"status {last_status}" if last_error is None else str(last_error)
        raise TrackerRetryExhaustedError(
            f"Tracker {method} {url} failed after {self.max_retries} attempts: {detail}",
            attempts=self.max_retries,
            last_status=last_status,
        ) from last_error

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        return self.request("GET", endpoint, params=params)

    def post(self, endpoint: str, body: Any = None) -> requests.Response:
        return self.request("POST", endpoint, body=body)

    def put(self, endpoint: str, body: Any = None) -> requests.Response:
        return self.request("PUT", endpoint, body=body)

    def patch(self, endpoint: str, body: Any = None) -> requests.Response:
        return self.request("PATCH", endpoint, body=body)

    def delete(self, endpoint: str) -> requests.Response:
        return self.request("DELETE", endpoint)

    @staticmethod
    def parse_response(response: requests.Response) -> Dict[str, Any]:
        """
        Decode a JSON body.

        Raises:
            TrackerAPIError: For non-2xx responses (body truncated)
            TrackerResponseError: If the body is not valid JSON
        """
        if not 200 <= response.status_code < 300:
            raise TrackerAPIError(response.status_code, (response.text or "")[:_ERROR_BODY_LIMIT])

        try:
            return response.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise TrackerResponseError(f"Invalid JSON from tracker: {e}") from e

    @staticmethod
    def validate_payload(model: Type[M], payload: Any) -> M:
        """
        Validate a decoded body against a wire model.

        Raises:
            TrackerResponseError: If the payload does not fit the model
        """
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise TrackerResponseError(
                f"Unexpected {model.__name__} payload from tracker: {e.error_count()} validation errors"
            ) from e

    # Operations

    def query(self, query: str, limit: int = DEFAULT_QUERY_LIMIT) -> TrackerResponse:
        """Run a raw query expression against the bugs endpoint."""
        if limit <= 0:
            limit = DEFAULT_QUERY_LIMIT

        self.logger.info(f"Querying tracker: q={query!r}, limit={limit}")
        response = self.get("bugs", params={"q": query, "limit": limit})
        result = self.validate_payload(TrackerResponse, self.parse_response(response))
        self.logger.info(f"Tracker returned {len(result.bugs)} bugs (total={result.total})")
        return result

    def get_bug_by_id(self, bug_id: int) -> TrackerBug:
        """
        Raises:
            TrackerBugNotFoundError: If no bug has this id
            TrackerResponseError: If the returned record is malformed
        """
        result = self.query(f"id=={bug_id}", limit=1)
        if not result.bugs:
            raise TrackerBugNotFoundError(bug_id)
        return self.validate_payload(TrackerBug, result.bugs[0])

    def get_bugs_by_release(
        self, release: str, filters: Optional[BugFilters] = None
    ) -> TrackerResponse:
        """
        List bugs for a release, narrowed by optional filters.

        Raises:
            ValueError: If the combined filters produce an empty query
        """
        filters = filters.model_copy() if filters else BugFilters()
        filters.release = release

        query = filters.build_query()
        if not query:
            raise ValueError("no valid filters provided")

        params: Dict[str, Any] = {"q": query, "limit": RELEASE_QUERY_LIMIT}
        if filters.text_query:
            params["textQuery"] = filters.text_query

        self.logger.info(f"Fetching bugs for release {release}: q={query!r}")
        response = self.get("bugs", params=params)
        result = self.validate_payload(TrackerResponse, self.parse_response(response))
        self.logger.info(f"Fetched {len(result.bugs)} bugs for release {release}")
        return result

    def get_bug_comments(self, bug_id: int, user: Optional[str] = None) -> CommentsResponse:
        """
        Fetch every comment on a bug from the v1 comments API.

        The server-side user filter is unreliable, so `user` is applied here.
        """
        url = f"{self.base_url}/v1/comments"
        params = {"bug": str(bug_id), "limit": str(COMMENTS_LIMIT)}

        self.logger.info(f"Fetching comments for bug {bug_id} (user filter: {user or 'none'})")
        response = self.get(url, params=params)
        result = self.validate_payload(CommentsResponse, self.parse_response(response))

        if user:
            result.comments = [c for c in result.comments if c.user == user]
            result.count = len(result.comments)

        self.logger.info(f"Fetched {len(result.comments)} comments for bug {bug_id}")
        return result

