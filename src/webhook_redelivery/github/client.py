"""
Module: client.py
Description: Async GitHub REST client for webhook reconciliation.

Wraps the handful of repository endpoints a reconciliation run needs:
webhooks, webhook deliveries, delivery redelivery and Actions
variables. Failed responses are mapped onto the run's exception
taxonomy so callers never see raw httpx errors.

Key Components:
- GitHubClient: Async client bound to one repository
- Link header pagination via iter_pages()

Dependencies: httpx, typing
"""

from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from webhook_redelivery.errors import NotFoundError, TransportError
from webhook_redelivery.models.delivery import DeliveryAttempt, Webhook
from webhook_redelivery.utils.logger import get_logger

logger = get_logger(__name__)


class GitHubClient:
    """
    GitHub REST client scoped to a single repository.

    Example:
        >>> async with GitHubClient(token, "octo", "hello") as client:
        ...     hooks = await client.list_webhooks()
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str = "https://api.github.com",
        api_version: str = "2022-11-28",
        timeout_seconds: int = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the GitHub client.

        Args:
            token: Token sent as a bearer credential
            owner: Repository owner
            repo: Repository name
            base_url: GitHub REST API base URL
            api_version: Value of the X-GitHub-Api-Version header
            timeout_seconds: HTTP timeout in seconds
            transport: Optional httpx transport override

        Raises:
            ValueError: If token, owner or repo is empty
        """
        if not token or not isinstance(token, str):
            raise ValueError("token must be a non-empty string")
        if not owner or not repo:
            raise ValueError("owner and repo must be non-empty strings")

        self.owner = owner
        self.repo = repo
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": api_version,
            },
            timeout=httpx.Timeout(timeout_seconds, connect=timeout_seconds),
            transport=transport
        )

        logger.info(
            "GitHub client initialized",
            base_url=base_url,
            repository=f"{owner}/{repo}",
            timeout_seconds=timeout_seconds
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request and map failures onto TransportError.

        Raises:
            NotFoundError: If GitHub answers 404
            TransportError: On any other non-2xx answer or transport failure
        """
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise TransportError(f"{method} {url} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        logger.debug(
            "GitHub API response",
            method=method,
            url=str(response.request.url),
            status_code=response.status_code
        )

        if response.is_success:
            return response

        message = _error_message(response)
        if response.status_code == 404:
            raise NotFoundError(f"{method} {url} returned 404: {message}")
        raise TransportError(
            f"{method} {url} returned {response.status_code}: {message}",
            status_code=response.status_code
        )

    async def iter_pages(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None
    ) -> AsyncIterator[List[Dict[str, Any]]]:
        """
        Yield each page of a list endpoint, following Link rel="next".

        Args:
            url: First page path or URL
            params: Query parameters for the first page

        Yields:
            Decoded JSON array of each page
        """
        next_url: Optional[str] = url
        while next_url:
            response = await self._request("GET", next_url, params=params)
            yield response.json()
            # The next link already carries the query string
            params = None
            next_url = response.links.get("next", {}).get("url")

    async def get_webhook(self, hook_id: int) -> Webhook:
        response = await self._request("GET", f"{self._repo_path}/hooks/{hook_id}")
        return Webhook(**response.json())

    async def list_webhooks(self) -> List[Webhook]:
        """List every webhook configured on the repository."""
        webhooks: List[Webhook] = []
        async for page in self.iter_pages(f"{self._repo_path}/hooks", params={"per_page": 100}):
            webhooks.extend(Webhook(**item) for item in page)
        return webhooks

    async def iter_delivery_pages(
        self,
        hook_id: int,
        per_page: int = 100
    ) -> AsyncIterator[List[DeliveryAttempt]]:
        """
        Yield pages of deliveries for a webhook, newest first.

        Each page is ordered newest first and every page is older than
        the one before it.
        """
        async for page in self.iter_pages(
            f"{self._repo_path}/hooks/{hook_id}/deliveries",
            params={"per_page": per_page}
        ):
            yield [DeliveryAttempt(**item) for item in page]

    async def redeliver_delivery(self, hook_id: int, delivery_id: int) -> None:
        """Ask GitHub to attempt a delivery again."""
        await self._request(
            "POST",
            f"{self._repo_path}/hooks/{hook_id}/deliveries/{delivery_id}/attempts"
        )

    async def get_variable(self, name: str) -> str:
        """
        Read an Actions repository variable.

        Raises:
            NotFoundError: If the variable does not exist
        """
        response = await self._request("GET", f"{self._repo_path}/actions/variables/{name}")
        return response.json()["value"]

    async def create_variable(self, name: str, value: str) -> None:
        await self._request(
            "POST",
            f"{self._repo_path}/actions/variables",
            json={"name": name, "value": value}
        )

    async def update_variable(self, name: str, value: str) -> None:
        await self._request(
            "PATCH",
            f"{self._repo_path}/actions/variables/{name}",
            json={"name": name, "value": value}
        )


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text[:500]
