import aiohttp
import asyncio
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from repo_dashboard.domain.exceptions import UpstreamError
from repo_dashboard.domain.models import RepositoryReference

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
# Status reported when no HTTP response was received at all.
NO_RESPONSE_STATUS = 0

class GitHubRestClient:
    """
    Client for the read-only parts of the GitHub REST API used by the dashboard.
    Requests are issued once; non-success responses surface as UpstreamError.
    """

    def __init__(self, token: Optional[str] = None, api_url: str = GITHUB_API_URL):
        self.headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "github-repo-dashboard",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        self.api_url = api_url.rstrip("/")

    async def fetch_repository(
        self,
        session: aiohttp.ClientSession,
        ref: RepositoryReference,
    ) -> Dict[str, Any]:
        """
        Fetches GET /repos/{owner}/{name}.

        Returns:
            The decoded repository JSON object.
        """
        return await self._get(session, f"/repos/{ref.owner}/{ref.name}")

    async def fetch_contents(
        self,
        session: aiohttp.ClientSession,
        ref: RepositoryReference,
        path: str = "",
    ) -> Any:
        """
        Fetches GET /repos/{owner}/{name}/contents/{path}.

        Returns:
            A list of entries for a directory, or an object for a single file.
        """
        endpoint = f"/repos/{ref.owner}/{ref.name}/contents"
        if path:
            endpoint = f"{endpoint}/{quote(path.strip('/'))}"
        return await self._get(session, endpoint)

    async def _get(self, session: aiohttp.ClientSession, endpoint: str) -> Any:
        url = f"{self.api_url}{endpoint}"
        logger.debug(f"GET {url}")

        try:
            async with session.get(url, headers=self.headers) as response:
                if not 200 <= response.status < 300:
                    reason = response.reason or "Unknown error"
                    logger.warning(f"GitHub returned {response.status} ({reason}) for {endpoint}.")
                    raise UpstreamError(status=response.status, message=reason)

                return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            message = str(e) or type(e).__name__
            logger.warning(f"Request to {endpoint} failed: {message}")
            raise UpstreamError(status=NO_RESPONSE_STATUS, message=message) from e
