"""Remote repository lookup — latest available version per package."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from rootdiff.config import DEFAULT_PACKAGES_API_URL, DEFAULT_TIMEOUT_SECONDS
from rootdiff.errors import RepositoryLookupError
from rootdiff.packages.models import PackageInfo

logger = logging.getLogger(__name__)

PACKAGE_NAME_PLACEHOLDER = "{packageName}"


class RepositoryClient:
    """Fetches package metadata from the distribution's packages API.

    Parameters
    ----------
    api_url : str
        URL template containing ``{packageName}``. Without the placeholder
        the package name is appended as the last path segment.
    timeout : float
        Seconds before a request is abandoned.
    client : httpx.Client | None
        Pre-configured client (used by tests to inject a mock transport).
    """

    def __init__(
        self,
        api_url: str = DEFAULT_PACKAGES_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self._client = client

    def url_for(self, name: str) -> str:
        encoded = quote(name, safe="")
        if PACKAGE_NAME_PLACEHOLDER in self.api_url:
            return self.api_url.replace(PACKAGE_NAME_PLACEHOLDER, encoded)
        return f"{self.api_url.rstrip('/')}/{encoded}"

    def lookup(self, name: str) -> PackageInfo:
        """Return the repository metadata for ``name``.

        Raises:
            RepositoryLookupError: On transport failure, a non-200 response,
                an unparseable body, or a missing/non-string ``version``.
        """
        url = self.url_for(name)
        logger.debug("lookup: requesting %s", url)

        try:
            if self._client is not None:
                response = self._client.get(url, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.get(url)
        except httpx.HTTPError as e:
            logger.debug("lookup: request for %s failed: %s", name, e)
            raise RepositoryLookupError(
                f"Could not reach the package repository for '{name}': {e}",
                details={"package": name, "url": url},
            ) from e

        if response.status_code != httpx.codes.OK:
            logger.debug("lookup: %s returned status %d", url, response.status_code)
            raise RepositoryLookupError(
                f"Package repository returned status {response.status_code} for '{name}'",
                details={"package": name, "url": url, "status": response.status_code},
            )

        try:
            return PackageInfo.model_validate_json(response.content)
        except ValidationError as e:
            logger.debug("lookup: unexpected metadata for %s: %s", name, e)
            raise RepositoryLookupError(
                f"Unexpected value when retrieving upstream version of '{name}'",
                details={"package": name, "url": url, "errors": e.errors()},
            ) from e

    def latest_version(self, name: str) -> str:
        return self.lookup(name).version
