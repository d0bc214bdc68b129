"""Base image package diff, delegated to the remote image-diff service."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from rootdiff.config import RemoteServiceConfig
from rootdiff.errors import RemoteServiceError
from rootdiff.packages.models import DiffResult, ImageDiffResponse

logger = logging.getLogger(__name__)


def base_image_package_diff(
    old_digest: str,
    new_digest: str,
    config: RemoteServiceConfig,
    client: httpx.Client | None = None,
) -> DiffResult:
    """Retrieve the base packages changed between two image digests.

    Makes a single attempt; retrying is left to the caller.

    Raises:
        RemoteServiceError: On transport failure or timeout, a non-200
            status, or a body that does not match the expected shape.
    """
    url = config.diff_endpoint
    body = {"old_digest": old_digest, "new_digest": new_digest}
    logger.debug("base_image_package_diff: requesting %s with body %s", url, body)

    try:
        if client is not None:
            response = client.request("GET", url, json=body, timeout=config.timeout_seconds)
        else:
            with httpx.Client(timeout=config.timeout_seconds) as own_client:
                response = own_client.request("GET", url, json=body)
    except httpx.HTTPError as e:
        logger.debug("base_image_package_diff: request failed: %s", e)
        raise RemoteServiceError(
            f"Image diff request to {url} failed: {e}",
            details={"url": url},
        ) from e

    if response.status_code != httpx.codes.OK:
        logger.debug("base_image_package_diff: received non-ok status %d", response.status_code)
        raise RemoteServiceError(
            f"Package diff server returned non-OK status {response.status_code}",
            details={"url": url, "status": response.status_code},
        )

    try:
        payload = ImageDiffResponse.model_validate_json(response.content)
    except ValidationError as e:
        logger.debug("base_image_package_diff: malformed response: %s", e)
        raise RemoteServiceError(
            "Package diff server returned a malformed response",
            details={"url": url, "errors": e.errors()},
        ) from e

    result = payload.to_result()
    logger.debug("base_image_package_diff: %d package change(s)", result.total)
    return result
