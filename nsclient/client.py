"""Platform API namespace endpoint."""

import json
import logging

import httpx
from pydantic import ValidationError

from nsclient.errors import ApiError, ApiTimeoutError
from nsclient.models import NamespaceRequest, NamespaceResponse, Token

logger = logging.getLogger(__name__)


def namespace_url(hostname: str) -> str:
    return f"https://{hostname}/namespace"


def upsert_namespace(
    token: Token | str,
    hostname: str,
    request: NamespaceRequest,
    http: httpx.Client | None = None,
    timeout: float = 30.0,
) -> NamespaceResponse:
    """Create or update a dynamic namespace.

    The API answers the same way for both cases ("created or updated"), so
    calling this twice with the same request is safe.
    """
    url = namespace_url(hostname)
    payload = request.to_payload()
    logger.info(f"Submitting request body to {url}: {json.dumps(payload, default=str)}")

    owns_client = http is None
    client = http or httpx.Client(timeout=timeout)
    try:
        response = client.post(
            url,
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
        )
    except httpx.TimeoutException as e:
        raise ApiTimeoutError(timeout) from e
    except httpx.HTTPError as e:
        raise ApiError(
            None, f"Got an unknown error communicating with the Platform API: {e}"
        ) from e
    finally:
        if owns_client:
            client.close()

    if not response.is_success:
        logger.error(f"Namespace request failed with status {response.status_code}")
        raise ApiError(response.status_code, response.text)

    try:
        result = NamespaceResponse.model_validate_json(response.text)
    except ValidationError as e:
        raise ApiError(response.status_code, f"Error decoding API response: {e}") from e

    logger.info(f"Namespace {result.namespace} expires at {result.expiry}")
    return result
