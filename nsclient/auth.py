"""OAuth client-credentials token exchange."""

import logging

import httpx
from pydantic import ValidationError

from nsclient.errors import AuthError
from nsclient.models import Credentials, Token

logger = logging.getLogger(__name__)


def fetch_token(
    credentials: Credentials,
    token_url: str,
    http: httpx.Client | None = None,
    timeout: float = 30.0,
) -> Token:
    """Exchange client credentials for a bearer token.

    Raises AuthError on transport failures, non-2xx responses, undecodable
    bodies and non-Bearer tokens.
    """
    logger.info(f"Requesting token for client {credentials.client_id} from {token_url}")

    owns_client = http is None
    client = http or httpx.Client(timeout=timeout)
    try:
        response = client.post(
            token_url,
            data=credentials.form_data(),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=timeout,
        )
    except httpx.TimeoutException as e:
        raise AuthError(None, f"Timeout calling OAuth API after {timeout:g}s") from e
    except httpx.HTTPError as e:
        raise AuthError(None, f"Could not reach OAuth API: {e}") from e
    finally:
        if owns_client:
            client.close()

    if not response.is_success:
        logger.error(f"Token request failed with status {response.status_code}")
        raise AuthError(response.status_code, response.text)

    try:
        token = Token.model_validate_json(response.text)
    except ValidationError as e:
        raise AuthError(response.status_code, f"Error decoding token response: {e}") from e

    if not token.is_bearer:
        raise AuthError(response.status_code, f"Unknown token type: {token.token_type}")

    logger.debug("Token acquired")
    return token
