# storefront/services/portone_client.py
import requests

from storefront.utils.retry import http_retry
from storefront.utils.settings import (
    PORTONE_API_URL,
    PORTONE_REST_API_KEY,
    PORTONE_REST_API_SECRET,
    PORTONE_TIMEOUT_SECONDS,
)
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class GatewayAuthError(Exception):
    """The gateway refused our credentials."""


class GatewayResponseError(Exception):
    """The gateway answered, but not with something we can use."""


class PortOneClient:
    """
    PortOne (iamport) REST API.

    Every query needs a short-lived access token, so one verification is
    two round trips: POST /users/getToken, then GET /payments/{imp_uid}.
    Both carry an explicit timeout.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_secret: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.api_key = PORTONE_REST_API_KEY if api_key is None else api_key
        self.api_secret = PORTONE_REST_API_SECRET if api_secret is None else api_secret
        self.base_url = (base_url or PORTONE_API_URL).rstrip("/")
        self.timeout = timeout or PORTONE_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_secret)

    @staticmethod
    def _unwrap(body) -> dict:
        #{"code": 0, "message": null, "response": {...}}
        if not isinstance(body, dict):
            raise GatewayResponseError(f"Unexpected response body: {body!r}")
        if body.get("code") != 0:
            raise GatewayResponseError(body.get("message") or f"code {body.get('code')}")
        response = body.get("response")
        if not isinstance(response, dict):
            raise GatewayResponseError("Missing response payload")
        return response

    @http_retry()
    def get_access_token(self) -> str:
        url = f"{self.base_url}/users/getToken"
        logger.info(f"PortOneClient POST {url}")

        resp = self.session.post(
            url,
            json={"imp_key": self.api_key, "imp_secret": self.api_secret},
            timeout=self.timeout,
        )
        if resp.status_code in (401, 403):
            raise GatewayAuthError(f"Token request rejected with HTTP {resp.status_code}")
        resp.raise_for_status()

        try:
            response = self._unwrap(resp.json())
        except GatewayResponseError as e:
            raise GatewayAuthError(str(e)) from e

        token = response.get("access_token")
        if not token:
            raise GatewayAuthError("Token response without access_token")
        return token

    @http_retry()
    def get_payment(self, imp_uid: str, access_token: str) -> dict:
        url = f"{self.base_url}/payments/{imp_uid}"
        logger.info(f"PortOneClient GET {url}")

        resp = self.session.get(
            url,
            headers={"Authorization": access_token},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return self._unwrap(resp.json())
