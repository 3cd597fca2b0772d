import logging
from typing import Any, Dict, Optional
import httpx
from medicare.config.database import settings
from medicare.utils.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class KhaltiGateway:
    """
    Thin client for the Khalti ePayment API.

    Makes exactly one attempt per call. Every failure (timeout, transport
    error, non-2xx status, unparseable body) is raised as ExternalServiceError;
    retrying is left to the caller.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.secret_key = secret_key if secret_key is not None else settings.khalti_secret_key
        self.base_url = (base_url or settings.khalti_api_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.payment_gateway_timeout
        self.transport = transport

        if not self.secret_key:
            logger.warning("KHALTI_SECRET_KEY not set; wallet payments will be rejected by the gateway")

    def _post(self, path: str, payload: Dict[str, Any], timeout: Optional[float] = None) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Key {self.secret_key}",
            "Content-Type": "application/json"
        }

        try:
            with httpx.Client(
                base_url=self.base_url,
                timeout=timeout if timeout is not None else self.timeout,
                transport=self.transport,
            ) as client:
                response = client.post(path, headers=headers, json=payload)
        except httpx.TimeoutException:
            logger.warning(f"Khalti -> {path} timed out")
            raise ExternalServiceError("Payment gateway timeout")
        except httpx.HTTPError as e:
            logger.error(f"Khalti -> {path} transport error: {e}")
            raise ExternalServiceError("Payment gateway unreachable")

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success:
            logger.error(f"Khalti -> {path} HTTP {response.status_code}: {response.text}")
            raise ExternalServiceError("Payment gateway rejected the request", details=body)

        if not isinstance(body, dict):
            logger.error(f"Khalti -> {path} returned an unparseable body")
            raise ExternalServiceError("Invalid response from payment gateway")

        return body

    def initiate(self, payload: Dict[str, Any], timeout: Optional[float] = None) -> Dict[str, Any]:
        """Start a payment session. Returns at least {pidx, payment_url}."""
        data = self._post("/epayment/initiate/", payload, timeout=timeout)
        if not data.get("pidx") or not data.get("payment_url"):
            raise ExternalServiceError("Invalid response from payment gateway", details=data)
        return data

    def lookup(self, pidx: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Fetch the gateway's view of a payment session. Returns at least {status}."""
        data = self._post("/epayment/lookup/", {"pidx": pidx}, timeout=timeout)
        if not data.get("status"):
            raise ExternalServiceError("Invalid response from payment gateway", details=data)
        return data


def get_payment_gateway() -> KhaltiGateway:
    """Dependency injection for the payment gateway"""
    return KhaltiGateway()
