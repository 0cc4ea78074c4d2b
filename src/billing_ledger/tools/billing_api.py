"""Async client for the billing backend's REST API."""

import asyncio
from decimal import Decimal
from typing import Any, cast

import httpx
import structlog

from billing_ledger.config import get_settings
from billing_ledger.money import to_api_number

logger = structlog.get_logger(__name__)


class BillingAPIError(Exception):
    """Base exception for billing backend errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class AuthenticationError(BillingAPIError):
    """Authentication failed."""

    pass


class NotFoundError(BillingAPIError):
    """Requested record does not exist."""

    pass


# Every failure talking to the backend is a transport error to the engine
TransportError = BillingAPIError


class BillingAPIClient:
    """Async client for the billing backend with bearer token auth.

    Reads are retried on network errors with exponential backoff. Writes are
    sent once: a failed POST or PUT surfaces immediately so a save is never
    applied twice.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        email: str | None = None,
        password: str | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.billing_api_url).rstrip("/")
        if token is None and settings.billing_api_token is not None:
            token = settings.billing_api_token.get_secret_value()
        self._token: str | None = token
        self._email = email or settings.billing_email
        if password is None and settings.billing_password is not None:
            password = settings.billing_password.get_secret_value()
        self._password = password
        self._timeout = settings.billing_timeout
        self._max_retries = settings.billing_max_retries

        self._client: httpx.AsyncClient | None = None
        self._lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "BillingAPIClient":
        await self._ensure_authenticated()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # === Authentication ===

    async def login(self) -> dict[str, Any]:
        """Exchange email and password for a bearer token."""
        if not self._email or not self._password:
            raise AuthenticationError("No token or credentials configured")

        client = await self._get_client()
        response = await client.post(
            "/api/auth/login",
            json={"email": self._email, "password": self._password},
        )

        if response.status_code == 401:
            raise AuthenticationError("Invalid credentials", status_code=401)
        response.raise_for_status()

        data_raw = response.json()
        if not isinstance(data_raw, dict) or "token" not in data_raw:
            raise BillingAPIError("Invalid login response format")
        data = cast(dict[str, Any], data_raw)
        self._token = data["token"]

        logger.info("logged_in", user=data.get("user", {}).get("email", self._email))
        return data

    async def _ensure_authenticated(self) -> None:
        """Ensure we hold a bearer token."""
        async with self._lock:
            if not self._token:
                await self.login()

    def _get_headers(self) -> dict[str, str]:
        """Get request headers with auth token."""
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    # === Generic Request Methods ===

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        retry_count: int = 0,
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Make an authenticated API request."""
        await self._ensure_authenticated()
        client = await self._get_client()

        try:
            response = await client.request(
                method=method,
                url=path,
                params=params,
                json=json,
                headers=self._get_headers(),
            )
        except httpx.RequestError as e:
            if method == "GET" and retry_count < self._max_retries:
                await asyncio.sleep(2**retry_count)  # Exponential backoff
                return await self._request(method, path, params, json, retry_count + 1)
            raise BillingAPIError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            try:
                error_detail = response.json() if response.content else {}
            except ValueError:
                error_detail = {"raw": response.text[:500] if response.text else "empty response"}
            message = (
                error_detail.get("message") if isinstance(error_detail, dict) else None
            ) or f"API error: {response.status_code}"
            error_cls: type[BillingAPIError] = BillingAPIError
            if response.status_code == 401:
                error_cls = AuthenticationError
            elif response.status_code == 404:
                error_cls = NotFoundError
            raise error_cls(message, status_code=response.status_code, details=error_detail)

        return response.json() if response.content else {}

    async def get(
        self, path: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Make GET request."""
        return await self._request("GET", path, params=params)

    async def post(
        self, path: str, json: dict[str, Any] | None = None
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Make POST request."""
        return await self._request("POST", path, json=json)

    async def put(
        self, path: str, json: dict[str, Any] | None = None
    ) -> dict[str, Any] | list[dict[str, Any]]:
        """Make PUT request."""
        return await self._request("PUT", path, json=json)

    @staticmethod
    def _as_dict(result: Any) -> dict[str, Any]:
        return result if isinstance(result, dict) else {}

    # === Invoice Endpoints ===

    async def create_invoice(self, data: dict[str, Any]) -> dict[str, Any]:
        """Create an invoice; the backend assigns ``_id`` and ``invoiceNumber``."""
        return self._as_dict(await self.post("/api/invoices", json=data))

    async def update_invoice(self, invoice_id: str, data: dict[str, Any]) -> dict[str, Any]:
        """Replace an invoice with its full next state."""
        return self._as_dict(await self.put(f"/api/invoices/{invoice_id}", json=data))

    async def get_invoice(self, invoice_id: str) -> dict[str, Any]:
        """Get invoice by ID."""
        return self._as_dict(await self.get(f"/api/invoices/{invoice_id}"))

    # === Customer Endpoints ===

    async def get_customer(self, customer_id: str) -> dict[str, Any]:
        """Get customer by ID."""
        return self._as_dict(await self.get(f"/api/customers/{customer_id}"))

    async def patch_customer(self, customer_id: str, amount_due: Decimal) -> dict[str, Any]:
        """Write a customer's new absolute amount due."""
        return self._as_dict(
            await self.put(
                f"/api/customers/{customer_id}",
                json={"amountDue": to_api_number(amount_due)},
            )
        )

    # === Catalog & Settings ===

    async def list_products(self) -> list[dict[str, Any]]:
        """List products with stock levels."""
        result = await self.get("/api/products")
        if isinstance(result, dict):
            items = result.get("data") or result.get("items") or []
            return items if isinstance(items, list) else []
        return result

    async def get_settings(self) -> dict[str, Any]:
        """Get the account's billing settings (tax switch and rate)."""
        return self._as_dict(await self.get("/api/settings"))
