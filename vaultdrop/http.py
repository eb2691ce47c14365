from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace

import httpx

from auth.token_store import CredentialStore

from .constants import DEFAULT_TIMEOUT_SECONDS, IDEMPOTENT_METHODS, LOGGER
from .errors import AuthExpiredError, HttpError, NetworkError

ACCEPT_HEADERS = {
    "json": "application/json",
    "text": "text/plain, */*",
    "bytes": "*/*",
}


def bearer(token: str) -> str:
    return f"Bearer {token}"


@dataclass(frozen=True)
class CallDescriptor:
    method: str
    url: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    params: dict | None = None
    json: object = None
    content: bytes | None = None
    files: dict | None = None
    response_type: str = "json"
    authenticate: bool = True
    refreshable: bool = True
    retried: bool = False

    def __post_init__(self) -> None:
        if self.response_type not in ACCEPT_HEADERS:
            raise ValueError(f"Unsupported response_type: {self.response_type!r}")
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", httpx.Headers(self.headers))

    def with_authorization(self, access_token: str) -> "CallDescriptor":
        headers = httpx.Headers(self.headers)
        headers["Authorization"] = bearer(access_token)
        return replace(self, headers=headers, retried=True)


def _seconds_until_retry(retry_after: str | None) -> int | None:
    if retry_after is None:
        return None
    try:
        return max(0, int(retry_after))
    except ValueError:
        return None


class RetryTransport(httpx.AsyncBaseTransport):
    """Retries idempotent requests on 429 and 5xx responses.

    401 passes straight through; session refresh is handled above the transport.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        *,
        max_retries: int = 2,
        sleep=asyncio.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._max_retries = max(0, max_retries)
        self._sleep = sleep
        self._logger = logger or LOGGER

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if self._max_retries == 0 or request.method not in IDEMPOTENT_METHODS:
            return await self._transport.handle_async_request(request)

        body = request.content
        retries = 0

        while True:
            next_request = httpx.Request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                content=body,
                extensions=request.extensions,
            )
            response = await self._transport.handle_async_request(next_request)

            if response.status_code == 429 and retries < min(self._max_retries, 1):
                wait_seconds = _seconds_until_retry(response.headers.get("retry-after"))
                if wait_seconds is None:
                    wait_seconds = 1
                self._logger.warning(
                    "Retrying 429 after %ss (%s %s)",
                    wait_seconds,
                    request.method,
                    request.url,
                )
                await response.aclose()
                await self._sleep(wait_seconds)
                retries += 1
                continue

            if 500 <= response.status_code < 600 and retries < self._max_retries:
                backoff_seconds = 2**retries
                self._logger.warning(
                    "Retrying %s after %ss (%s %s)",
                    response.status_code,
                    backoff_seconds,
                    request.method,
                    request.url,
                )
                await response.aclose()
                await self._sleep(backoff_seconds)
                retries += 1
                continue

            return response

    async def aclose(self) -> None:
        await self._transport.aclose()


def _loggable_url(request: httpx.Request) -> httpx.URL:
    # Query strings can carry one-time tokens (email verification).
    return request.url.copy_with(query=None)


async def log_request(request: httpx.Request) -> None:
    LOGGER.info("VaultDrop request %s %s", request.method, _loggable_url(request))


async def log_response(response: httpx.Response) -> None:
    request = response.request
    LOGGER.info(
        "VaultDrop response %s %s -> %s",
        request.method,
        _loggable_url(request),
        response.status_code,
    )
    if response.status_code >= 400:
        body = await response.aread()
        text = body.decode("utf-8", errors="replace")
        LOGGER.warning("VaultDrop error body: %s", text[:500])


def build_http_client(
    base_url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    max_retries: int = 0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        timeout=httpx.Timeout(timeout),
        transport=RetryTransport(
            transport or httpx.AsyncHTTPTransport(),
            max_retries=max_retries,
        ),
        event_hooks={"request": [log_request], "response": [log_response]},
    )


def _error_body(response: httpx.Response):
    try:
        return response.json()
    except ValueError:
        return response.text or None


def read_body(response: httpx.Response, response_type: str = "json"):
    if response_type == "bytes":
        return response.content
    if response_type == "text":
        return response.text
    if not response.content:
        return None
    return response.json()


class RequestDispatcher:
    def __init__(self, client: httpx.AsyncClient, store: CredentialStore) -> None:
        self._client = client
        self._store = store

    async def send(self, descriptor: CallDescriptor) -> httpx.Response:
        headers = httpx.Headers(descriptor.headers)
        injected_token = None
        if descriptor.authenticate and "authorization" not in headers:
            credential = await self._store.get()
            if credential.access_token:
                injected_token = credential.access_token
                headers["Authorization"] = bearer(injected_token)
        if "accept" not in headers:
            headers["Accept"] = ACCEPT_HEADERS[descriptor.response_type]

        try:
            response = await self._client.request(
                descriptor.method,
                descriptor.url,
                headers=headers,
                params=descriptor.params,
                json=descriptor.json,
                content=descriptor.content,
                files=descriptor.files,
            )
        except httpx.TransportError as error:
            raise NetworkError(
                f"{descriptor.method} {descriptor.url} failed: {error}"
            ) from error

        if response.is_success:
            return response

        body = _error_body(response)
        if (
            response.status_code == 401
            and descriptor.authenticate
            and descriptor.refreshable
            and not descriptor.retried
        ):
            raise AuthExpiredError(
                body,
                access_token=injected_token,
            )
        raise HttpError(response.status_code, body)
