from __future__ import annotations

import httpx

from auth import tokens as auth_tokens
from auth.refresh import RefreshCoordinator
from auth.token_store import CredentialStore, FileCredentialStore, MemoryCredentialStore

from .constants import (
    CHANGE_PASSWORD_PATH,
    DEFAULT_API_URL,
    DEFAULT_TIMEOUT_SECONDS,
    FILES_LIST_PATH,
    FILES_UPLOAD_PATH,
    FORGOT_PASSWORD_PATH,
    LOGGER,
    LOGOUT_PATH,
    ME_PATH,
    PAYMENTS_SESSION_PATH,
    RESET_PASSWORD_PATH,
    SIGNUP_PATH,
    VERIFY_EMAIL_PATH,
    file_delete_path,
    file_download_path,
    file_rename_path,
)
from .env import load_settings, setup_logging
from .errors import AuthExpiredError, ClientError, RefreshFailedError, SubscriptionRequiredError
from .http import CallDescriptor, RequestDispatcher, build_http_client, read_body
from .models import FileItem, Subscription, User, UserProfile


class AuthenticatedClient:
    """VaultDrop API client.

    Every call carries the current access token. A 401 on a call that has not
    been retried yet hands off to the refresh coordinator and the call is sent
    once more with the refreshed token; any further failure reaches the caller.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        store: CredentialStore | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = 0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.store = store or MemoryCredentialStore()
        self._own_client = http_client is None
        self._http = http_client or build_http_client(
            self.base_url,
            timeout=timeout,
            max_retries=max_retries,
            transport=transport,
        )
        self._dispatcher = RequestDispatcher(self._http, self.store)
        self._coordinator = RefreshCoordinator(self.store, self._refresh_tokens)
        self.profile: UserProfile | None = None

    async def __aenter__(self) -> "AuthenticatedClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._own_client:
            await self._http.aclose()

    @property
    def coordinator(self) -> RefreshCoordinator:
        return self._coordinator

    @property
    def user(self) -> User | None:
        return self.profile.user if self.profile else None

    @property
    def subscription(self) -> Subscription | None:
        return self.profile.subscription if self.profile else None

    async def is_authenticated(self) -> bool:
        credential = await self.store.get()
        return credential.authenticated

    async def _refresh_tokens(self, refresh_token: str):
        return await auth_tokens.refresh_tokens(self._dispatcher, refresh_token)

    # -- requests ----------------------------------------------------------------

    async def send(self, descriptor: CallDescriptor) -> httpx.Response:
        try:
            return await self._dispatcher.send(descriptor)
        except AuthExpiredError as error:
            stale_token = error.access_token

        try:
            access_token = await self._coordinator.fresh_access_token(stale_token)
        except RefreshFailedError:
            if not await self.is_authenticated():
                self.profile = None
            raise
        return await self._dispatcher.send(descriptor.with_authorization(access_token))

    async def request(
        self,
        method: str,
        url: str,
        *,
        json=None,
        content: bytes | None = None,
        files: dict | None = None,
        params: dict | None = None,
        headers: dict[str, str] | None = None,
        response_type: str = "json",
        authenticate: bool = True,
    ) -> httpx.Response:
        return await self.send(
            CallDescriptor(
                method,
                url,
                headers=httpx.Headers(headers or {}),
                params=params,
                json=json,
                content=content,
                files=files,
                response_type=response_type,
                authenticate=authenticate,
            )
        )

    async def get(self, url: str, **options) -> httpx.Response:
        return await self.request("GET", url, **options)

    async def post(self, url: str, json=None, **options) -> httpx.Response:
        return await self.request("POST", url, json=json, **options)

    async def patch(self, url: str, json=None, **options) -> httpx.Response:
        return await self.request("PATCH", url, json=json, **options)

    async def delete(self, url: str, **options) -> httpx.Response:
        return await self.request("DELETE", url, **options)

    # -- session -----------------------------------------------------------------

    async def login(self, email: str, password: str) -> UserProfile | None:
        tokens = await auth_tokens.login(self._dispatcher, email, password)
        self._coordinator.invalidate()
        await self.store.set_tokens(tokens.access_token, tokens.refresh_token)
        LOGGER.info("Logged in as %s", email)
        return await self.fetch_profile()

    async def logout(self) -> None:
        self._coordinator.invalidate()
        if await self.is_authenticated():
            try:
                await self._dispatcher.send(
                    CallDescriptor("POST", LOGOUT_PATH, refreshable=False)
                )
            except ClientError as error:
                LOGGER.warning("Server-side logout failed: %s", error)
        await self.store.clear()
        self.profile = None
        LOGGER.info("Logged out")

    async def fetch_profile(self) -> UserProfile | None:
        try:
            response = await self.get(ME_PATH)
            profile = UserProfile.from_payload(read_body(response))
        except (RuntimeError, ValueError) as error:
            LOGGER.warning("Profile fetch failed: %s", error)
            return None
        self.profile = profile
        return profile

    # -- account -----------------------------------------------------------------

    async def signup(self, name: str, email: str, password: str):
        response = await self.post(
            SIGNUP_PATH,
            {"name": name, "email": email, "password": password},
            authenticate=False,
        )
        return read_body(response)

    async def verify_email(self, token: str):
        response = await self.get(VERIFY_EMAIL_PATH, params={"token": token}, authenticate=False)
        return read_body(response)

    async def forgot_password(self, email: str):
        response = await self.post(FORGOT_PASSWORD_PATH, {"email": email}, authenticate=False)
        return read_body(response)

    async def reset_password(self, token: str, new_password: str):
        response = await self.post(
            RESET_PASSWORD_PATH,
            {"token": token, "newPassword": new_password},
            authenticate=False,
        )
        return read_body(response)

    async def change_password(self, current_password: str, new_password: str):
        response = await self.post(
            CHANGE_PASSWORD_PATH,
            {"currentPassword": current_password, "newPassword": new_password},
        )
        return read_body(response)

    # -- files -------------------------------------------------------------------

    def _premium_api_key(self) -> str:
        subscription = self.subscription
        if subscription is None or not subscription.is_premium_active or not subscription.key:
            raise SubscriptionRequiredError()
        return subscription.key

    async def list_files(self) -> list[FileItem]:
        response = await self.get(FILES_LIST_PATH)
        return [FileItem.from_payload(item) for item in read_body(response) or []]

    async def upload_file(
        self,
        filename: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ):
        api_key = self._premium_api_key()
        response = await self.post(
            FILES_UPLOAD_PATH,
            files={"file": (filename, content, content_type)},
            headers={"x-api-key": api_key},
        )
        return read_body(response)

    async def download_file(self, file_id: str) -> bytes:
        api_key = self._premium_api_key()
        response = await self.get(
            file_download_path(file_id),
            headers={"x-api-key": api_key},
            response_type="bytes",
        )
        return read_body(response, "bytes")

    async def delete_file(self, file_id: str):
        response = await self.delete(file_delete_path(file_id))
        return read_body(response)

    async def rename_file(self, file_id: str, name: str):
        response = await self.patch(file_rename_path(file_id), {"name": name})
        return read_body(response)

    # -- payments ----------------------------------------------------------------

    async def create_payment_session(self, plan: str = "premium") -> str | None:
        response = await self.post(PAYMENTS_SESSION_PATH, {"plan": plan})
        body = read_body(response)
        if isinstance(body, dict):
            return body.get("url")
        return None


def create_client() -> AuthenticatedClient:
    settings = load_settings()
    setup_logging()
    store: CredentialStore
    if settings.credentials_file:
        store = FileCredentialStore(settings.credentials_file)
    else:
        store = MemoryCredentialStore()
    return AuthenticatedClient(
        settings.api_url,
        store,
        timeout=settings.timeout,
        max_retries=settings.max_retries,
    )
