from __future__ import annotations

import asyncio
import logging
from collections import deque

from auth.models import TokenPair
from auth.token_store import CredentialStore
from vaultdrop.constants import LOGGER
from vaultdrop.errors import NoRefreshTokenError, RefreshFailedError


class RefreshCoordinator:
    """Single-flight session refresh.

    The first caller to see an expired access token runs the refresh; callers
    arriving while it is in flight queue up and are resolved (or failed) in
    arrival order with its outcome. The flag check and the queue append happen
    with no ``await`` in between, which is what keeps this safe on one event loop.
    """

    def __init__(
        self,
        store: CredentialStore,
        refresh_fn,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._refresh_fn = refresh_fn
        self._logger = logger or LOGGER
        self._refreshing = False
        self._epoch = 0
        self._pending: deque[asyncio.Future[str]] = deque()

    @property
    def refreshing(self) -> bool:
        return self._refreshing

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def invalidate(self) -> None:
        """Detach any in-flight cycle from the store.

        Called when the session is replaced or ended (login, logout). A cycle
        started before this call no longer writes tokens or clears the store;
        its callers fail with ``RefreshFailedError`` instead.
        """
        self._epoch += 1

    async def fresh_access_token(self, stale_token: str | None = None) -> str:
        if self._refreshing:
            future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            self._pending.append(future)
            self._logger.debug("Waiting on in-flight refresh (queued=%s)", len(self._pending))
            return await future

        self._refreshing = True
        epoch = self._epoch
        try:
            credential = await self._store.get()
            if (
                stale_token is not None
                and credential.access_token
                and credential.access_token != stale_token
            ):
                # Another cycle already replaced the token this request was sent with.
                access_token = credential.access_token
            else:
                tokens = await self._refresh(credential.refresh_token)
                if epoch != self._epoch:
                    self._logger.info("Session ended while refreshing; discarding new tokens")
                    raise RefreshFailedError("Session ended while refreshing.")
                await self._store.set_tokens(tokens.access_token, tokens.refresh_token)
                access_token = tokens.access_token
                self._logger.info(
                    "Session refreshed; resuming %s queued request(s)", len(self._pending)
                )
            self._resolve_pending(access_token)
            return access_token
        except RefreshFailedError as error:
            try:
                if epoch == self._epoch:
                    await self._end_session()
            finally:
                self._reject_pending(error)
            raise
        except BaseException:
            self._reject_pending(RefreshFailedError("Session refresh was interrupted."))
            raise
        finally:
            self._refreshing = False

    async def _end_session(self) -> None:
        credential = await self._store.get()
        if credential.access_token is None and credential.refresh_token is None:
            return
        await self._store.clear()

    async def _refresh(self, refresh_token: str | None) -> TokenPair:
        if not refresh_token:
            self._logger.warning("Access token rejected and no refresh token is available")
            raise NoRefreshTokenError()

        self._logger.info("Access token expired; refreshing session")
        try:
            return await self._refresh_fn(refresh_token)
        except Exception as error:
            self._logger.warning("Session refresh failed: %s", error)
            raise RefreshFailedError() from error

    def _resolve_pending(self, access_token: str) -> None:
        while self._pending:
            future = self._pending.popleft()
            if not future.done():
                future.set_result(access_token)

    def _reject_pending(self, error: BaseException) -> None:
        while self._pending:
            future = self._pending.popleft()
            if not future.done():
                future.set_exception(error)
