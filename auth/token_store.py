from __future__ import annotations

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from auth.models import Credential


class CredentialStore(ABC):
    """Holds the current token pair.

    Implementations swap a whole immutable ``Credential`` on every write, so a
    reader never sees a new access token next to a stale refresh token.
    """

    @abstractmethod
    async def get(self) -> Credential:
        raise NotImplementedError

    @abstractmethod
    async def set_tokens(self, access_token: str, refresh_token: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def clear(self) -> None:
        raise NotImplementedError


class MemoryCredentialStore(CredentialStore):
    def __init__(self, credential: Credential | None = None) -> None:
        self._credential = credential or Credential()

    async def get(self) -> Credential:
        return self._credential

    async def set_tokens(self, access_token: str, refresh_token: str) -> None:
        self._credential = Credential(access_token, refresh_token)

    async def clear(self) -> None:
        self._credential = Credential()


class FileCredentialStore(CredentialStore):
    def __init__(self, path: str | Path = ".vaultdrop-auth.json") -> None:
        self._path = Path(path)
        self._credential = self._read()

    async def get(self) -> Credential:
        return self._credential

    async def set_tokens(self, access_token: str, refresh_token: str) -> None:
        credential = Credential(access_token, refresh_token)
        self._write(credential)
        self._credential = credential

    async def clear(self) -> None:
        credential = Credential()
        self._write(credential)
        self._credential = credential

    def _read(self) -> Credential:
        if not self._path.exists():
            return Credential()

        raw = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise RuntimeError("Credential file is invalid; expected top-level JSON object.")
        access_token = raw.get("token")
        refresh_token = raw.get("refreshToken")
        if not access_token:
            return Credential()
        return Credential(access_token, refresh_token)

    def _write(self, credential: Credential) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {}
        if credential.authenticated:
            payload = {
                "token": credential.access_token,
                "refreshToken": credential.refresh_token,
            }

        fd, tmp_name = tempfile.mkstemp(
            prefix=f"{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        tmp_path = Path(tmp_name)

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
