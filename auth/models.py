from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Credential:
    access_token: str | None = None
    refresh_token: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.access_token is not None


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str

    @classmethod
    def from_payload(cls, payload) -> "TokenPair":
        if not isinstance(payload, dict):
            raise RuntimeError("Token response must be a JSON object.")

        access_token = payload.get("token", payload.get("accessToken"))
        refresh_token = payload.get("refreshToken")

        if not isinstance(access_token, str) or not access_token:
            raise RuntimeError("Token response missing token.")
        if not isinstance(refresh_token, str) or not refresh_token:
            raise RuntimeError("Token response missing refreshToken.")

        return cls(access_token=access_token, refresh_token=refresh_token)
