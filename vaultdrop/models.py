from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    id: str
    name: str
    email: str
    is_verified: bool = False
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "User":
        return cls(
            id=str(payload.get("_id", payload.get("id", ""))),
            name=payload.get("name", ""),
            email=payload.get("email", ""),
            is_verified=bool(payload.get("isVerified", False)),
            created_at=payload.get("createdAt"),
            updated_at=payload.get("updatedAt"),
        )


@dataclass
class Subscription:
    key: str | None = None
    plan: str = "free"
    status: str = "inactive"

    @property
    def is_premium_active(self) -> bool:
        return self.plan == "premium" and self.status == "active"

    @classmethod
    def from_payload(cls, payload: dict) -> "Subscription":
        return cls(
            key=payload.get("key"),
            plan=payload.get("plan", "free"),
            status=payload.get("status", "inactive"),
        )


@dataclass
class UserProfile:
    user: User
    subscription: Subscription

    @classmethod
    def from_payload(cls, payload: dict) -> "UserProfile":
        if not isinstance(payload, dict) or not isinstance(payload.get("user"), dict):
            raise RuntimeError("Profile response missing user.")
        return cls(
            user=User.from_payload(payload["user"]),
            subscription=Subscription.from_payload(payload.get("subscription") or {}),
        )


@dataclass
class FileItem:
    id: str
    name: str
    original_name: str | None = None
    type: str | None = None
    size: int = 0
    url: str | None = None
    user_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "FileItem":
        return cls(
            id=str(payload.get("_id", payload.get("id", ""))),
            name=payload.get("name", ""),
            original_name=payload.get("originalName"),
            type=payload.get("type"),
            size=int(payload.get("size") or 0),
            url=payload.get("url"),
            user_id=payload.get("userId"),
            created_at=payload.get("createdAt"),
            updated_at=payload.get("updatedAt"),
        )
