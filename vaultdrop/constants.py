from __future__ import annotations

import logging

LOGGER = logging.getLogger("vaultdrop.client")

DEFAULT_API_URL = "http://localhost:8080"
DEFAULT_TIMEOUT_SECONDS = 30

IDEMPOTENT_METHODS = {"GET", "HEAD", "OPTIONS", "PUT", "DELETE"}

SIGNUP_PATH = "/v1/auth/signup"
LOGIN_PATH = "/v1/auth/login"
ME_PATH = "/v1/auth/me"
REFRESH_PATH = "/v1/auth/refresh"
VERIFY_EMAIL_PATH = "/v1/auth/verify-email"
LOGOUT_PATH = "/v1/auth/logout"
FORGOT_PASSWORD_PATH = "/v1/auth/forgot-password"
RESET_PASSWORD_PATH = "/v1/auth/reset-password"
CHANGE_PASSWORD_PATH = "/v1/auth/change-password"

FILES_LIST_PATH = "/v1/files/list"
FILES_UPLOAD_PATH = "/v1/files/uploads"
PAYMENTS_SESSION_PATH = "/v1/payments/create-session"


def file_download_path(file_id: str) -> str:
    return f"/v1/files/downloads/{file_id}"


def file_delete_path(file_id: str) -> str:
    return f"/v1/files/delete/{file_id}"


def file_rename_path(file_id: str) -> str:
    return f"/v1/files/rename/{file_id}"
