from __future__ import annotations

from auth.models import TokenPair
from vaultdrop.constants import LOGIN_PATH, REFRESH_PATH
from vaultdrop.http import CallDescriptor, RequestDispatcher


async def _token_request(
    dispatcher: RequestDispatcher,
    path: str,
    payload: dict[str, str],
) -> TokenPair:
    response = await dispatcher.send(
        CallDescriptor(
            "POST",
            path,
            json=payload,
            authenticate=False,
            refreshable=False,
        )
    )
    try:
        body = response.json()
    except ValueError as error:
        raise RuntimeError("Token response is not valid JSON.") from error
    return TokenPair.from_payload(body)


async def login(dispatcher: RequestDispatcher, email: str, password: str) -> TokenPair:
    return await _token_request(
        dispatcher,
        LOGIN_PATH,
        {"email": email, "password": password},
    )


async def refresh_tokens(dispatcher: RequestDispatcher, refresh_token: str) -> TokenPair:
    return await _token_request(
        dispatcher,
        REFRESH_PATH,
        {"refreshToken": refresh_token},
    )
