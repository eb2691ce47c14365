from vaultdrop import client


EXPECTED_EXPORTS = (
    "AuthenticatedClient",
    "create_client",
)

EXPECTED_CLIENT_METHODS = (
    "request",
    "get",
    "post",
    "patch",
    "delete",
    "login",
    "logout",
    "fetch_profile",
    "signup",
    "verify_email",
    "forgot_password",
    "reset_password",
    "change_password",
    "list_files",
    "upload_file",
    "download_file",
    "delete_file",
    "rename_file",
    "create_payment_session",
)


def test_client_export_surface() -> None:
    missing = [name for name in EXPECTED_EXPORTS if not hasattr(client, name)]
    assert missing == []


def test_client_method_surface() -> None:
    missing = [
        name for name in EXPECTED_CLIENT_METHODS if not hasattr(client.AuthenticatedClient, name)
    ]
    assert missing == []
