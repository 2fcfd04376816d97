"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    Required fields have no defaults and will cause a KeyError at startup
    if the corresponding environment variable is missing. Domain constants
    have sensible defaults but can be overridden via environment variables.
    """

    # Required, KeyError at startup if missing
    client_id: str
    client_secret: str
    tenant_id: str
    endpoint: str

    # Overridable via env
    scope: str = ""
    recycle_bin_delegate: str = "@myRecycleBin"
    favorites_delegate: str = "@myFavorites"
    my_folder_delegate: str = "@myFolder"
    request_timeout: float = 30.0
    log_level: str = "INFO"

    @property
    def scopes(self) -> list[str]:
        """OAuth scopes requested for the content service."""
        return [self.scope or f"{self.endpoint.rstrip('/')}/.default"]


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Required environment variables:
        CN_CLIENT_ID: Azure AD application (client) ID.
        CN_CLIENT_SECRET: Azure AD application client secret.
        CN_TENANT_ID: Azure AD tenant ID.
        CN_ENDPOINT: Base URL of the content service.

    Optional environment variables (with defaults):
        CN_SCOPE: OAuth scope for the content service (default: <endpoint>/.default).
        CN_RECYCLE_BIN_DELEGATE: Delegate name of the recycle bin (default: @myRecycleBin).
        CN_FAVORITES_DELEGATE: Delegate name of the favorites folder (default: @myFavorites).
        CN_MY_FOLDER_DELEGATE: Delegate name of the personal folder (default: @myFolder).
        CN_REQUEST_TIMEOUT: Per-request timeout in seconds (default: 30).
        CN_LOG_LEVEL: Logging level for the command line (default: INFO).

    Returns:
        Configured AppConfig instance.
    """
    return AppConfig(
        client_id=os.environ["CN_CLIENT_ID"],
        client_secret=os.environ["CN_CLIENT_SECRET"],
        tenant_id=os.environ["CN_TENANT_ID"],
        endpoint=os.environ["CN_ENDPOINT"],
        scope=os.environ.get("CN_SCOPE", ""),
        recycle_bin_delegate=os.environ.get("CN_RECYCLE_BIN_DELEGATE", "@myRecycleBin"),
        favorites_delegate=os.environ.get("CN_FAVORITES_DELEGATE", "@myFavorites"),
        my_folder_delegate=os.environ.get("CN_MY_FOLDER_DELEGATE", "@myFolder"),
        request_timeout=float(os.environ.get("CN_REQUEST_TIMEOUT", "30")),
        log_level=os.environ.get("CN_LOG_LEVEL", "INFO"),
    )
