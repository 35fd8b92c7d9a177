# Sigma Query MCP Server
# File: auth.py
# Version: v1

"""Static API-key credentials for the Sigma query and file hosts."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

import httpx

from .config import SigmaConfig
from .errors import ConfigError


@dataclass(frozen=True)
class ApiKeyAuth:
    """HTTP Basic credentials built from a single static API key.

    Stripe-style APIs take the secret key as the Basic-auth username with an
    empty password. The signed download URL for a result file usually lives
    on a different host (``files.stripe.com``); by default the same key is
    sent there too, unless SIGMA_FILES_API_KEY provides a separate one.
    """

    config: SigmaConfig

    def for_url(self, url: str) -> httpx.BasicAuth:
        """Return the Basic-auth credential to send to the host of ``url``."""
        if self._is_api_host(url):
            key = self.config.api_key
        else:
            key = self.config.files_api_key or self.config.api_key

        if not key:
            raise ConfigError(
                "Sigma API key is not configured. Set SIGMA_API_KEY "
                "(and optionally SIGMA_FILES_API_KEY for the file host)."
            )

        return httpx.BasicAuth(username=key, password="")

    def _is_api_host(self, url: str) -> bool:
        api_host = urlparse(self.config.api_base_url).hostname
        return urlparse(url).hostname == api_host
