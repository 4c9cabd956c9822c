"""OAuth helpers for Google Fit CLI."""

from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests

from gf_cli.core.config import resolve_client_secret, resolve_token_store
from gf_cli.core.constants import OAUTH_AUTH_URI, OAUTH_SCOPE, OAUTH_TOKEN_URI, OOB_REDIRECT_URI

# Cached tokens this close to expiry are refreshed.
EXPIRY_MARGIN_SECONDS = 60


class AuthError(RuntimeError):
    """Raised when authentication fails."""


class GoogleFitAuth:
    """OAuth 2.0 installed-app token manager backed by a local token file."""

    def __init__(
        self,
        config: Dict[str, Any],
        client_secret_file: Optional[Path] = None,
        token_file: Optional[Path] = None,
    ) -> None:
        self.config = config
        self.client_secret_file = client_secret_file or resolve_client_secret(config)
        self.token_file = token_file or resolve_token_store(config)

    def _load_client(self) -> Dict[str, Any]:
        if not self.client_secret_file.exists():
            raise AuthError(
                f"Client secret file not found: {self.client_secret_file}. "
                "Download an OAuth client JSON from the Google Cloud console."
            )
        try:
            data = json.loads(self.client_secret_file.read_text())
        except json.JSONDecodeError as exc:
            raise AuthError(f"Invalid client secret file {self.client_secret_file}: {exc}") from exc

        client = (data.get("installed") or data.get("web")) if isinstance(data, dict) else None
        if not client or not client.get("client_id") or not client.get("client_secret"):
            raise AuthError(
                f"Client secret file {self.client_secret_file} has no installed/web client credentials"
            )
        return client

    def _redirect_uri(self, client: Dict[str, Any]) -> str:
        uris = client.get("redirect_uris") or []
        return str(uris[0]) if uris else OOB_REDIRECT_URI

    def _load_token(self) -> Optional[Dict[str, Any]]:
        if not self.token_file.exists():
            return None
        try:
            data = json.loads(self.token_file.read_text())
        except json.JSONDecodeError:
            return None
        return data if isinstance(data, dict) else None

    def _save_token(self, token: Dict[str, Any]) -> None:
        self.token_file.parent.mkdir(parents=True, exist_ok=True)
        self.token_file.write_text(json.dumps(token, indent=2) + "\n")
        os.chmod(self.token_file, 0o600)

    @staticmethod
    def _is_fresh(token: Dict[str, Any], now: Optional[float] = None) -> bool:
        if not token.get("access_token"):
            return False
        expires_at = float(token.get("expires_at") or 0)
        return expires_at - EXPIRY_MARGIN_SECONDS > (now if now is not None else time.time())

    def _exchange(self, payload: Dict[str, str]) -> Dict[str, Any]:
        try:
            response = requests.post(OAUTH_TOKEN_URI, data=payload, timeout=30)
        except requests.RequestException as exc:
            raise AuthError(f"Token request failed: {exc}") from exc
        if response.status_code != 200:
            raise AuthError(f"Token request rejected ({response.status_code}): {response.text.strip()}")
        data = response.json()
        if not data.get("access_token"):
            raise AuthError("Token response did not include an access token")
        return data

    def _store_exchange(self, data: Dict[str, Any], previous: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        token = {
            "access_token": data["access_token"],
            # Refresh responses omit the refresh token; keep the previous one.
            "refresh_token": data.get("refresh_token") or (previous or {}).get("refresh_token"),
            "expires_at": time.time() + float(data.get("expires_in") or 3600),
            "scope": data.get("scope", OAUTH_SCOPE),
            "token_type": data.get("token_type", "Bearer"),
        }
        self._save_token(token)
        return token

    def refresh(self, token: Dict[str, Any]) -> Dict[str, Any]:
        """Exchange a refresh token for a new access token."""
        refresh_token = token.get("refresh_token")
        if not refresh_token:
            raise AuthError("Cached token has no refresh token. Run `gf login --force`.")
        client = self._load_client()
        data = self._exchange(
            {
                "client_id": client["client_id"],
                "client_secret": client["client_secret"],
                "refresh_token": str(refresh_token),
                "grant_type": "refresh_token",
            }
        )
        return self._store_exchange(data, previous=token)

    def authorization_url(self) -> str:
        """Build the consent URL the user opens to obtain an authorization code."""
        client = self._load_client()
        params = {
            "client_id": client["client_id"],
            "redirect_uri": self._redirect_uri(client),
            "response_type": "code",
            "scope": OAUTH_SCOPE,
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{client.get('auth_uri') or OAUTH_AUTH_URI}?{urlencode(params)}"

    def exchange_code(self, code: str) -> Dict[str, Any]:
        """Exchange an authorization code for tokens and persist them."""
        client = self._load_client()
        data = self._exchange(
            {
                "client_id": client["client_id"],
                "client_secret": client["client_secret"],
                "code": code.strip(),
                "redirect_uri": self._redirect_uri(client),
                "grant_type": "authorization_code",
            }
        )
        return self._store_exchange(data)

    def access_token(self) -> str:
        """Return a valid access token from the cache, refreshing if needed."""
        token = self._load_token()
        if not token:
            raise AuthError("Not logged in. Run `gf login` first.")
        if self._is_fresh(token):
            return str(token["access_token"])
        return str(self.refresh(token)["access_token"])

    def logout(self) -> bool:
        """Delete local cached token file."""
        if self.token_file.exists():
            self.token_file.unlink()
            return True
        return False
