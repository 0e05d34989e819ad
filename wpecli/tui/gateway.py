from __future__ import annotations

import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Mapping

from .config import Settings
from .errors import ApiError, AuthError, NetworkError
from .logstore import LogStore
from .models import Account, Install, Site, belongs_to


class WPEngineGateway:
    """Blocking client for the WP Engine REST API.

    Listing by parent fetches the full collection and filters client-side;
    pagination is not followed.
    """

    def __init__(self, settings: Settings, logstore: LogStore | None = None) -> None:
        self.settings = settings
        self.logstore = logstore

    def list_accounts(self) -> list[Account]:
        data = self._request("GET", "/accounts", "Failed to fetch accounts", auth_check=True)
        return [Account.from_api(r) for r in _results(data)]

    def list_sites_for_account(self, account_id: str) -> list[Site]:
        rows = self._list("/sites", "Failed to fetch sites")
        return [Site.from_api(r) for r in rows if belongs_to(r, "account", account_id)]

    def list_installs_for_site(self, site_id: str) -> list[Install]:
        rows = self._list("/installs", "Failed to fetch installs")
        return [Install.from_api(r) for r in rows if belongs_to(r, "site", site_id)]

    def create_site(self, account_id: str, site_data: Mapping[str, Any]) -> Site:
        payload = {"account_id": account_id, **site_data}
        data = self._request("POST", "/sites", "Failed to create site", payload=payload)
        return Site.from_api(data if isinstance(data, dict) else {})

    def create_install(self, site_id: str, account_id: str, install_data: Mapping[str, Any]) -> Install:
        payload = {"site_id": site_id, "account_id": account_id, **install_data}
        data = self._request("POST", "/installs", "Failed to create install", payload=payload)
        return Install.from_api(data if isinstance(data, dict) else {})

    def delete_install(self, install_id: str) -> bool:
        path = f"/installs/{urllib.parse.quote(str(install_id), safe='')}"
        self._request("DELETE", path, "Failed to delete install")
        return True

    def _list(self, path: str, action: str) -> list[dict[str, Any]]:
        return _results(self._request("GET", path, action))

    def _request(
        self,
        method: str,
        path: str,
        action: str,
        *,
        payload: Mapping[str, Any] | None = None,
        auth_check: bool = False,
    ) -> Any:
        url = f"{self.settings.base_url}{path}"
        headers = {
            "Authorization": self.settings.auth_header(),
            "Accept": "application/json",
        }
        data: bytes | None = None
        if payload is not None:
            data = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
            self._log("debug", "request body", method=method, path=path, body=json.dumps(payload))

        req = urllib.request.Request(url, data=data, headers=headers, method=method)
        try:
            with urllib.request.urlopen(req, timeout=self.settings.timeout) as resp:
                status = int(resp.status)
                body = resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as exc:
            detail = _error_body(exc)
            self._log("error", "response", method=method, path=path, status=exc.code, reason=exc.reason)
            if auth_check and exc.code in (401, 403):
                self._log("error", "credentials rejected", category="auth", path=path, status=exc.code)
                raise AuthError(f"{action}: {exc.code} {exc.reason}. Please check your API credentials.") from exc
            raise ApiError(action, exc.code, str(exc.reason or ""), detail) from exc
        except OSError as exc:
            reason = getattr(exc, "reason", exc)
            self._log("error", "transport failure", method=method, path=path, reason=reason)
            raise NetworkError(f"{action}: {reason}") from exc

        self._log("info", "response", method=method, path=path, status=status)
        if not body.strip():
            return {}
        try:
            return json.loads(body)
        except json.JSONDecodeError as exc:
            raise ApiError(action, status, "invalid JSON in response", body[:200]) from exc

    def _log(self, level: str, message: str, category: str = "network", **fields: Any) -> None:
        if self.logstore is not None:
            self.logstore.append(level, category, "gateway", message, **fields)


def _results(data: Any) -> list[dict[str, Any]]:
    if isinstance(data, list):
        rows = data
    elif isinstance(data, dict):
        rows = data.get("results") or []
    else:
        rows = []
    return [r for r in rows if isinstance(r, dict)]


def _error_body(exc: urllib.error.HTTPError) -> Any:
    try:
        raw = exc.read().decode("utf-8", errors="replace")
    except OSError:
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return {}
