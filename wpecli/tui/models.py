from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Mapping

Environment = Literal["production", "staging", "development"]

ALL_ENVIRONMENTS: tuple[Environment, ...] = ("production", "staging", "development")


def owner_id(record: Mapping[str, Any], owner: str) -> str:
    """Resolve the parent id from any of the shapes the API has returned.

    ``{"account": "A1"}``, ``{"account": {"id": "A1"}}`` and
    ``{"accountId": "A1"}`` all resolve to ``"A1"``.
    """
    ref = record.get(owner)
    if isinstance(ref, Mapping):
        ref = ref.get("id")
    if ref is None or ref == "":
        ref = record.get(f"{owner}Id")
    return "" if ref is None else str(ref)


def belongs_to(record: Mapping[str, Any], owner: str, target_id: str) -> bool:
    if not target_id:
        return False
    return owner_id(record, owner) == str(target_id)


@dataclass(frozen=True)
class Account:
    id: str
    name: str
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Account":
        return cls(id=str(data.get("id", "")), name=str(data.get("name", "")), raw=dict(data))


@dataclass(frozen=True)
class Site:
    id: str
    name: str
    account_id: str = ""
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Site":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            account_id=owner_id(data, "account"),
            raw=dict(data),
        )


@dataclass(frozen=True)
class Install:
    id: str
    name: str
    environment: str = ""
    primary_domain: str = ""
    cname: str = ""
    php_version: str = ""
    is_multisite: bool = False
    site_id: str = ""
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Install":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            environment=str(data.get("environment") or ""),
            primary_domain=str(data.get("primary_domain") or ""),
            cname=str(data.get("cname") or ""),
            php_version=str(data.get("php_version") or ""),
            is_multisite=bool(data.get("is_multisite")),
            site_id=owner_id(data, "site"),
            raw=dict(data),
        )

    @property
    def label(self) -> str:
        return f"{self.name} ({self.environment}) - {self.primary_domain or 'No domain'}"

    def detail_lines(self) -> list[str]:
        return [
            f"Site Name: {self.name or 'N/A'}",
            f"Environment: {self.environment or 'N/A'}",
            f"Primary Domain: {self.primary_domain or 'N/A'}",
            f"CNAME: {self.cname or 'N/A'}",
            f"PHP Version: {self.php_version or 'N/A'}",
            f"Multisite: {'Yes' if self.is_multisite else 'No'}",
        ]


def existing_environments(installs: Iterable[Install]) -> set[str]:
    return {install.environment for install in installs}


def available_environments(installs: Iterable[Install]) -> list[Environment]:
    existing = existing_environments(installs)
    return [env for env in ALL_ENVIRONMENTS if env not in existing]


def all_environments_exist(installs: Iterable[Install]) -> bool:
    return not available_environments(installs)
