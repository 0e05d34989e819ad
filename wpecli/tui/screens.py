from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence, Union

from .models import Account, Install, Site, all_environments_exist

Action = Literal["open", "add_site", "add_install", "delete_install", "back", "exit"]
Entity = Union[Account, Site, Install]

ADD_SITE_LABEL = "+ Add site"
ADD_INSTALL_LABEL = "+ Add install"
BACK_LABEL = "← Back"
EXIT_LABEL = "Exit"
DELETE_INSTALL_LABEL = "Delete install"

ACCOUNT_TITLE = "Select an account:"
SITE_TITLE = "Select a site:"
INSTALL_TITLE = "Select an install:"
ACTION_TITLE = "What would you like to do?"
ENVIRONMENT_TITLE = "Select environment:"


@dataclass(frozen=True)
class MenuEntry:
    label: str
    action: Action
    target: Entity | None = None


BACK_ENTRY = MenuEntry(BACK_LABEL, "back")
EXIT_ENTRY = MenuEntry(EXIT_LABEL, "exit")


def account_entries(accounts: Sequence[Account]) -> tuple[MenuEntry, ...]:
    return tuple(MenuEntry(a.name, "open", a) for a in accounts)


def site_entries(sites: Sequence[Site]) -> tuple[MenuEntry, ...]:
    return (
        *(MenuEntry(s.name, "open", s) for s in sites),
        MenuEntry(ADD_SITE_LABEL, "add_site"),
        BACK_ENTRY,
        EXIT_ENTRY,
    )


def install_entries(installs: Sequence[Install]) -> tuple[MenuEntry, ...]:
    entries = [MenuEntry(i.label, "open", i) for i in installs]
    if not all_environments_exist(installs):
        entries.append(MenuEntry(ADD_INSTALL_LABEL, "add_install"))
    entries.extend((BACK_ENTRY, EXIT_ENTRY))
    return tuple(entries)


def manage_entries() -> tuple[MenuEntry, ...]:
    return (MenuEntry(DELETE_INSTALL_LABEL, "delete_install"), BACK_ENTRY, EXIT_ENTRY)


def labels(entries: Sequence[MenuEntry]) -> list[str]:
    return [entry.label for entry in entries]
