from __future__ import annotations

from typing import Callable, Sequence, TypeVar

from .errors import GatewayError, StartupError
from .gateway import WPEngineGateway
from .logstore import LogStore
from .menu import Menu
from .models import Account, Install, Site, available_environments
from .prompt import TextPrompt
from .screens import (
    ACCOUNT_TITLE,
    ACTION_TITLE,
    ENVIRONMENT_TITLE,
    INSTALL_TITLE,
    SITE_TITLE,
    MenuEntry,
    account_entries,
    install_entries,
    labels,
    manage_entries,
    site_entries,
)
from .state import Effect, NavState, ScreenKind, advance, after_delete
from .theme import Style
from .views import Screen, fresh_page

T = TypeVar("T")

NO_ACCOUNTS = "No accounts found. Please check your API credentials."
DELETE_WARNING = (
    "WARNING: A deleted environment is not recoverable, and the name will no longer be available. "
    "You cannot undo this action."
)


class FlowController:
    """Account → site → install → management screens over one navigation stack."""

    def __init__(
        self,
        gateway: WPEngineGateway,
        menu: Menu,
        prompt: TextPrompt,
        screen: Screen,
        logstore: LogStore | None = None,
    ) -> None:
        self.gateway = gateway
        self.menu = menu
        self.prompt = prompt
        self.screen = screen
        self.logstore = logstore
        self.state = NavState()

    def run(self) -> None:
        """Run until the user quits.

        Raises ``StartupError`` when the account list is empty; gateway errors
        on the account screen propagate to the caller.
        """
        while True:
            page = self._enter()
            if page is None:
                continue
            title, entries, preserve_header = page
            choice = self.menu.present(
                title,
                labels(entries),
                preserve_header=preserve_header,
                initial=self.state.top.cursor,
            )
            step = advance(self.state, choice, entries)
            self._log(
                "transition",
                src=self.state.top.kind.value,
                dst=step.state.top.kind.value,
                effect=step.effect.value,
            )
            self.state = step.state
            if step.effect is Effect.QUIT:
                return
            self._apply(step.effect)

    def _enter(self) -> tuple[str, Sequence[MenuEntry], bool] | None:
        frame = self.state.top
        self._log("enter", depth=len(self.state.frames))

        if frame.kind is ScreenKind.ACCOUNT_SELECT:
            self._status("Loading accounts...", "title")
            accounts = self.gateway.list_accounts()
            if not accounts:
                raise StartupError(NO_ACCOUNTS)
            self.state = self.state.with_top(children=tuple(accounts))
            return ACCOUNT_TITLE, account_entries(accounts), False

        if frame.kind is ScreenKind.SITE_SELECT:
            account: Account = frame.entity
            self._status(f"Loading sites for account: {account.name}...", "title")
            sites = self._fetch("Failed to load sites", lambda: self.gateway.list_sites_for_account(account.id))
            if sites is None:
                return None
            self.state = self.state.with_top(children=tuple(sites))
            if not sites:
                fresh_page(self.screen)
                self.screen.write(f"No sites found for account: {account.name}", "error")
                self.screen.write()
                return ACTION_TITLE, site_entries(sites), True
            return SITE_TITLE, site_entries(sites), False

        if frame.kind is ScreenKind.INSTALL_SELECT:
            site: Site = frame.entity
            self._status(f"Loading installs for site: {site.name}...", "title")
            installs = self._fetch("Failed to load installs", lambda: self.gateway.list_installs_for_site(site.id))
            if installs is None:
                return None
            self.state = self.state.with_top(children=tuple(installs))
            if not installs:
                fresh_page(self.screen)
                self.screen.write(f"No installs found for site: {site.name}", "error")
                self.screen.write()
                return ACTION_TITLE, install_entries(installs), True
            return INSTALL_TITLE, install_entries(installs), False

        install: Install = frame.entity
        self._show_install(install)
        return ACTION_TITLE, manage_entries(), True

    def _apply(self, effect: Effect) -> None:
        frame = self.state.top
        if effect is Effect.ADD_SITE:
            self.add_site(frame.entity)
        elif effect is Effect.ADD_INSTALL:
            account = self.state.entity_for(ScreenKind.SITE_SELECT)
            self.add_install(frame.entity, account, list(frame.children))
        elif effect is Effect.DELETE_INSTALL:
            deleted = self.delete_install(frame.entity)
            self.state = after_delete(self.state, deleted)

    def add_site(self, account: Account) -> bool:
        name = self.prompt.ask("name")
        self._status("Adding site...", "title")
        try:
            site = self.gateway.create_site(account.id, {"name": name})
        except GatewayError as exc:
            self._log("create site failed", level="error", account=account.id, error=exc)
            self._notice(f"Failed to add site: {exc}", "error")
            return False
        self._log("created site", id=site.id, name=name, account=account.id)
        self._notice("Site added.", "success")
        return True

    def add_install(self, site: Site, account: Account, installs: Sequence[Install]) -> bool:
        environments = available_environments(installs)
        if not environments:
            self._notice("All environments already exist for this site.", "error")
            return False

        name = self.prompt.ask("name")
        choice = self.menu.present(ENVIRONMENT_TITLE, list(environments))
        if choice.is_back or choice.index is None:
            self._log("add install cancelled", site=site.id)
            return False
        environment = environments[choice.index]

        self._status("Adding install...", "title")
        try:
            install = self.gateway.create_install(site.id, account.id, {"name": name, "environment": environment})
        except GatewayError as exc:
            self._log("create install failed", level="error", site=site.id, error=exc)
            self._notice(f"Failed to add install: {exc}", "error")
            return False
        self._log("created install", id=install.id, name=name, environment=environment, site=site.id)
        self._notice("Install added.", "success")
        return True

    def delete_install(self, install: Install) -> bool:
        fresh_page(self.screen)
        self.screen.write(DELETE_WARNING, "error")
        self.screen.write(f'Type "{install.name}" to confirm, then press Enter.', "warning")
        confirmation = self.prompt.read_line()
        if confirmation != install.name:
            self._log("delete not confirmed", id=install.id)
            self._notice(
                f'Incorrect confirmation. You typed "{confirmation}" but the install name is "{install.name}".',
                "error",
            )
            return False

        self._status("Deleting install...", "title")
        try:
            self.gateway.delete_install(install.id)
        except GatewayError as exc:
            self._log("delete install failed", level="error", id=install.id, error=exc)
            self._notice(f"Failed to delete install: {exc}", "error")
            return False
        self._log("deleted install", id=install.id, name=install.name)
        self._notice("Install deleted.", "success")
        return True

    def _fetch(self, action: str, call: Callable[[], list[T]]) -> list[T] | None:
        try:
            return call()
        except GatewayError as exc:
            self._log(action, level="error", error=exc)
            self._notice(f"{action}: {exc}", "error")
            self.state = self.state.pop()
            return None

    def _show_install(self, install: Install) -> None:
        site = self.state.entity_for(ScreenKind.INSTALL_SELECT)
        site_name = site.name if site is not None else ""
        fresh_page(self.screen)
        self.screen.write(f'Install Details for "{install.name}" on site "{site_name}":', "success")
        self.screen.write()
        self.screen.write("=" * 50, "info")
        for line in install.detail_lines():
            self.screen.write(line, "info")
        self.screen.write("=" * 50, "info")
        self.screen.write()

    def _status(self, message: str, style: Style) -> None:
        fresh_page(self.screen)
        self.screen.write(message, style)

    def _notice(self, message: str, style: Style) -> None:
        self._status(message, style)
        self.prompt.wait_for_key()

    def _log(self, message: str, level: str = "info", **fields: object) -> None:
        if self.logstore is not None:
            self.logstore.append(level, "flow", self.state.top.kind.value, message, **fields)
