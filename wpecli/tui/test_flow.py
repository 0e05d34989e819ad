from __future__ import annotations

import curses
import random
import tempfile
import unittest
from pathlib import Path
from typing import Sequence
from unittest import mock

from wpecli.tui.errors import ApiError, InputOwnershipError, Interrupted, NetworkError, StartupError
from wpecli.tui.flow import DELETE_WARNING, FlowController
from wpecli.tui.gateway import WPEngineGateway
from wpecli.tui.keys import InputStream
from wpecli.tui.logstore import LogStore
from wpecli.tui.menu import Menu
from wpecli.tui.models import Account, Install, Site
from wpecli.tui.prompt import TextPrompt
from wpecli.tui.screens import ACTION_TITLE, ADD_INSTALL_LABEL, BACK_LABEL, ENVIRONMENT_TITLE, EXIT_LABEL
from wpecli.tui.state import BACK, MenuChoice
from wpecli.tui.theme import Theme
from wpecli.tui.views import WELCOME_HINT, WELCOME_TITLE, CursesScreen

UP = curses.KEY_UP
DOWN = curses.KEY_DOWN
ENTER = "\n"
ESC = "\x1b"
CTRL_C = "\x03"
BACKSPACE = "\x7f"


def scripted(*keys: object):
    pending = iter(keys)

    def source() -> object:
        try:
            return next(pending)
        except StopIteration:
            raise AssertionError("ran out of scripted keys") from None

    return source


def typed(text: str) -> list[str]:
    return list(text)


class RecordingScreen:
    def __init__(self, height: int = 200, width: int = 200) -> None:
        self.height = height
        self.width = width
        self.lines: list[str] = []
        self.clears = 0
        self.cursor_visible = False

    def clear(self) -> None:
        self.lines = []
        self.clears += 1

    def write(self, text: str = "", style: str = "plain") -> None:
        self.lines.extend(text.split("\n"))

    def mark(self) -> int:
        return len(self.lines)

    def clear_from(self, row: int) -> None:
        del self.lines[row:]

    def set_cursor(self, visible: bool) -> None:
        self.cursor_visible = visible

    def size(self) -> tuple[int, int]:
        return self.height, self.width


class FakeWindow:
    def __init__(self, height: int, width: int) -> None:
        self.height = height
        self.width = width
        self.rows: dict[int, str] = {}
        self.cursor_row = 0

    def getmaxyx(self) -> tuple[int, int]:
        return self.height, self.width

    def addnstr(self, y: int, x: int, text: str, n: int, attr: int = 0) -> None:
        self.rows[y] = text[:n]

    def erase(self) -> None:
        self.rows.clear()

    def move(self, y: int, x: int) -> None:
        self.cursor_row = y

    def clrtobot(self) -> None:
        for y in [y for y in self.rows if y >= self.cursor_row]:
            del self.rows[y]

    def refresh(self) -> None:
        pass

    def visible(self) -> list[str]:
        return [self.rows.get(y, "") for y in range(self.height)]


class RecordingMenu(Menu):
    def __init__(self, stream: InputStream, screen: RecordingScreen) -> None:
        super().__init__(stream, screen)
        self.shown: list[tuple[str, list[str]]] = []

    def present(self, title: str, options: Sequence[str], preserve_header: bool = False, initial: int = 0) -> MenuChoice:
        self.shown.append((title, list(options)))
        return super().present(title, options, preserve_header=preserve_header, initial=initial)


class MenuTests(unittest.TestCase):
    def _menu(self, *keys: object) -> tuple[Menu, RecordingScreen, InputStream]:
        screen = RecordingScreen()
        stream = InputStream(scripted(*keys))
        return Menu(stream, screen), screen, stream

    def test_cursor_is_clamped_without_wraparound(self) -> None:
        menu, _, _ = self._menu(DOWN, DOWN, DOWN, DOWN, ENTER)
        self.assertEqual(menu.present("Pick", ["a", "b", "c"]), MenuChoice.select(2))
        menu, _, _ = self._menu(UP, UP, ENTER)
        self.assertEqual(menu.present("Pick", ["a", "b", "c"]), MenuChoice.select(0))

    def test_random_walks_stay_in_range(self) -> None:
        rng = random.Random(1234)
        for _ in range(50):
            count = rng.randint(1, 6)
            keys = [rng.choice([UP, DOWN]) for _ in range(rng.randint(0, 20))]
            menu, _, _ = self._menu(*keys, ENTER)
            choice = menu.present("Pick", [f"opt{i}" for i in range(count)])
            self.assertFalse(choice.is_back)
            assert choice.index is not None
            self.assertTrue(0 <= choice.index <= count - 1)

    def test_escape_on_single_option_is_back(self) -> None:
        menu, _, _ = self._menu(ESC)
        choice = menu.present("Pick", ["only"])
        self.assertIs(choice, BACK)
        self.assertNotEqual(choice, MenuChoice.select(0))

    def test_interrupt_raises_and_releases_input(self) -> None:
        menu, _, stream = self._menu(DOWN, CTRL_C)
        with self.assertRaises(Interrupted):
            menu.present("Pick", ["a", "b"])
        self.assertIsNone(stream.owner)

    def test_keyboard_interrupt_from_source_is_interrupt(self) -> None:
        screen = RecordingScreen()
        stream = InputStream(mock.Mock(side_effect=KeyboardInterrupt))
        with self.assertRaises(Interrupted):
            Menu(stream, screen).present("Pick", ["a"])

    def test_redraw_replaces_option_region_only(self) -> None:
        menu, screen, _ = self._menu(DOWN, UP, DOWN, ENTER)
        menu.present("Pick", ["a", "b", "c"])
        self.assertEqual(screen.lines[0], WELCOME_TITLE)
        self.assertEqual(screen.lines.count("Pick"), 1)
        self.assertEqual(screen.lines[-3:], ["  a", "→ b", "  c"])
        self.assertEqual(screen.lines[-4], "")
        self.assertEqual(screen.lines[-5], "Pick")

    def test_preserve_header_keeps_existing_lines(self) -> None:
        menu, screen, _ = self._menu(ENTER)
        screen.write("No installs found for site: Blog")
        menu.present("What would you like to do?", ["x"], preserve_header=True)
        self.assertEqual(screen.clears, 0)
        self.assertEqual(screen.lines[0], "No installs found for site: Blog")

    def test_initial_highlight_is_clamped(self) -> None:
        menu, _, _ = self._menu(ENTER)
        self.assertEqual(menu.present("Pick", ["a", "b"], initial=7), MenuChoice.select(1))

    def test_empty_options_back_without_reading(self) -> None:
        menu, _, _ = self._menu()
        self.assertIs(menu.present("Pick", []), BACK)

    def test_second_menu_while_active_is_rejected(self) -> None:
        screen = RecordingScreen()
        holder: dict[str, Menu] = {}

        def source() -> object:
            return holder["menu"].present("Nested", ["x"])

        menu = Menu(InputStream(source), screen)
        holder["menu"] = menu
        with self.assertRaises(RuntimeError):
            menu.present("Pick", ["a"])


class TextPromptTests(unittest.TestCase):
    def test_backspace_and_enter(self) -> None:
        screen = RecordingScreen()
        prompt = TextPrompt(InputStream(scripted(BACKSPACE, "a", "b", "c", BACKSPACE, "d", UP, ENTER)), screen)
        self.assertEqual(prompt.read_line(), "abd")
        self.assertEqual(screen.lines[-1], "> abd")
        self.assertFalse(screen.cursor_visible)

    def test_interrupt_hands_input_back_to_previous_owner(self) -> None:
        screen = RecordingScreen()
        stream = InputStream(scripted("a", CTRL_C))
        owner = object()
        with stream.claim(owner):
            with self.assertRaises(Interrupted):
                TextPrompt(stream, screen).read_line()
            self.assertIs(stream.owner, owner)
        self.assertIsNone(stream.owner)

    def test_reading_without_ownership_fails(self) -> None:
        stream = InputStream(scripted("a"))
        with self.assertRaises(InputOwnershipError):
            stream.read(object())

    def test_double_claim_by_same_owner_fails(self) -> None:
        stream = InputStream(scripted())
        owner = object()
        with stream.claim(owner):
            with self.assertRaises(InputOwnershipError):
                with stream.claim(owner):
                    pass


class CursesScreenTests(unittest.TestCase):
    def _screen(self, height: int, width: int) -> tuple[CursesScreen, FakeWindow]:
        window = FakeWindow(height, width)
        return CursesScreen(window, Theme(has_color=False)), window  # type: ignore[arg-type]

    def test_long_lines_wrap_instead_of_truncating(self) -> None:
        screen, window = self._screen(24, 40)
        screen.write(DELETE_WARNING, "error")
        rows = [window.rows[y] for y in sorted(window.rows)]
        self.assertGreater(len(rows), 1)
        self.assertTrue(all(len(row) <= 39 for row in rows))
        self.assertEqual(" ".join(rows), DELETE_WARNING)
        self.assertEqual(screen.mark(), len(rows))

    def test_welcome_hint_is_complete_on_80_columns(self) -> None:
        screen, window = self._screen(24, 80)
        screen.write(WELCOME_HINT, "hint")
        self.assertEqual(" ".join(window.visible()[:2]), WELCOME_HINT)

    def test_menu_scrolls_to_keep_selection_visible(self) -> None:
        screen, window = self._screen(12, 80)
        options = [f"site-{i}" for i in range(30)]
        menu = Menu(InputStream(scripted(*[DOWN] * 20, ENTER)), screen)
        self.assertEqual(menu.present("Pick", options), MenuChoice.select(20))
        rows = window.visible()
        self.assertEqual(rows[-1], "→ site-20")
        self.assertIn("  site-15", rows)
        self.assertNotIn("  site-14", rows)
        self.assertIn("Pick", rows)

    def test_menu_scrolls_back_up(self) -> None:
        screen, window = self._screen(12, 80)
        options = [f"site-{i}" for i in range(30)]
        menu = Menu(InputStream(scripted(*[DOWN] * 20, *[UP] * 19, ENTER)), screen)
        self.assertEqual(menu.present("Pick", options), MenuChoice.select(1))
        rows = window.visible()
        self.assertEqual(rows[rows.index("Pick") + 2], "→ site-1")
        self.assertNotIn("  site-0", rows)

    def test_initial_selection_past_viewport_is_shown(self) -> None:
        screen = RecordingScreen(height=10)
        menu = Menu(InputStream(scripted(ENTER)), screen)
        self.assertEqual(menu.present("Pick", [f"opt{i}" for i in range(20)], initial=15), MenuChoice.select(15))
        self.assertEqual(len(screen.lines), 10)
        self.assertEqual(screen.lines[-1], "→ opt15")


class FlowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.account = Account("1", "Acme")
        self.site = Site("s1", "Blog", "1")
        self.gateway = mock.Mock(spec=WPEngineGateway)
        self.gateway.list_accounts.return_value = [self.account]
        self.gateway.list_sites_for_account.return_value = [self.site]
        self.gateway.list_installs_for_site.return_value = []

    def _flow(self, *keys: object) -> tuple[FlowController, RecordingMenu, RecordingScreen]:
        screen = RecordingScreen()
        stream = InputStream(scripted(*keys))
        menu = RecordingMenu(stream, screen)
        return FlowController(self.gateway, menu, TextPrompt(stream, screen), screen), menu, screen

    def test_empty_install_list_offers_add_back_exit(self) -> None:
        flow, menu, screen = self._flow(ENTER, ENTER, DOWN, DOWN, ENTER)
        flow.run()
        self.gateway.list_sites_for_account.assert_called_once_with("1")
        self.gateway.list_installs_for_site.assert_called_once_with("s1")
        self.assertEqual(menu.shown[-1], (ACTION_TITLE, [ADD_INSTALL_LABEL, BACK_LABEL, EXIT_LABEL]))
        self.assertIn("No installs found for site: Blog", screen.lines)

    def test_escape_from_accounts_quits(self) -> None:
        flow, menu, _ = self._flow(ESC)
        flow.run()
        self.assertEqual(len(menu.shown), 1)

    def test_zero_accounts_is_startup_error(self) -> None:
        self.gateway.list_accounts.return_value = []
        flow, _, _ = self._flow()
        with self.assertRaises(StartupError):
            flow.run()

    def test_interrupt_escapes_the_loop(self) -> None:
        flow, _, _ = self._flow(ENTER, CTRL_C)
        with self.assertRaises(Interrupted):
            flow.run()

    def test_delete_with_exact_name_calls_gateway_once_and_refreshes(self) -> None:
        install = Install(id="i1", name="prod-env", environment="production")
        self.gateway.list_installs_for_site.side_effect = [[install], []]
        keys = [ENTER, ENTER, ENTER, ENTER, *typed("prod-env"), ENTER, "x", DOWN, DOWN, ENTER]
        flow, menu, _ = self._flow(*keys)
        flow.run()
        self.gateway.delete_install.assert_called_once_with("i1")
        self.assertEqual(self.gateway.list_installs_for_site.call_count, 2)
        self.assertEqual(menu.shown[-1], (ACTION_TITLE, [ADD_INSTALL_LABEL, BACK_LABEL, EXIT_LABEL]))

    def test_delete_with_wrong_name_never_calls_gateway(self) -> None:
        install = Install(id="i1", name="prod-env", environment="production")
        self.gateway.list_installs_for_site.return_value = [install]
        keys = [ENTER, ENTER, ENTER, ENTER, *typed("prod"), ENTER, "x", ESC, ESC, ESC, ESC]
        flow, menu, _ = self._flow(*keys)
        flow.run()
        self.gateway.delete_install.assert_not_called()
        titles = [title for title, _ in menu.shown]
        self.assertEqual(titles.count(ACTION_TITLE), 2)
        self.assertEqual(self.gateway.list_accounts.call_count, 2)

    def test_failed_delete_stays_on_install(self) -> None:
        install = Install(id="i1", name="prod-env", environment="production")
        self.gateway.delete_install.side_effect = NetworkError("Failed to delete install: timed out")
        flow, _, screen = self._flow(*typed("prod-env"), ENTER, "x")
        self.assertFalse(flow.delete_install(install))
        self.assertTrue(any(line.startswith("Failed to delete install:") for line in screen.lines))

    def test_add_install_offers_only_remaining_environment(self) -> None:
        installs = [
            Install(id="i1", name="p", environment="production"),
            Install(id="i2", name="s", environment="staging"),
        ]
        self.gateway.create_install.return_value = Install(id="i3", name="new", environment="development")
        flow, menu, screen = self._flow(*typed("new"), ENTER, ENTER, "x")
        self.assertTrue(flow.add_install(self.site, self.account, installs))
        self.assertEqual(menu.shown, [(ENVIRONMENT_TITLE, ["development"])])
        self.gateway.create_install.assert_called_once_with("s1", "1", {"name": "new", "environment": "development"})
        self.assertIn("Install added.", screen.lines)

    def test_add_install_rejected_when_all_environments_exist(self) -> None:
        installs = [
            Install(id="i1", name="p", environment="production"),
            Install(id="i2", name="s", environment="staging"),
            Install(id="i3", name="d", environment="development"),
        ]
        flow, menu, screen = self._flow("x")
        self.assertFalse(flow.add_install(self.site, self.account, installs))
        self.gateway.create_install.assert_not_called()
        self.assertEqual(menu.shown, [])
        self.assertIn("All environments already exist for this site.", screen.lines)

    def test_add_install_escape_at_environment_makes_no_call(self) -> None:
        flow, _, _ = self._flow(*typed("new"), ENTER, ESC)
        self.assertFalse(flow.add_install(self.site, self.account, []))
        self.gateway.create_install.assert_not_called()

    def test_add_site_failure_is_shown_not_raised(self) -> None:
        self.gateway.create_site.side_effect = ApiError("Failed to create site", 422, "Unprocessable Entity")
        flow, _, screen = self._flow(*typed("Blog"), ENTER, "x")
        self.assertFalse(flow.add_site(self.account))
        self.assertTrue(any(line.startswith("Failed to add site:") for line in screen.lines))

    def test_add_site_from_menu_refreshes_sites(self) -> None:
        self.gateway.create_site.return_value = Site("s2", "Shop", "1")
        keys = [ENTER, DOWN, ENTER, *typed("Shop"), ENTER, "x", ESC, ESC]
        flow, _, _ = self._flow(*keys)
        flow.run()
        self.gateway.create_site.assert_called_once_with("1", {"name": "Shop"})
        self.assertEqual(self.gateway.list_sites_for_account.call_count, 2)

    def test_screen_transitions_are_logged(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            store = LogStore(log_dir=Path(td))
            screen = RecordingScreen()
            stream = InputStream(scripted(ENTER, ESC, ESC))
            flow = FlowController(self.gateway, Menu(stream, screen), TextPrompt(stream, screen), screen, store)
            flow.run()
            text = store.log_path.read_text(encoding="utf-8")
        self.assertIn("[flow] [account_select] transition src=account_select dst=site_select effect=none", text)
        self.assertIn("[flow] [site_select] transition src=site_select dst=account_select effect=none", text)
        self.assertIn("[flow] [account_select] transition src=account_select dst=account_select effect=quit", text)

    def test_site_listing_failure_returns_to_accounts(self) -> None:
        self.gateway.list_sites_for_account.side_effect = NetworkError("Failed to fetch sites: refused")
        flow, menu, _ = self._flow(ENTER, "x", ESC)
        flow.run()
        self.assertEqual(self.gateway.list_accounts.call_count, 2)
        self.assertEqual(len(menu.shown), 2)
        self.assertEqual(len(flow.state.frames), 1)


if __name__ == "__main__":
    unittest.main()
