from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Literal, Sequence

from .keys import KeyEvent
from .screens import MenuEntry
from .views import clamp


@dataclass(frozen=True)
class MenuChoice:
    kind: Literal["select", "back"]
    index: int | None = None

    @classmethod
    def select(cls, index: int) -> "MenuChoice":
        return cls("select", index)

    @property
    def is_back(self) -> bool:
        return self.kind == "back"


BACK = MenuChoice("back")


@dataclass(frozen=True)
class MenuCursor:
    count: int
    index: int = 0

    def moved(self, delta: int) -> "MenuCursor":
        return replace(self, index=clamp(self.index + delta, 0, max(0, self.count - 1)))


def apply_menu_key(cursor: MenuCursor, event: KeyEvent) -> tuple[MenuCursor, MenuChoice | None]:
    if event.kind == "up":
        return cursor.moved(-1), None
    if event.kind == "down":
        return cursor.moved(1), None
    if event.kind == "enter":
        return cursor, MenuChoice.select(cursor.index)
    if event.kind == "escape":
        return cursor, BACK
    return cursor, None


class ScreenKind(Enum):
    ACCOUNT_SELECT = "account_select"
    SITE_SELECT = "site_select"
    INSTALL_SELECT = "install_select"
    INSTALL_MANAGE = "install_manage"


class Effect(Enum):
    NONE = "none"
    QUIT = "quit"
    ADD_SITE = "add_site"
    ADD_INSTALL = "add_install"
    DELETE_INSTALL = "delete_install"


CHILD_SCREEN: dict[ScreenKind, ScreenKind] = {
    ScreenKind.ACCOUNT_SELECT: ScreenKind.SITE_SELECT,
    ScreenKind.SITE_SELECT: ScreenKind.INSTALL_SELECT,
    ScreenKind.INSTALL_SELECT: ScreenKind.INSTALL_MANAGE,
}

ACTION_EFFECTS: dict[str, Effect] = {
    "add_site": Effect.ADD_SITE,
    "add_install": Effect.ADD_INSTALL,
    "delete_install": Effect.DELETE_INSTALL,
    "exit": Effect.QUIT,
}


@dataclass(frozen=True)
class Frame:
    kind: ScreenKind
    entity: Any = None
    children: tuple[Any, ...] = ()
    cursor: int = 0


@dataclass(frozen=True)
class NavState:
    frames: tuple[Frame, ...] = (Frame(ScreenKind.ACCOUNT_SELECT),)

    @property
    def top(self) -> Frame:
        return self.frames[-1]

    def push(self, frame: Frame) -> "NavState":
        return NavState(self.frames + (frame,))

    def pop(self) -> "NavState":
        if len(self.frames) <= 1:
            return self
        return NavState(self.frames[:-1])

    def with_top(self, **changes: Any) -> "NavState":
        return NavState(self.frames[:-1] + (replace(self.top, **changes),))

    def entity_for(self, kind: ScreenKind) -> Any:
        """Entity that owns the screen of ``kind`` (the account for SITE_SELECT...)."""
        for frame in reversed(self.frames):
            if frame.kind == kind:
                return frame.entity
        return None


@dataclass(frozen=True)
class Step:
    state: NavState
    effect: Effect = Effect.NONE


def advance(state: NavState, choice: MenuChoice, entries: Sequence[MenuEntry]) -> Step:
    if choice.is_back or choice.index is None:
        return _back(state)
    entry = entries[choice.index]
    if entry.action == "back":
        return _back(state)
    if entry.action == "open":
        child = CHILD_SCREEN[state.top.kind]
        return Step(state.with_top(cursor=choice.index).push(Frame(child, entry.target)))
    return Step(state, ACTION_EFFECTS[entry.action])


def _back(state: NavState) -> Step:
    if len(state.frames) <= 1:
        return Step(state, Effect.QUIT)
    return Step(state.pop())


def after_delete(state: NavState, deleted: bool) -> NavState:
    if deleted and state.top.kind == ScreenKind.INSTALL_MANAGE:
        return state.pop()
    return state
