"""
Row context menu for the todo table.

The menu lives inside a container marked ``data-controller="context-menu"``
and names its parts with ``data-context-menu-target``:

    menu        the floating box that is shown and positioned
    showLink    rewritten to /todos/{id}
    editLink    rewritten to /todos/{id}/edit
    deleteLink  rewritten to /todos/{id}

Rows carry their identifier in ``data-todo-id``. Opening on a row points the
three links at that todo; opening anywhere else shows the menu without links.
Any document click outside the menu, on the menu background, or on one of its
links closes it again.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from bs4.element import Tag

from .dom import (
    HIDDEN,
    Dimensions,
    Document,
    Listener,
    MouseEvent,
    Viewport,
    add_class,
    closest,
    contains,
    get_style,
    has_class,
    measure,
    parse_px,
    remove_class,
    revealed,
    set_style,
    toggle_class,
)
from .utils import edit_todo_path, todo_path

logger = logging.getLogger(__name__)

CONTROLLER = "context-menu"
CONTROLLER_SELECTOR = f'[data-controller~="{CONTROLLER}"]'
TARGET_ATTR = f"data-{CONTROLLER}-target"
ROW_ID_ATTR = "data-todo-id"

MENU = "menu"
LINK_TARGETS = ("showLink", "editLink", "deleteLink")
TARGETS = (MENU,) + LINK_TARGETS


class ContextMenuConfigError(ValueError):
    """The host page does not provide the elements the menu needs."""


@dataclass(frozen=True)
class Position:
    left: int = 0
    top: int = 0


@dataclass(frozen=True)
class MenuState:
    visible: bool = False
    target_row_id: Optional[str] = None
    position: Position = field(default_factory=Position)


# PUBLIC_INTERFACE
def clamp_value(value: int, max_value: int, element_dimension: int) -> int:
    """
    Keep a box of size ``element_dimension`` starting at ``value`` inside
    ``[0, max_value]``: ``min(value, max_value - element_dimension)``, never below 0.
    """
    return max(0, min(value, max_value - element_dimension))


def row_id(row: Optional[Tag]) -> Optional[str]:
    """Identifier carried by a table row, or None when absent or blank."""
    if row is None:
        return None
    value = row.get(ROW_ID_ATTR)
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


class ContextMenu:
    """
    Controller for one context menu container in a :class:`Document`.

    ``attach`` wires the listeners and ``detach`` removes exactly those. The
    handlers are captured once at construction so that the objects handed to
    the document on registration are the same ones handed back on removal.
    """

    def __init__(self, document: Document, viewport: Optional[Viewport] = None, trigger: str = "contextmenu") -> None:
        self.document = document
        self.viewport = viewport or document.viewport
        self.trigger = trigger
        self.container: Optional[Tag] = None
        self.targets: Dict[str, Tag] = {}
        self._row_id: Optional[str] = None
        self._registrations: List[Tuple[str, Listener, Optional[Tag]]] = []
        self._open_listener: Listener = self.open
        self._hide_listener: Listener = self.hide_menu

    # -- lifecycle ----------------------------------------------------------

    @property
    def is_attached(self) -> bool:
        return bool(self._registrations)

    def _resolve_targets(self, container: Tag) -> Dict[str, Tag]:
        found: Dict[str, Tag] = {}
        missing = []
        for name in TARGETS:
            element = container.select_one(f'[{TARGET_ATTR}="{name}"]')
            if element is None:
                missing.append(name)
            else:
                found[name] = element
        if missing:
            raise ContextMenuConfigError(f"context menu is missing target(s): {', '.join(missing)}")
        return found

    def attach(self, container: Optional[Tag] = None) -> "ContextMenu":
        """
        Resolve the menu parts under ``container`` (by default the first
        ``data-controller="context-menu"`` element) and start listening:
        the trigger event on the container opens the menu, any document click
        may close it.

        Raises:
            ContextMenuConfigError: no container, a target is missing, or the
                menu is already attached.
        """
        if self.is_attached:
            raise ContextMenuConfigError("context menu is already attached")
        if container is None:
            container = self.document.query(CONTROLLER_SELECTOR)
            if container is None:
                raise ContextMenuConfigError(f"no element matches {CONTROLLER_SELECTOR}")

        self.targets = self._resolve_targets(container)
        self.container = container

        for event_type, handler, node in (
            (self.trigger, self._open_listener, container),
            ("click", self._hide_listener, None),
        ):
            self.document.add_event_listener(event_type, handler, node)
            self._registrations.append((event_type, handler, node))
        logger.debug("Context menu attached (%s listeners)", len(self._registrations))
        return self

    def detach(self) -> None:
        """Remove every listener registered by :meth:`attach`. Safe to call twice."""
        while self._registrations:
            event_type, handler, node = self._registrations.pop()
            self.document.remove_event_listener(event_type, handler, node)
        logger.debug("Context menu detached")

    @contextmanager
    def attached(self, container: Optional[Tag] = None) -> Iterator["ContextMenu"]:
        self.attach(container)
        try:
            yield self
        finally:
            self.detach()

    # -- state --------------------------------------------------------------

    @property
    def menu(self) -> Tag:
        if MENU not in self.targets:
            raise ContextMenuConfigError("context menu is not attached")
        return self.targets[MENU]

    @property
    def state(self) -> MenuState:
        style = get_style(self.menu)
        return MenuState(
            visible=not has_class(self.menu, HIDDEN),
            target_row_id=self._row_id,
            position=Position(left=parse_px(style.get("left")) or 0, top=parse_px(style.get("top")) or 0),
        )

    def link(self, name: str) -> Tag:
        return self.targets[name]

    # -- opening ------------------------------------------------------------

    def open(self, event: MouseEvent, row: Optional[Tag] = None) -> None:
        """
        Show the menu at the pointer. With a row carrying an id the action
        links point at that todo; otherwise they are hidden.

        Events raised inside the menu itself are left alone so they reach
        :meth:`hide_menu` on the document.
        """
        if row is None and contains(self.menu, event.target):
            return
        event.prevent_default()
        event.stop_propagation()

        target_row = row if row is not None else closest(event.target, "tr")
        todo_id = row_id(target_row)

        if todo_id:
            self.update_link_targets(todo_id)
            self.toggle_menu_options(hide=False)
        else:
            self.toggle_menu_options(hide=True)
        self._row_id = todo_id

        # Link visibility must be settled before measuring, it changes the box.
        self.position_menu(event)
        remove_class(self.menu, HIDDEN)
        logger.debug("Context menu opened for row %s at %s", todo_id, self.state.position)

    def update_link_targets(self, todo_id: str) -> None:
        self.link("showLink")["href"] = todo_path(todo_id)
        self.link("editLink")["href"] = edit_todo_path(todo_id)
        self.link("deleteLink")["href"] = todo_path(todo_id)

    def toggle_menu_options(self, hide: bool) -> None:
        for name in LINK_TARGETS:
            toggle_class(self.link(name), HIDDEN, hide)

    def dimensions(self) -> Dimensions:
        with revealed(self.menu) as menu:
            return measure(menu)

    def position_menu(self, event: MouseEvent) -> Position:
        size = self.dimensions()
        position = Position(
            left=clamp_value(event.client_x, self.viewport.width, size.width),
            top=clamp_value(event.client_y, self.viewport.height, size.height),
        )
        set_style(self.menu, "left", f"{position.left}px")
        set_style(self.menu, "top", f"{position.top}px")
        return position

    # -- closing ------------------------------------------------------------

    def should_hide_menu(self, event: MouseEvent) -> bool:
        menu = self.menu
        target = event.target
        if not contains(menu, target) or target is menu:
            return True
        anchor = closest(target, "a")
        return anchor is not None and contains(menu, anchor)

    def hide_menu(self, event: MouseEvent) -> None:
        if has_class(self.menu, HIDDEN):
            return
        if self.should_hide_menu(event):
            add_class(self.menu, HIDDEN)
            self._row_id = None
            logger.debug("Context menu hidden")

