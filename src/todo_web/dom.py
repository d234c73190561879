"""
A small headless document model for driving page widgets outside a browser.

Markup is parsed with BeautifulSoup; this module adds the pieces a widget
needs on top of the parsed tree:

- event listeners registered per node and matched by handler identity,
  dispatched with bubbling from the target up to the document
- class list and inline style manipulation
- a box layout where anything carrying the ``hidden`` class (or sitting under
  an element that does) measures 0x0, and other elements take their inline
  ``width``/``height`` in px or else grow to fit their visible children
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

from bs4 import BeautifulSoup
from bs4.element import PageElement, Tag

from .settings import get_settings

HIDDEN = "hidden"

Node = Union[Tag, PageElement]


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int

    @classmethod
    def from_settings(cls) -> "Viewport":
        settings = get_settings()
        return cls(width=settings.viewport_width, height=settings.viewport_height)


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int


@dataclass
class MouseEvent:
    """A pointer event with viewport-relative coordinates."""

    type: str
    target: Node
    client_x: int = 0
    client_y: int = 0
    default_prevented: bool = field(default=False, init=False)
    propagation_stopped: bool = field(default=False, init=False)

    def prevent_default(self) -> None:
        self.default_prevented = True

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


Listener = Callable[[MouseEvent], None]


# -- class list -------------------------------------------------------------

def class_list(tag: Tag) -> List[str]:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return list(classes)


def has_class(tag: Tag, name: str) -> bool:
    return name in class_list(tag)


def toggle_class(tag: Tag, name: str, force: Optional[bool] = None) -> bool:
    """
    Add or remove ``name`` from the class list. With ``force`` the class is
    added when True and removed when False. Returns whether the class is now present.
    """
    classes = class_list(tag)
    present = name in classes
    want = (not present) if force is None else force
    if want and not present:
        classes.append(name)
    elif not want and present:
        classes = [c for c in classes if c != name]
    if classes:
        tag["class"] = classes
    elif "class" in tag.attrs:
        del tag["class"]
    return want


def add_class(tag: Tag, name: str) -> None:
    toggle_class(tag, name, True)


def remove_class(tag: Tag, name: str) -> None:
    toggle_class(tag, name, False)


# -- inline style -----------------------------------------------------------

def get_style(tag: Tag) -> Dict[str, str]:
    declarations: Dict[str, str] = {}
    for chunk in (tag.get("style") or "").split(";"):
        prop, sep, value = chunk.partition(":")
        if sep and prop.strip():
            declarations[prop.strip().lower()] = value.strip()
    return declarations


def set_style(tag: Tag, prop: str, value: str) -> None:
    declarations = get_style(tag)
    declarations[prop.lower()] = value
    tag["style"] = "; ".join(f"{k}: {v}" for k, v in declarations.items())


def parse_px(value: Optional[str]) -> Optional[int]:
    if not value or not value.endswith("px"):
        return None
    try:
        return int(float(value[:-2]))
    except ValueError:
        return None


# -- tree queries -----------------------------------------------------------

def closest(node: Optional[Node], name: str) -> Optional[Tag]:
    """Return the nearest element named ``name``, starting with ``node`` itself."""
    current = node
    while current is not None:
        if isinstance(current, Tag) and current.name == name:
            return current
        current = current.parent
    return None


def contains(ancestor: Tag, node: Optional[Node]) -> bool:
    """Identity-based containment; a node contains itself."""
    current = node
    while current is not None:
        if current is ancestor:
            return True
        current = current.parent
    return False


def is_hidden(tag: Tag) -> bool:
    current: Optional[Node] = tag
    while current is not None:
        if isinstance(current, Tag) and has_class(current, HIDDEN):
            return True
        current = current.parent
    return False


# -- layout -----------------------------------------------------------------

def _box(tag: Tag) -> Dimensions:
    style = get_style(tag)
    children = [_box(c) for c in tag.children if isinstance(c, Tag) and not has_class(c, HIDDEN)]
    width = parse_px(style.get("width"))
    height = parse_px(style.get("height"))
    return Dimensions(
        width=width if width is not None else max((c.width for c in children), default=0),
        height=height if height is not None else sum(c.height for c in children),
    )


def measure(tag: Tag) -> Dimensions:
    """Rendered size of ``tag``; hidden elements report zero in both axes."""
    if is_hidden(tag):
        return Dimensions(0, 0)
    return _box(tag)


@contextmanager
def revealed(tag: Tag) -> Iterator[Tag]:
    """
    Temporarily drop the ``hidden`` class so the element can be measured.
    The previous visibility is restored on exit, also when the body raises.
    """
    was_hidden = has_class(tag, HIDDEN)
    remove_class(tag, HIDDEN)
    try:
        yield tag
    finally:
        if was_hidden:
            add_class(tag, HIDDEN)


# -- document ---------------------------------------------------------------

class Document:
    """
    A parsed page plus its event listener registry and viewport.

    Listeners registered without a node belong to the document itself and run
    last during bubbling.
    """

    def __init__(self, markup: str, viewport: Optional[Viewport] = None) -> None:
        self.root = BeautifulSoup(markup, "html.parser")
        self.viewport = viewport or Viewport.from_settings()
        self._listeners: List[Tuple[Node, str, Listener]] = []

    def query(self, selector: str) -> Optional[Tag]:
        return self.root.select_one(selector)

    def _node(self, node: Optional[Node]) -> Node:
        return self.root if node is None else node

    def _index(self, node: Node, event_type: str, handler: Listener) -> Optional[int]:
        for i, (n, t, h) in enumerate(self._listeners):
            if n is node and t == event_type and h is handler:
                return i
        return None

    def add_event_listener(self, event_type: str, handler: Listener, node: Optional[Node] = None) -> None:
        """Register ``handler``; registering the same handler object twice is a no-op."""
        target = self._node(node)
        if self._index(target, event_type, handler) is None:
            self._listeners.append((target, event_type, handler))

    def remove_event_listener(self, event_type: str, handler: Listener, node: Optional[Node] = None) -> bool:
        """
        Remove a listener previously registered with the very same handler
        object. An equal-but-distinct callable does not match.
        """
        i = self._index(self._node(node), event_type, handler)
        if i is None:
            return False
        del self._listeners[i]
        return True

    def listener_count(self, event_type: Optional[str] = None) -> int:
        return sum(1 for _, t, _ in self._listeners if event_type is None or t == event_type)

    def _propagation_path(self, target: Node) -> List[Node]:
        path: List[Node] = []
        current: Optional[Node] = target
        while current is not None:
            path.append(current)
            current = current.parent
        if path[-1] is not self.root:
            path.append(self.root)
        return path

    def dispatch(self, event: MouseEvent) -> MouseEvent:
        """
        Run listeners for ``event`` from its target up to the document, stopping
        after the node on which ``stop_propagation`` was called.
        """
        for node in self._propagation_path(event.target):
            handlers = [h for n, t, h in self._listeners if n is node and t == event.type]
            for handler in handlers:
                handler(event)
            if event.propagation_stopped:
                break
        return event

    def click(self, target: Node, x: int = 0, y: int = 0, event_type: str = "click") -> MouseEvent:
        """Convenience wrapper dispatching a pointer event at ``target``."""
        return self.dispatch(MouseEvent(type=event_type, target=target, client_x=x, client_y=y))
