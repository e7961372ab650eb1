"""In-memory scene hierarchy consumed and produced by the packager."""

from collections.abc import Iterator
from typing import Any

Value = str | bool | int | float


class SceneError(RuntimeError):
    """Raised when a scene hierarchy or scene file is malformed."""


class SceneNode:
    """A named node in a scene hierarchy.

    ``properties`` are the node's authored values (for a ``ModuleScript`` they
    are the table the module returns), ``attributes`` are free-form tags such
    as the packager's scratch instance ids.
    """

    def __init__(
        self,
        class_name: str,
        name: str,
        properties: dict[str, Value] | None = None,
        attributes: dict[str, Value] | None = None,
        parent: "SceneNode | None" = None,
    ) -> None:
        self.class_name = class_name
        self.name = name
        self.properties: dict[str, Value] = dict(properties or {})
        self.attributes: dict[str, Value] = dict(attributes or {})
        self._children: list[SceneNode] = []
        self._parent: SceneNode | None = None
        self.parent = parent

    def __repr__(self) -> str:
        return f"SceneNode({self.class_name!r}, {self.name!r})"

    @property
    def parent(self) -> "SceneNode | None":
        return self._parent

    @parent.setter
    def parent(self, new_parent: "SceneNode | None") -> None:
        if new_parent is self._parent:
            return
        node: SceneNode | None = new_parent
        while node is not None:
            if node is self:
                raise SceneError(f"cannot parent {self.get_full_name()} under its own descendant")
            node = node._parent
        if self._parent is not None:
            self._parent._children.remove(self)
        self._parent = new_parent
        if new_parent is not None:
            new_parent._children.append(self)

    def is_a(self, class_name: str) -> bool:
        return self.class_name == class_name

    def find_first_child(self, name: str) -> "SceneNode | None":
        for child in self._children:
            if child.name == name:
                return child
        return None

    def get_children(self) -> list["SceneNode"]:
        return list(self._children)

    def iter_descendants(self) -> Iterator["SceneNode"]:
        """Yield every descendant in pre-order (the node itself excluded)."""
        stack = list(reversed(self._children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node._children))

    def get_descendants(self) -> list["SceneNode"]:
        return list(self.iter_descendants())

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def set_attribute(self, name: str, value: Value | None) -> None:
        if value is None:
            self.attributes.pop(name, None)
        else:
            self.attributes[name] = value

    def get_full_name(self) -> str:
        names = []
        node: SceneNode | None = self
        while node is not None:
            names.append(node.name)
            node = node._parent
        return ".".join(reversed(names))
