"""Instance id assignment and parent relinking."""

import logging

from modfile.scene.nodes import SceneNode

from .bitbuffer import SerializationError
from .types import Modfile, PositionKind

logger = logging.getLogger(__name__)

INSTANCE_ID_TAG = "modfile_instance_id"


class InstanceReferences:
    """Tracks tree-local instance ids for one encode or decode call.

    Ids are assigned in pre-order starting at 0 for each attachment model, so
    they are only unique within one sub-tree. While decoding, every sub-tree
    gets its own ``tree`` index and the cache is keyed by ``(tree, id)``.
    Do not share an instance between concurrent decodes.
    """

    def __init__(self) -> None:
        self._cache: dict[tuple[int, int], list[SceneNode]] = {}
        self._registered: list[tuple[int, SceneNode]] = []
        self._tree = -1

    def reset_instance_cache(self) -> None:
        self._cache.clear()
        self._registered.clear()
        self._tree = -1

    def assign_ids(self, root: SceneNode) -> int:
        """Number ``root`` and its descendants in pre-order, returning the count."""
        root.set_attribute(INSTANCE_ID_TAG, 0)
        count = 1
        for node in root.iter_descendants():
            node.set_attribute(INSTANCE_ID_TAG, count)
            count += 1
        return count

    @staticmethod
    def instance_id(node: SceneNode) -> int:
        value = node.get_attribute(INSTANCE_ID_TAG)
        if not isinstance(value, int) or isinstance(value, bool):
            raise SerializationError(f"{node.get_full_name()} has no instance id assigned")
        return value

    def begin_tree(self) -> int:
        self._tree += 1
        return self._tree

    def register(self, tree: int, instance_id: int, node: SceneNode) -> None:
        self._cache.setdefault((tree, instance_id), []).append(node)
        self._registered.append((instance_id, node))

    def cached(self, tree: int, instance_id: int) -> SceneNode | None:
        nodes = self._cache.get((tree, instance_id))
        return nodes[0] if nodes else None

    def __len__(self) -> int:
        return len(self._registered)

    def set_instance_parents(self, modfile: Modfile) -> None:
        """Re-parent every ``child`` declaration under the registered node it references.

        Parents are looked up among the nodes passed to ``register``. When
        several were registered under the referenced id, the first one wins;
        a node never becomes its own parent.
        """
        for child in modfile.instance_declarations:
            if child.position.kind != PositionKind.CHILD:
                continue
            matches = self._cache.get((child.tree, child.position.parent_id), [])
            parent = next((node for node in matches if node is not child.instance), None)
            if parent is None:
                logger.warning(
                    "no parent with id %d for instance %d in tree %d",
                    child.position.parent_id,
                    child.position.instance_id,
                    child.tree,
                )
                continue
            child.instance.parent = parent

    def set_instance_ids(self) -> None:
        for instance_id, node in self._registered:
            node.set_attribute(INSTANCE_ID_TAG, instance_id)
