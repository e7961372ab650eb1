"""Declaration types that make up a modfile.

These dataclasses are what the record codecs write and read. They carry
``DataClassJsonMixin`` so a decoded file can be dumped as JSON.
"""

from dataclasses import dataclass, field
from enum import StrEnum

from dataclasses_json import DataClassJsonMixin, config

from modfile.scene.nodes import SceneNode, Value

Properties = dict[str, Value]


@dataclass
class MetadataDeclaration(DataClassJsonMixin):
    """Descriptive information about a mod."""

    name: str
    description: str
    author: str
    image: str


@dataclass
class ClassProperties(DataClassJsonMixin):
    """Properties of an attachment class group."""

    name: str


@dataclass
class AttachmentDeclaration(DataClassJsonMixin):
    """One attachable sub-component of a class group.

    ``instance_id`` is only unique within its class group.
    """

    instance_id: int
    parent_class: str
    properties: Properties = field(default_factory=dict)
    runtime_properties: Properties = field(default_factory=dict)


@dataclass
class ClassDeclaration(DataClassJsonMixin):
    """A named group of attachments.

    On the wire the attachments follow the class record as sibling records;
    ``attachments`` collects them again while decoding.
    """

    properties: ClassProperties
    attachments: list[AttachmentDeclaration] = field(default_factory=list)


class PositionKind(StrEnum):
    """Where an instance sits in its reconstructed sub-tree."""

    ATTACHMENT_ROOT = "attachment_root"
    CHILD = "child"


@dataclass
class InstancePosition(DataClassJsonMixin):
    """Tree-local id of an instance and the id of what it hangs off.

    For ``ATTACHMENT_ROOT`` the parent id is the owning attachment's
    ``instance_id``; for ``CHILD`` it is another instance's ``instance_id``.
    """

    kind: PositionKind
    parent_id: int
    instance_id: int


@dataclass
class InstanceDeclaration(DataClassJsonMixin):
    """One node of a reconstructed sub-tree."""

    position: InstancePosition
    instance: SceneNode = field(metadata=config(encoder=lambda node: node.get_full_name()))
    tree: int = 0  # index of the attachment sub-tree, assigned while decoding


@dataclass
class Modfile(DataClassJsonMixin):
    """A complete decoded or encoded mod package."""

    version: int
    info: MetadataDeclaration | None = None
    class_declarations: list[ClassDeclaration] = field(default_factory=list)
    instance_declarations: list[InstanceDeclaration] = field(default_factory=list)
    attachment_declarations: list[AttachmentDeclaration] = field(default_factory=list)

    def attachment_roots(self) -> list[InstanceDeclaration]:
        return [
            declaration
            for declaration in self.instance_declarations
            if declaration.position.kind == PositionKind.ATTACHMENT_ROOT
        ]

    def attachment_models(self) -> list[tuple[AttachmentDeclaration, SceneNode]]:
        """Pair every attachment with the root node of its sub-tree.

        Each attachment record is followed by the instance record of its
        model, so attachments and roots pair up in file order.
        """
        return [
            (attachment, root.instance)
            for attachment, root in zip(self.attachment_declarations, self.attachment_roots())
        ]
