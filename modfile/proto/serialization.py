"""Record codecs for the four modfile declaration types.

Every codec writes its fields in a fixed order and reads them back in the
same order, consuming exactly the bits ``write`` produced. Text is always
length prefixed (see ``BitBuffer.write_string``).
"""

from enum import IntEnum
from typing import Any, ClassVar

from modfile.scene.nodes import SceneNode

from .bitbuffer import BitBuffer, SerializationError
from .references import INSTANCE_ID_TAG, InstanceReferences
from .types import (
    AttachmentDeclaration,
    ClassDeclaration,
    ClassProperties,
    InstanceDeclaration,
    InstancePosition,
    MetadataDeclaration,
    PositionKind,
    Properties,
)

ID_BITS = 32
COUNT_BITS = 16
INT_BITS = 64


class RecordKind(IntEnum):
    """One-byte discriminant written before every record. 0 is never valid."""

    METADATA = 1
    CLASS = 2
    ATTACHMENT = 3
    INSTANCE = 4


class ValueTag(IntEnum):
    """Two-bit type tag of a property value."""

    STRING = 0
    BOOL = 1
    INT = 2
    FLOAT = 3


VALUE_TAG_BITS = 2


def write_value(buffer: BitBuffer, value: Any) -> None:
    # bool before int, bool is an int subclass
    if isinstance(value, bool):
        buffer.write_uint(ValueTag.BOOL, VALUE_TAG_BITS)
        buffer.write_bool(value)
    elif isinstance(value, int):
        buffer.write_uint(ValueTag.INT, VALUE_TAG_BITS)
        buffer.write_int(value, INT_BITS)
    elif isinstance(value, float):
        buffer.write_uint(ValueTag.FLOAT, VALUE_TAG_BITS)
        buffer.write_float64(value)
    elif isinstance(value, str):
        buffer.write_uint(ValueTag.STRING, VALUE_TAG_BITS)
        buffer.write_string(value)
    else:
        raise SerializationError(f"unsupported property value {value!r}")


def read_value(buffer: BitBuffer) -> Any:
    tag = buffer.read_uint(VALUE_TAG_BITS)
    if tag == ValueTag.BOOL:
        return buffer.read_bool()
    if tag == ValueTag.INT:
        return buffer.read_int(INT_BITS)
    if tag == ValueTag.FLOAT:
        return buffer.read_float64()
    return buffer.read_string()


def write_properties(buffer: BitBuffer, properties: Properties) -> None:
    if len(properties) > (1 << COUNT_BITS) - 1:
        raise SerializationError(f"property bag exceeds {(1 << COUNT_BITS) - 1} entries")
    buffer.write_uint(len(properties), COUNT_BITS)
    for key, value in properties.items():
        buffer.write_string(key)
        write_value(buffer, value)


def read_properties(buffer: BitBuffer) -> Properties:
    properties: Properties = {}
    for _ in range(buffer.read_uint(COUNT_BITS)):
        key = buffer.read_string()
        properties[key] = read_value(buffer)
    return properties


class RecordCodec:
    """Base class for record codecs.

    Subclasses set ``kind`` and implement ``write`` and ``read``. ``read``
    receives the decode call's ``InstanceReferences`` so instance records can
    register the nodes they create.
    """

    kind: ClassVar[RecordKind]

    def write(self, buffer: BitBuffer, value: Any) -> None:
        raise NotImplementedError("write() must be implemented by a codec")

    def read(self, buffer: BitBuffer, references: InstanceReferences) -> Any:
        raise NotImplementedError("read() must be implemented by a codec")


class MetadataCodec(RecordCodec):
    kind = RecordKind.METADATA

    def write(self, buffer: BitBuffer, value: MetadataDeclaration) -> None:
        buffer.write_string(value.name)
        buffer.write_string(value.description)
        buffer.write_string(value.author)
        buffer.write_string(value.image)

    def read(self, buffer: BitBuffer, references: InstanceReferences) -> MetadataDeclaration:
        return MetadataDeclaration(
            name=buffer.read_string(),
            description=buffer.read_string(),
            author=buffer.read_string(),
            image=buffer.read_string(),
        )


class AttachmentCodec(RecordCodec):
    kind = RecordKind.ATTACHMENT

    def write(self, buffer: BitBuffer, value: AttachmentDeclaration) -> None:
        buffer.write_uint(value.instance_id, ID_BITS)
        buffer.write_string(value.parent_class)
        write_properties(buffer, value.properties)
        write_properties(buffer, value.runtime_properties)

    def read(self, buffer: BitBuffer, references: InstanceReferences) -> AttachmentDeclaration:
        return AttachmentDeclaration(
            instance_id=buffer.read_uint(ID_BITS),
            parent_class=buffer.read_string(),
            properties=read_properties(buffer),
            runtime_properties=read_properties(buffer),
        )


class ClassCodec(RecordCodec):
    """Class group record.

    Attachments given inline are written after the name, but the packager
    always passes an empty list and emits attachments as sibling records.
    """

    kind = RecordKind.CLASS

    def __init__(self, attachment_codec: AttachmentCodec | None = None) -> None:
        self._attachment_codec = attachment_codec or AttachmentCodec()

    def write(self, buffer: BitBuffer, value: ClassDeclaration) -> None:
        if len(value.attachments) > (1 << COUNT_BITS) - 1:
            raise SerializationError(f"class {value.properties.name} has too many attachments")
        buffer.write_string(value.properties.name)
        buffer.write_uint(len(value.attachments), COUNT_BITS)
        for attachment in value.attachments:
            self._attachment_codec.write(buffer, attachment)

    def read(self, buffer: BitBuffer, references: InstanceReferences) -> ClassDeclaration:
        name = buffer.read_string()
        attachments = [
            self._attachment_codec.read(buffer, references)
            for _ in range(buffer.read_uint(COUNT_BITS))
        ]
        return ClassDeclaration(properties=ClassProperties(name=name), attachments=attachments)


class InstanceCodec(RecordCodec):
    """Instance record carrying a whole sub-tree.

    ``write`` takes the declaration of a sub-tree's root whose nodes already
    carry tree-local ids, and writes the root followed by every descendant in
    pre-order. ``read`` returns the root declaration followed by one
    ``CHILD`` declaration per descendant; the nodes come back unparented and
    are linked by ``InstanceReferences.set_instance_parents``.
    """

    kind = RecordKind.INSTANCE

    def write(self, buffer: BitBuffer, value: InstanceDeclaration) -> None:
        position = value.position
        buffer.write_bool(position.kind == PositionKind.CHILD)
        buffer.write_uint(position.parent_id, ID_BITS)
        buffer.write_uint(position.instance_id, ID_BITS)
        self._write_node(buffer, value.instance)

        descendants = value.instance.get_descendants()
        buffer.write_uint(len(descendants), ID_BITS)
        for node in descendants:
            buffer.write_uint(InstanceReferences.instance_id(node.parent), ID_BITS)
            buffer.write_uint(InstanceReferences.instance_id(node), ID_BITS)
            self._write_node(buffer, node)

    def read(
        self, buffer: BitBuffer, references: InstanceReferences
    ) -> list[InstanceDeclaration]:
        tree = references.begin_tree()
        kind = PositionKind.CHILD if buffer.read_bool() else PositionKind.ATTACHMENT_ROOT
        parent_id = buffer.read_uint(ID_BITS)
        instance_id = buffer.read_uint(ID_BITS)
        declarations = [
            self._read_declaration(buffer, references, tree, kind, parent_id, instance_id)
        ]

        for _ in range(buffer.read_uint(ID_BITS)):
            parent_id = buffer.read_uint(ID_BITS)
            instance_id = buffer.read_uint(ID_BITS)
            declarations.append(
                self._read_declaration(
                    buffer, references, tree, PositionKind.CHILD, parent_id, instance_id
                )
            )
        return declarations

    def _read_declaration(
        self,
        buffer: BitBuffer,
        references: InstanceReferences,
        tree: int,
        kind: PositionKind,
        parent_id: int,
        instance_id: int,
    ) -> InstanceDeclaration:
        node = self._read_node(buffer)
        references.register(tree, instance_id, node)
        return InstanceDeclaration(
            position=InstancePosition(kind=kind, parent_id=parent_id, instance_id=instance_id),
            instance=node,
            tree=tree,
        )

    @staticmethod
    def _write_node(buffer: BitBuffer, node: SceneNode) -> None:
        buffer.write_string(node.class_name)
        buffer.write_string(node.name)
        write_properties(buffer, node.properties)
        # the scratch id is rebuilt from the record itself
        write_properties(
            buffer, {key: value for key, value in node.attributes.items() if key != INSTANCE_ID_TAG}
        )

    @staticmethod
    def _read_node(buffer: BitBuffer) -> SceneNode:
        class_name = buffer.read_string()
        name = buffer.read_string()
        return SceneNode(
            class_name,
            name,
            properties=read_properties(buffer),
            attributes=read_properties(buffer),
        )
