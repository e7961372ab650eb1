"""Record dispatch: tag byte plus the codec registered for that tag."""

from typing import Any

from .bitbuffer import BitBuffer, SerializationError
from .references import InstanceReferences
from .serialization import (
    AttachmentCodec,
    ClassCodec,
    InstanceCodec,
    MetadataCodec,
    RecordCodec,
    RecordKind,
)
from .types import (
    AttachmentDeclaration,
    ClassDeclaration,
    InstanceDeclaration,
    MetadataDeclaration,
    Modfile,
)

TAG_BITS = 8


class DecodeError(RuntimeError):
    """Raised when a modfile cannot be decoded."""


class DispatchTable:
    """Maps each ``RecordKind`` to the codec that reads and writes it."""

    def __init__(self, codecs: list[RecordCodec] | None = None) -> None:
        if codecs is None:
            codecs = [MetadataCodec(), ClassCodec(), AttachmentCodec(), InstanceCodec()]
        self._codecs: dict[int, RecordCodec] = {}
        for codec in codecs:
            if codec.kind in self._codecs:
                raise ValueError(f"Duplicate codec for record kind {codec.kind.name}")
            self._codecs[codec.kind] = codec

    def codec(self, kind: RecordKind) -> RecordCodec:
        return self._codecs[kind]

    def encode_one(self, kind: RecordKind, buffer: BitBuffer, payload: Any) -> None:
        """Write one record of a known kind."""
        codec = self._codecs[kind]
        buffer.write_uint(kind, TAG_BITS)
        codec.write(buffer, payload)

    def decode_one(
        self, file: Modfile, buffer: BitBuffer, references: InstanceReferences
    ) -> bool:
        """Read the record at the cursor and append it to ``file``.

        Returns False when the buffer is too short to hold another record tag.
        Raises ``DecodeError`` when the tag is unknown or the record is
        malformed.
        """
        if buffer.remaining_bits() < TAG_BITS:
            return False

        start = buffer.pointer
        tag = buffer.read_uint(TAG_BITS)

        codec = self._codecs.get(tag)
        if codec is None:
            raise DecodeError(f"unknown record tag {tag} at bit {start}")

        try:
            value = codec.read(buffer, references)
        except SerializationError as exc:
            raise DecodeError(
                f"malformed {codec.kind.name.lower()} record at bit {start}: {exc}"
            ) from exc

        _append(file, value)
        return True


def _append(file: Modfile, value: Any) -> None:
    if isinstance(value, MetadataDeclaration):
        file.info = value
    elif isinstance(value, ClassDeclaration):
        file.class_declarations.append(value)
    elif isinstance(value, AttachmentDeclaration):
        file.attachment_declarations.append(value)
        # an attachment belongs to the class record written before it
        if file.class_declarations:
            file.class_declarations[-1].attachments.append(value)
    elif isinstance(value, list) and all(isinstance(v, InstanceDeclaration) for v in value):
        file.instance_declarations.extend(value)
    else:
        raise DecodeError(f"codec produced unexpected value {type(value).__name__}")
