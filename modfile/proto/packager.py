"""Encode a scene hierarchy into a modfile blob and decode it back."""

import binascii
import logging
import time

from modfile.scene.nodes import SceneError, SceneNode

from .bitbuffer import BitBuffer
from .dispatch import DecodeError, DispatchTable
from .references import InstanceReferences
from .serialization import RecordKind
from .types import (
    AttachmentDeclaration,
    ClassDeclaration,
    ClassProperties,
    InstanceDeclaration,
    InstancePosition,
    MetadataDeclaration,
    Modfile,
    PositionKind,
    Properties,
)

logger = logging.getLogger(__name__)

# Changing this makes every previously exported mod unreadable. Re-export
# mods with the new version instead of patching the version byte.
PACKAGER_VERSION = 1
VERSION_BITS = 8

# A decoded buffer ends with up to 7 zero pad bits.
TRAILING_BITS = 8

METADATA_DEFAULTS = {
    "name": "No name",
    "description": "No description",
    "author": "No author",
    "image": "No image",
}


class PackagingError(RuntimeError):
    """Raised when a mod source hierarchy is malformed."""


def require_module(root: SceneNode, name: str) -> Properties:
    """Return the table of the ``ModuleScript`` called ``name`` under ``root``."""
    module = root.find_first_child(name)

    if module is None:
        raise PackagingError(
            f"Error while requiring {name} inside {root.get_full_name()} (it doesn't exist)"
        )
    if not module.is_a("ModuleScript"):
        raise PackagingError(
            f"Error while requiring {name} inside {root.get_full_name()} (it's not a modulescript)"
        )

    return dict(module.properties)


def _metadata(model: SceneNode) -> MetadataDeclaration:
    properties: Properties = {}
    if model.find_first_child("info") is not None:
        properties = require_module(model, "info")
    else:
        logger.info("no info module found, using default metadata")

    values = {
        key: str(properties.get(key) or default) for key, default in METADATA_DEFAULTS.items()
    }
    return MetadataDeclaration(**values)


class Packager:
    """Encodes and decodes modfiles.

    A packager holds no per-call state; every decode gets its own
    ``InstanceReferences``, so one packager can serve concurrent calls.
    """

    def __init__(self, dispatch: DispatchTable | None = None) -> None:
        self._dispatch = dispatch or DispatchTable()

    def pack(self, model: SceneNode) -> BitBuffer:
        """Write ``model`` into a new buffer.

        Raises ``PackagingError`` if a required part of the source is missing
        or of the wrong kind; nothing is returned in that case.
        """
        logger.info("encoding %s", model.name)

        buffer = BitBuffer()
        references = InstanceReferences()
        buffer.write_uint(PACKAGER_VERSION, VERSION_BITS)
        self._dispatch.encode_one(RecordKind.METADATA, buffer, _metadata(model))

        attachments = model.find_first_child("attachments")
        if attachments is None:
            logger.info("no attachments found")
            return buffer

        for folder in attachments.get_children():
            logger.debug("attachments/%s", folder.name)
            self._dispatch.encode_one(
                RecordKind.CLASS,
                buffer,
                ClassDeclaration(properties=ClassProperties(name=folder.name), attachments=[]),
            )

            # attachment ids restart for every class group
            for next_attachment_id, attachment in enumerate(folder.get_children()):
                logger.debug("attachments/%s/%s", folder.name, attachment.name)
                self._pack_attachment(buffer, references, folder, attachment, next_attachment_id)

        return buffer

    def _pack_attachment(
        self,
        buffer: BitBuffer,
        references: InstanceReferences,
        folder: SceneNode,
        attachment: SceneNode,
        attachment_id: int,
    ) -> None:
        model = attachment.find_first_child("model")
        if model is None:
            raise PackagingError(f"{attachment.name} is missing a model")

        properties = require_module(attachment, "properties")
        runtime_properties = require_module(attachment, "runtime_properties")

        self._dispatch.encode_one(
            RecordKind.ATTACHMENT,
            buffer,
            AttachmentDeclaration(
                instance_id=attachment_id,
                parent_class=folder.name,
                properties=properties,
                runtime_properties=runtime_properties,
            ),
        )

        references.assign_ids(model)
        self._dispatch.encode_one(
            RecordKind.INSTANCE,
            buffer,
            InstanceDeclaration(
                position=InstancePosition(
                    kind=PositionKind.ATTACHMENT_ROOT,
                    parent_id=attachment_id,
                    instance_id=references.instance_id(model),
                ),
                instance=model,
            ),
        )

    def encode(self, model: SceneNode) -> str:
        """Encode ``model`` as base-64 text."""
        return self.pack(model).dump_base64()

    def unpack(self, buffer: BitBuffer) -> Modfile | str:
        """Decode a modfile from ``buffer``.

        Returns a description of the problem instead of a ``Modfile`` when the
        version byte does not match ``PACKAGER_VERSION``. Raises
        ``DecodeError`` when the data is corrupt.
        """
        start_time = time.perf_counter()

        if buffer.remaining_bits() < VERSION_BITS:
            raise DecodeError("modfile is too short to hold a version")

        file = Modfile(version=buffer.read_uint(VERSION_BITS))
        if file.version != PACKAGER_VERSION:
            return (
                f"invalid packager version. mod is version {file.version}, "
                f"but packager uses {PACKAGER_VERSION}"
            )

        references = InstanceReferences()
        references.reset_instance_cache()
        while buffer.remaining_bits() > TRAILING_BITS and self._dispatch.decode_one(
            file, buffer, references
        ):
            pass

        try:
            references.set_instance_parents(file)
        except SceneError as exc:
            raise DecodeError(f"invalid instance hierarchy: {exc}") from exc
        references.set_instance_ids()

        logger.info("%.2f ms to finish", (time.perf_counter() - start_time) * 1000)
        return file

    def decode_to_modfile(self, blob: str) -> Modfile | str:
        """Decode base-64 text produced by ``encode``."""
        logger.info("decoding to modfile")
        try:
            buffer = BitBuffer.from_base64(blob)
        except (binascii.Error, ValueError) as exc:
            raise DecodeError(f"modfile is not valid base-64: {exc}") from exc
        return self.unpack(buffer)


def encode(model: SceneNode) -> str:
    return Packager().encode(model)


def decode_to_modfile(blob: str) -> Modfile | str:
    return Packager().decode_to_modfile(blob)


decode = decode_to_modfile


def rebuild_scene(modfile: Modfile) -> SceneNode:
    """Assemble a packable source hierarchy from a decoded modfile.

    The decoded attachment models are moved into the new hierarchy. An
    attachment's own name is not stored in a modfile, so it is taken from
    its ``name`` property, or made up from its id.
    """
    info = modfile.info or MetadataDeclaration(**METADATA_DEFAULTS)
    root = SceneNode("Model", info.name)
    SceneNode("ModuleScript", "info", properties=info.to_dict(), parent=root)

    if not modfile.class_declarations:
        return root

    attachments = SceneNode("Folder", "attachments", parent=root)
    # keyed by declaration identity, sibling groups may share a name
    folders: dict[int, SceneNode] = {}
    for declaration in modfile.class_declarations:
        folder = SceneNode("Folder", declaration.properties.name, parent=attachments)
        for attachment in declaration.attachments:
            folders[id(attachment)] = folder

    ungrouped: dict[str, SceneNode] = {}
    for attachment, model in modfile.attachment_models():
        folder = folders.get(id(attachment))
        if folder is None:
            folder = ungrouped.get(attachment.parent_class)
        if folder is None:
            folder = ungrouped[attachment.parent_class] = SceneNode(
                "Folder", attachment.parent_class, parent=attachments
            )
        name = attachment.properties.get("name") or f"attachment{attachment.instance_id}"
        holder = SceneNode("Model", str(name), parent=folder)
        SceneNode("ModuleScript", "properties", properties=attachment.properties, parent=holder)
        SceneNode(
            "ModuleScript",
            "runtime_properties",
            properties=attachment.runtime_properties,
            parent=holder,
        )
        model.parent = holder

    return root
