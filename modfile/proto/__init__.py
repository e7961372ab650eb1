"""Binary encoding and decoding of modfiles."""

from .bitbuffer import BitBuffer as BitBuffer
from .bitbuffer import SerializationError as SerializationError
from .dispatch import DecodeError as DecodeError
from .dispatch import DispatchTable as DispatchTable
from .packager import PACKAGER_VERSION as PACKAGER_VERSION
from .packager import Packager as Packager
from .packager import PackagingError as PackagingError
from .packager import decode as decode
from .packager import decode_to_modfile as decode_to_modfile
from .packager import encode as encode
from .packager import rebuild_scene as rebuild_scene
from .packager import require_module as require_module
from .references import INSTANCE_ID_TAG as INSTANCE_ID_TAG
from .references import InstanceReferences as InstanceReferences
from .store import ModStore as ModStore
from .types import *
