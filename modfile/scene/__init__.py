"""Scene hierarchies and the scene file format."""

from .nodes import SceneError as SceneError
from .nodes import SceneNode as SceneNode
from .nodes import Value as Value
from .parser import parse as parse
from .render import render as render
