"""Write scene hierarchies back to scene file text."""

import json
import math
import re
from collections.abc import Collection, Iterable
from typing import Any

from jinja2 import Environment, PackageLoader

from .nodes import SceneError, SceneNode

_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

env = Environment(
    loader=PackageLoader("modfile.scene", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)


def _scene_string(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _scene_key(key: str) -> str:
    if _NAME.fullmatch(key) and key not in ("true", "false"):
        return key
    return _scene_string(key)


def _scene_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise SceneError(f"cannot write non-finite number {value}")
        return repr(value)
    if isinstance(value, str):
        return _scene_string(value)
    raise SceneError(f"cannot write value {value!r}")


env.filters["scene_string"] = _scene_string
env.filters["scene_key"] = _scene_key
env.filters["scene_value"] = _scene_value

template = env.get_template("scene.j2")


def _check_names(nodes: Iterable[SceneNode]) -> None:
    for root in nodes:
        for node in [root, *root.iter_descendants()]:
            if not _NAME.fullmatch(node.class_name):
                raise SceneError(f"invalid class name {node.class_name!r} on {node.get_full_name()}")


def render(
    nodes: Iterable[SceneNode],
    exclude_attributes: Collection[str] = (),
    header: str | None = None,
) -> str:
    """Render scene nodes and their descendants to scene file text."""
    nodes = list(nodes)
    _check_names(nodes)

    def attributes(node: SceneNode) -> dict[str, Any]:
        return {k: v for k, v in node.attributes.items() if k not in exclude_attributes}

    return template.render(nodes=nodes, attributes=attributes, header=header)
