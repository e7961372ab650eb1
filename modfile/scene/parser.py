"""Scene file parser using Lark."""

import json
import os
from dataclasses import dataclass
from typing import Any

from lark import Lark, Token
from lark.exceptions import VisitError
from lark.visitors import Transformer

from .nodes import SceneError, SceneNode, Value

_g_parser: Lark | None = None


@dataclass
class _Property:
    key: str
    value: Value


@dataclass
class _Attribute:
    key: str
    value: Value


def _unquote(token: Token) -> str:
    try:
        return json.loads(str(token))
    except json.JSONDecodeError as exc:
        raise SceneError(f"invalid string {token} on line {token.line}") from exc


class TreeTransformer(Transformer):
    """Transform parse tree into scene nodes."""

    def start(self, args: list[Any]) -> list[SceneNode]:
        return list(args)

    def node(self, args: list[Any]) -> SceneNode:
        class_name, name, *members = args
        node = SceneNode(str(class_name), _unquote(name))

        for member in members:
            if isinstance(member, SceneNode):
                member.parent = node
            elif isinstance(member, _Property):
                if member.key in node.properties:
                    raise SceneError(f"duplicate property {member.key} in {node.get_full_name()}")
                node.properties[member.key] = member.value
            elif isinstance(member, _Attribute):
                if member.key in node.attributes:
                    raise SceneError(f"duplicate attribute {member.key} in {node.get_full_name()}")
                node.attributes[member.key] = member.value

        return node

    def property(self, args: list[Any]) -> _Property:
        return _Property(key=args[0], value=args[1])

    def attribute(self, args: list[Any]) -> _Attribute:
        return _Attribute(key=args[0], value=args[1])

    def key(self, args: list[Any]) -> str:
        token = args[0]
        if token.type == "ESCAPED_STRING":
            return _unquote(token)
        return str(token)

    def string_value(self, args: list[Any]) -> str:
        return _unquote(args[0])

    def float_value(self, args: list[Any]) -> float:
        return float(args[0])

    def int_value(self, args: list[Any]) -> int:
        return int(args[0])

    def true_value(self, _args: list[Any]) -> bool:
        return True

    def false_value(self, _args: list[Any]) -> bool:
        return False


def parse(text: str) -> list[SceneNode]:
    """Parse a scene file, returning its top-level nodes."""
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/scene.lark", encoding="utf-8") as f:
            grammar = f.read()

        _g_parser = Lark(grammar, parser="lalr")

    tree = _g_parser.parse(text)
    try:
        return TreeTransformer().transform(tree)
    except VisitError as exc:
        if isinstance(exc.orig_exc, SceneError):
            raise exc.orig_exc from exc
        raise
