"""Tests for the scene file parser."""

import pytest
from lark.exceptions import LarkError

from modfile.scene import SceneError, parse


def describe_parse_nodes():
    def parses_nested_nodes(expect):
        nodes = parse(
            """
            Model "Mod" {
                Folder "attachments" {
                    Folder "Optics" { }
                }
                ModuleScript "info" { }
            }
        """
        )
        expect(len(nodes)) == 1
        mod = nodes[0]
        expect(mod.class_name) == "Model"
        expect(mod.name) == "Mod"
        expect([n.name for n in mod.get_children()]) == ["attachments", "info"]
        expect(mod.find_first_child("attachments").find_first_child("Optics").parent.name) == (
            "attachments"
        )

    def parses_several_top_level_nodes(expect):
        nodes = parse('Model "A" { }\nModel "B" { }')
        expect([n.name for n in nodes]) == ["A", "B"]

    def parses_empty_file(expect):
        expect(parse("")) == []

    def ignores_comments(expect):
        nodes = parse(
            """
            # Header comment
            Part "Lens" {  # trailing comment
                Reflectance = 0.5
            }
        """
        )
        expect(nodes[0].properties) == {"Reflectance": 0.5}

    def unescapes_names(expect):
        nodes = parse('Part "Red \\"dot\\" \\u00e9" { }')
        expect(nodes[0].name) == 'Red "dot" é'


def describe_parse_values():
    def parses_value_types(expect):
        nodes = parse(
            """
            ModuleScript "properties" {
                name = "Red dot"
                zoom = 1.5
                recoil = -0.2
                big = 1e20
                count = 3
                offset = -7
                lit = true
                broken = false
            }
        """
        )
        properties = nodes[0].properties
        expect(properties) == {
            "name": "Red dot",
            "zoom": 1.5,
            "recoil": -0.2,
            "big": 1e20,
            "count": 3,
            "offset": -7,
            "lit": True,
            "broken": False,
        }
        expect(type(properties["count"])) == int
        expect(type(properties["big"])) == float

    def parses_attributes(expect):
        nodes = parse('Part "Body" { Transparency = 0.25 @Tag = "housing" @Weight = 2 }')
        expect(nodes[0].properties) == {"Transparency": 0.25}
        expect(nodes[0].attributes) == {"Tag": "housing", "Weight": 2}

    def parses_quoted_keys(expect):
        nodes = parse('ModuleScript "m" { "display name" = "x" "true" = 1 }')
        expect(nodes[0].properties) == {"display name": "x", "true": 1}

    def keeps_keyword_named_keys_apart_from_values(expect):
        nodes = parse('ModuleScript "m" { enabled = true }')
        expect(nodes[0].properties["enabled"]) == True


def describe_parse_errors():
    def rejects_duplicate_properties(expect):
        with pytest.raises(SceneError) as exinfo:
            parse('Part "A" { x = 1 x = 2 }')

        expect(str(exinfo.value)).includes("duplicate property x")

    def rejects_duplicate_attributes(expect):
        with pytest.raises(SceneError):
            parse('Part "A" { @x = 1 @x = 2 }')

    def rejects_top_level_properties(expect):
        with pytest.raises(LarkError):
            parse("x = 1")

    def rejects_unclosed_nodes(expect):
        with pytest.raises(LarkError):
            parse('Model "A" {')

    def rejects_unquoted_names(expect):
        with pytest.raises(LarkError):
            parse("Model A { }")
