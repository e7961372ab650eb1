"""Tests for writing scene files."""

import pytest

from modfile.scene import SceneError, SceneNode, parse, render


def shape(node):
    return (
        node.class_name,
        node.name,
        node.properties,
        node.attributes,
        [shape(child) for child in node.get_children()],
    )


def describe_render():
    def renders_nested_nodes(expect):
        mod = SceneNode("Model", "Mod")
        SceneNode("ModuleScript", "info", properties={"name": "x", "count": 2}, parent=mod)
        SceneNode("Part", "P", attributes={"Tag": "t", "on": True}, parent=mod)

        text = render([mod])

        expect(text.strip()) == "\n".join(
            [
                'Model "Mod" {',
                '    ModuleScript "info" {',
                '        name = "x"',
                "        count = 2",
                "    }",
                '    Part "P" {',
                '        @Tag = "t"',
                "        @on = true",
                "    }",
                "}",
            ]
        )

    def renders_empty_nodes(expect):
        text = render([SceneNode("Part", "Empty")])
        expect(text.strip()) == 'Part "Empty" {\n}'

    def writes_header_comment(expect):
        text = render([SceneNode("Part", "A")], header="generated")
        expect(text.startswith("# generated\n")) == True

    def quotes_keys_that_are_not_names(expect):
        node = SceneNode("ModuleScript", "m", properties={"display name": "x", "true": 1})
        text = render([node])

        expect(text).includes('"display name" = "x"')
        expect(text).includes('"true" = 1')

    def excludes_attributes(expect):
        node = SceneNode("Part", "A", attributes={"keep": 1, "drop": 2})
        text = render([node], exclude_attributes={"drop"})

        expect(text).includes("@keep = 1")
        expect("drop" in text) == False


def describe_render_round_trip():
    def parses_back_to_same_hierarchy(expect):
        mod = SceneNode("Model", 'Quote " and é')
        body = SceneNode(
            "Part",
            "Body",
            properties={"a": 0.1, "b": -3, "c": 1e20, "d": "line\nbreak", "e": False},
            attributes={"Tag": "housing"},
            parent=mod,
        )
        SceneNode("Part", "Lens", parent=body)
        SceneNode("Part", "Mount", parent=mod)

        nodes = parse(render([mod]))

        expect([shape(n) for n in nodes]) == [shape(mod)]
        expect(type(nodes[0].find_first_child("Body").properties["b"])) == int

    def keeps_whole_numbers_as_floats(expect):
        node = SceneNode("Part", "A", properties={"x": 2.0})

        nodes = parse(render([node]))

        expect(type(nodes[0].properties["x"])) == float


def describe_render_errors():
    def rejects_non_finite_numbers(expect):
        with pytest.raises(SceneError):
            render([SceneNode("Part", "A", properties={"x": float("inf")})])

    def rejects_invalid_class_names(expect):
        root = SceneNode("Model", "A")
        SceneNode("Bad Class", "B", parent=root)

        with pytest.raises(SceneError):
            render([root])
