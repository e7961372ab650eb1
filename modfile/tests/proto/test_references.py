"""Tests for instance id assignment and parent linking"""

from modfile.proto.references import INSTANCE_ID_TAG, InstanceReferences
from modfile.proto.types import InstanceDeclaration, InstancePosition, Modfile, PositionKind
from modfile.scene import SceneNode


def declare(name, kind, parent_id, instance_id, tree=0):
    return InstanceDeclaration(
        position=InstancePosition(kind=kind, parent_id=parent_id, instance_id=instance_id),
        instance=SceneNode("Part", name),
        tree=tree,
    )


def root(name, instance_id=0, tree=0):
    return declare(name, PositionKind.ATTACHMENT_ROOT, 0, instance_id, tree)


def child(name, parent_id, instance_id, tree=0):
    return declare(name, PositionKind.CHILD, parent_id, instance_id, tree)


def link(file):
    references = InstanceReferences()
    for declaration in file.instance_declarations:
        position = declaration.position
        references.register(declaration.tree, position.instance_id, declaration.instance)
    references.set_instance_parents(file)
    return references


def describe_assign_ids():
    def numbers_nodes_in_pre_order(expect):
        model = SceneNode("Model", "model")
        a = SceneNode("Part", "A", parent=model)
        SceneNode("Part", "A1", parent=a)
        SceneNode("Part", "A2", parent=a)
        b = SceneNode("Part", "B", parent=model)
        SceneNode("Part", "B1", parent=b)

        count = InstanceReferences().assign_ids(model)

        nodes = [model, *model.get_descendants()]
        expect(count) == 6
        expect([n.name for n in nodes]) == ["model", "A", "A1", "A2", "B", "B1"]
        expect([n.get_attribute(INSTANCE_ID_TAG) for n in nodes]) == list(range(6))

    def numbers_single_node(expect):
        model = SceneNode("Model", "model")
        expect(InstanceReferences().assign_ids(model)) == 1
        expect(InstanceReferences.instance_id(model)) == 0


def describe_set_instance_parents():
    def links_child_to_referenced_parent(expect):
        file = Modfile(
            version=1,
            instance_declarations=[
                child("Lens", parent_id=1, instance_id=2),
                root("model"),
                child("Body", parent_id=0, instance_id=1),
            ],
        )

        link(file)

        lens, model, body = (d.instance for d in file.instance_declarations)
        expect(lens.parent) == body
        expect(body.parent) == model
        expect(model.parent) == None

    def first_match_wins_on_duplicate_ids(expect):
        file = Modfile(
            version=1,
            instance_declarations=[
                root("model"),
                child("First", parent_id=0, instance_id=5),
                child("Second", parent_id=0, instance_id=5),
                child("Orphan", parent_id=5, instance_id=6),
            ],
        )

        link(file)

        _, first, second, orphan = (d.instance for d in file.instance_declarations)
        expect(orphan.parent) == first
        expect(first.get_children()) == [orphan]
        expect(second.get_children()) == []

    def never_matches_itself(expect):
        file = Modfile(
            version=1,
            instance_declarations=[
                child("Loop", parent_id=3, instance_id=3),
                child("Other", parent_id=9, instance_id=3),
            ],
        )

        link(file)

        loop, other = (d.instance for d in file.instance_declarations)
        expect(loop.parent) == other

    def keeps_trees_separate(expect):
        file = Modfile(
            version=1,
            instance_declarations=[
                root("first", tree=0),
                child("A", parent_id=0, instance_id=1, tree=0),
                root("second", tree=1),
                child("B", parent_id=0, instance_id=1, tree=1),
            ],
        )

        link(file)

        first, a, second, b = (d.instance for d in file.instance_declarations)
        expect(a.parent) == first
        expect(b.parent) == second

    def leaves_unmatched_children_unparented(expect):
        file = Modfile(
            version=1,
            instance_declarations=[root("model"), child("Lost", parent_id=42, instance_id=1)],
        )

        link(file)

        expect(file.instance_declarations[1].instance.parent) == None

    def does_not_relink_attachment_roots(expect):
        file = Modfile(
            version=1,
            instance_declarations=[child("Part", parent_id=0, instance_id=0), root("model")],
        )

        link(file)

        expect(file.instance_declarations[1].instance.parent) == None
        expect(file.instance_declarations[0].instance.parent) == (
            file.instance_declarations[1].instance
        )

    def preserves_sibling_order(expect):
        file = Modfile(
            version=1,
            instance_declarations=[
                root("model"),
                child("A", parent_id=0, instance_id=1),
                child("B", parent_id=0, instance_id=2),
                child("C", parent_id=0, instance_id=3),
            ],
        )

        link(file)

        model = file.instance_declarations[0].instance
        expect([n.name for n in model.get_children()]) == ["A", "B", "C"]

    def resolves_parents_from_registered_nodes(expect):
        references = InstanceReferences()
        tree = references.begin_tree()
        model = SceneNode("Model", "model")
        references.register(tree, 0, model)
        file = Modfile(version=1, instance_declarations=[child("Body", parent_id=0, instance_id=1)])

        references.set_instance_parents(file)

        expect(file.instance_declarations[0].instance.parent) == model

    def ignores_unregistered_declarations(expect):
        file = Modfile(
            version=1,
            instance_declarations=[root("model"), child("Body", parent_id=0, instance_id=1)],
        )

        InstanceReferences().set_instance_parents(file)

        expect(file.instance_declarations[1].instance.parent) == None


def describe_cache():
    def registers_and_finalizes_ids(expect):
        references = InstanceReferences()
        tree = references.begin_tree()
        node = SceneNode("Part", "A")
        references.register(tree, 4, node)

        expect(references.cached(tree, 4)) == node
        expect(node.get_attribute(INSTANCE_ID_TAG)) == None

        references.set_instance_ids()
        expect(node.get_attribute(INSTANCE_ID_TAG)) == 4

    def reset_clears_cache_and_tree_numbers(expect):
        references = InstanceReferences()
        references.begin_tree()
        references.register(0, 0, SceneNode("Part", "A"))

        references.reset_instance_cache()

        expect(len(references)) == 0
        expect(references.cached(0, 0)) == None
        expect(references.begin_tree()) == 0
