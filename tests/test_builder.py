"""Tests for TSC declaration, validation and building."""

import logging

import pytest

from carla_tsc.core.models import NodeKind, TSCDeclaration
from carla_tsc.tsc import (
    TSCConstructionError,
    all_of,
    bounded,
    build_tsc,
    exclusive,
    leaf,
    optional,
    project,
    projection,
    projection_recursive,
    tsc,
    validate_declaration,
)


def _categories(result, errors=True):
    issues = result.errors if errors else result.warnings
    return [i.category for i in issues]


class TestDeclarationHelpers:
    """Tests for the nested declaration helpers."""

    def test_leaf_defaults(self):
        node = leaf("Clear", condition="clear")
        assert node.kind == NodeKind.LEAF
        assert node.children == []
        assert node.monitors == {}
        assert node.projections == []

    def test_projection_arguments(self):
        node = all_of(
            "Root",
            projections=[projection("A"), projection_recursive("B"), "C"],
        )
        assert [(p.name, p.recursive) for p in node.projections] == [
            ("A", False),
            ("B", True),
            ("C", False),
        ]

    def test_package_exports_projection_helper(self):
        """The package-level name is the builder helper, not a submodule."""
        import carla_tsc.tsc as tsc_package
        from carla_tsc.tsc import builder

        assert tsc_package.projection is builder.projection
        assert callable(tsc_package.projection)

    def test_tsc_defaults_declared_tags_to_root_tags(self):
        """Without explicit tags the root's own tags are the declared set."""
        decl = tsc("T", all_of("Root", projections=[projection("A"), projection("B")]))
        assert decl.projections == ["A", "B"]

    def test_tsc_explicit_tags(self):
        decl = tsc("T", all_of("Root"), projections=["X"])
        assert decl.projections == ["X"]

    def test_condition_is_stripped(self):
        assert leaf("A", condition="  a  ").condition == "a"
        assert leaf("A", condition="   ").condition is None


class TestValidation:
    """Tests for validate_declaration rules."""

    def test_valid_tree(self, registry):
        decl = tsc(
            "T",
            all_of(
                "Root",
                exclusive("Weather", leaf("Rain", condition="rain"), leaf("Clear", condition="clear")),
                leaf("Junction", condition="junction"),
            ),
        )
        result = validate_declaration(decl, registry)
        assert result.valid
        assert result.issues == []

    def test_duplicate_sibling_labels(self, registry):
        decl = tsc("T", all_of("Root", leaf("A"), leaf("A")))
        result = validate_declaration(decl, registry)
        assert "duplicate_label" in _categories(result)

    def test_same_label_under_different_parents_is_fine(self, registry):
        """Labels only need to be unique among siblings."""
        decl = tsc(
            "T",
            all_of("Root", all_of("X", leaf("A")), all_of("Y", leaf("A"))),
        )
        assert validate_declaration(decl, registry).valid

    def test_exclusive_without_children(self, registry):
        decl = tsc("T", all_of("Root", exclusive("E")))
        assert "exclusive_empty" in _categories(validate_declaration(decl, registry))

    def test_leaf_with_children(self, registry):
        node = leaf("L")
        node.children.append(leaf("child"))
        decl = tsc("T", all_of("Root", node))
        assert "leaf_children" in _categories(validate_declaration(decl, registry))

    def test_root_condition(self, registry):
        decl = tsc("T", all_of("Root", leaf("A"), condition="a"))
        assert "root_condition" in _categories(validate_declaration(decl, registry))

    @pytest.mark.parametrize("bounds", [(2, 1), (-1, 1), (0, 3), (3, 3)])
    def test_invalid_bounds(self, registry, bounds):
        decl = tsc("T", all_of("Root", bounded("B", bounds, leaf("x"), leaf("y"))))
        assert "bounds" in _categories(validate_declaration(decl, registry))

    def test_missing_bounds(self, registry):
        node = bounded("B", (1, 1), leaf("x"))
        node.bounds = None
        decl = tsc("T", all_of("Root", node))
        assert "bounds" in _categories(validate_declaration(decl, registry))

    def test_bounds_on_non_bounded_node(self, registry):
        node = optional("O", leaf("x"))
        node.bounds = (0, 1)
        decl = tsc("T", all_of("Root", node))
        assert "bounds" in _categories(validate_declaration(decl, registry))

    def test_unknown_predicate(self, registry):
        decl = tsc("T", all_of("Root", leaf("A", condition="nope")))
        result = validate_declaration(decl, registry)
        assert "condition" in _categories(result)
        assert "Unknown predicate 'nope'" in result.errors[0].message
        assert result.errors[0].location == "Root/A"

    def test_unquantified_relational(self, registry):
        decl = tsc("T", all_of("Root", leaf("A", condition="follows")))
        assert "condition" in _categories(validate_declaration(decl, registry))

    def test_bad_monitor(self, registry):
        decl = tsc("T", all_of("Root", leaf("A", monitors={"m": "a and"})))
        result = validate_declaration(decl, registry)
        assert "condition" in _categories(result)
        assert "Monitor 'm'" in result.errors[0].message

    def test_expression_without_registry(self):
        decl = tsc("T", all_of("Root", leaf("A", condition="a")))
        assert "condition" in _categories(validate_declaration(decl, None))

    def test_callable_conditions_need_no_registry(self):
        decl = tsc("T", all_of("Root", leaf("A", condition=lambda ctx: True)))
        assert validate_declaration(decl, None).valid

    def test_undeclared_projection(self, registry):
        """A tag neither the TSC nor an ancestor declares is dangling."""
        decl = tsc(
            "T",
            all_of("Root", leaf("A", projections=[projection("Other")]), projections=[projection("P")]),
        )
        result = validate_declaration(decl, registry)
        dangling = [i for i in result.errors if i.category == "projection_dangling"]
        assert [i.location for i in dangling] == ["Root/A"]

    def test_dangling_reported_once_per_subtree(self, registry):
        decl = tsc(
            "T",
            all_of(
                "Root",
                all_of("X", leaf("A", projections=[projection("Q")]), projections=[projection("Q")]),
            ),
            projections=["P"],
        )
        result = validate_declaration(decl, registry)
        dangling = [i for i in result.errors if i.category == "projection_dangling"]
        assert [i.location for i in dangling] == ["Root/X"]

    def test_root_child_with_declared_tag_is_valid(self, registry):
        """The root carries every declared tag, so its children are always reachable."""
        decl = tsc(
            "T",
            all_of(
                "Root",
                all_of("Y", leaf("B", projections=[projection("P")]), projections=[projection("P")]),
            ),
            projections=["P"],
        )
        result = validate_declaration(decl, registry)
        assert result.valid
        assert result.warnings == []

    def test_unreachable_projection_warning(self, registry):
        """A tagged node under a parent outside the view is dropped by project()."""
        decl = tsc(
            "T",
            all_of(
                "Root",
                all_of("X", leaf("A", projections=[projection("P")])),
                all_of("Y", leaf("B", projections=[projection("P")]), projections=[projection("P")]),
            ),
            projections=["P"],
        )
        result = validate_declaration(decl, registry)
        assert result.valid
        unreachable = [i for i in result.warnings if i.category == "projection_unreachable"]
        assert [i.location for i in unreachable] == ["Root/X/A"]
        view = project(build_tsc(decl, registry), "P")
        assert [c.label for c in view.root.children] == ["Y"]

    def test_recursive_ancestor_keeps_descendants_reachable(self, registry):
        decl = tsc(
            "T",
            all_of(
                "Root",
                all_of(
                    "X",
                    all_of("Inner", leaf("A", projections=[projection("P")])),
                    projections=[projection_recursive("P")],
                ),
            ),
            projections=["P"],
        )
        result = validate_declaration(decl, registry)
        assert result.valid
        assert result.warnings == []

    def test_projection_listed_twice(self, registry):
        decl = tsc(
            "T",
            all_of("Root", projections=[projection("P"), projection_recursive("P")]),
            projections=["P"],
        )
        assert "projection" in _categories(validate_declaration(decl, registry))

    def test_empty_container_warning(self, registry):
        decl = tsc("T", all_of("Root", optional("O")))
        result = validate_declaration(decl, registry)
        assert result.valid
        assert "empty_container" in _categories(result, errors=False)

    def test_bounded_zero_to_all_warning(self, registry):
        decl = tsc("T", all_of("Root", bounded("B", (0, 2), leaf("x"), leaf("y"))))
        result = validate_declaration(decl, registry)
        assert result.valid
        assert "bounds" in _categories(result, errors=False)

    def test_unused_tag_warning(self, registry):
        """A declared tag used only at the root gives a root-only view."""
        decl = tsc("T", all_of("Root", leaf("A"), projections=[projection("P")]))
        result = validate_declaration(decl, registry)
        assert result.valid
        assert "projection_unused" in _categories(result, errors=False)

    def test_recursive_root_tag_is_not_unused(self, registry):
        decl = tsc("T", all_of("Root", leaf("A"), projections=[projection_recursive("All")]))
        result = validate_declaration(decl, registry)
        assert result.issues == []


class TestBuildTsc:
    """Tests for build_tsc."""

    def test_builds_immutable_tree(self, registry):
        """Built nodes are frozen and their monitor maps read-only."""
        decl = tsc(
            "T",
            all_of(
                "Root",
                bounded("B", (1, 2), leaf("x", condition="a"), leaf("y", condition="b")),
                projections=[projection_recursive("P")],
            ),
        )
        tree = build_tsc(decl, registry)
        assert tree.identifier == "T"
        assert tree.projection_tags == ("P",)
        node = tree.find("Root/B")
        assert node.bounds == (1, 2)
        assert [c.label for c in node.children] == ["x", "y"]
        with pytest.raises(AttributeError):
            node.label = "changed"
        with pytest.raises(TypeError):
            node.monitors["new"] = lambda ctx: True

    def test_raises_with_all_errors(self, registry):
        """Every error is collected before raising."""
        decl = tsc(
            "Broken",
            all_of("Root", leaf("A", condition="nope"), leaf("A"), exclusive("E")),
        )
        with pytest.raises(TSCConstructionError) as exc_info:
            build_tsc(decl, registry)
        err = exc_info.value
        assert err.identifier == "Broken"
        assert len(err.result.errors) == 3
        assert "Invalid TSC 'Broken'" in str(err)

    def test_never_corrects_input(self, registry):
        """Invalid bounds are rejected, never clamped."""
        decl = tsc("T", all_of("Root", bounded("B", (2, 1), leaf("x"), leaf("y"))))
        with pytest.raises(TSCConstructionError):
            build_tsc(decl, registry)

    def test_warnings_are_logged(self, registry, caplog):
        decl = tsc("T", all_of("Root", optional("O")))
        with caplog.at_level(logging.WARNING, logger="carla_tsc.tsc.builder"):
            build_tsc(decl, registry)
        assert "acts as a leaf" in caplog.text

    def test_callable_passes_through(self):
        def cond(ctx):
            return True

        tree = build_tsc(tsc("T", all_of("Root", leaf("A", condition=cond))))
        assert tree.find("Root/A").condition is cond

    def test_find_unknown_path(self, registry):
        tree = build_tsc(tsc("T", all_of("Root", leaf("A"))), registry)
        with pytest.raises(KeyError):
            tree.find("Root/B")
        with pytest.raises(KeyError):
            tree.find("Other/A")


class TestDeclarationYaml:
    """Tests for YAML serialization of declarations."""

    def test_roundtrip(self, tmp_path):
        decl = tsc(
            "T",
            all_of(
                "Root",
                bounded("Stop", (0, 1), leaf("Red", condition="a", monitors={"ok": "not b"})),
                projections=[projection_recursive("P")],
            ),
        )
        path = tmp_path / "tree.yaml"
        decl.to_yaml(path)
        loaded = TSCDeclaration.from_yaml(path)
        assert loaded == decl

    def test_callables_cannot_be_serialized(self, tmp_path):
        decl = tsc("T", all_of("Root", leaf("A", condition=lambda ctx: True)))
        with pytest.raises(ValueError, match="callable"):
            decl.to_yaml(tmp_path / "tree.yaml")

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "tree.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            TSCDeclaration.from_yaml(path)
