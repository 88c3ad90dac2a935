"""Tests for folder hierarchy resolution."""

from pathlib import Path

from fabric_sync.core.folders import FolderHierarchy
from fabric_sync.models.workspace import Folder, Item


def _folders() -> list[Folder]:
    return [
        Folder(id="f1", display_name="Sales"),
        Folder(id="f2", display_name="Reports", parent_folder_id="f1"),
        Folder(id="f3", display_name="Monthly", parent_folder_id="f2"),
        Folder(id="f4", display_name="Shared"),
    ]


class TestFullPath:
    """Tests for FolderHierarchy.full_path."""

    def test_root_folder(self) -> None:
        hierarchy = FolderHierarchy(_folders())
        assert hierarchy.full_path("f1") == ["Sales"]

    def test_nested_chain(self) -> None:
        hierarchy = FolderHierarchy(_folders())
        assert hierarchy.full_path("f3") == ["Sales", "Reports", "Monthly"]

    def test_second_root(self) -> None:
        hierarchy = FolderHierarchy(_folders())
        assert hierarchy.full_path("f4") == ["Shared"]

    def test_none_is_workspace_root(self) -> None:
        hierarchy = FolderHierarchy(_folders())
        assert hierarchy.full_path(None) == []

    def test_unknown_folder_is_workspace_root(self) -> None:
        hierarchy = FolderHierarchy(_folders())
        assert hierarchy.full_path("missing") == []

    def test_repeated_calls_return_copies(self) -> None:
        hierarchy = FolderHierarchy(_folders())
        first = hierarchy.full_path("f3")
        first.append("mutated")
        assert hierarchy.full_path("f3") == ["Sales", "Reports", "Monthly"]

    def test_dangling_parent_treated_as_root(self) -> None:
        hierarchy = FolderHierarchy([
            Folder(id="a", display_name="Orphan", parent_folder_id="gone"),
            Folder(id="b", display_name="Child", parent_folder_id="a"),
        ])
        assert hierarchy.full_path("b") == ["Orphan", "Child"]

    def test_two_folder_cycle_terminates(self) -> None:
        hierarchy = FolderHierarchy([
            Folder(id="a", display_name="A", parent_folder_id="b"),
            Folder(id="b", display_name="B", parent_folder_id="a"),
        ])
        # Walk from a: a -> b -> (a again), so b becomes the root
        assert hierarchy.full_path("a") == ["B", "A"]
        assert hierarchy.full_path("b") == ["A", "B"]

    def test_self_parent_terminates(self) -> None:
        hierarchy = FolderHierarchy([Folder(id="a", display_name="Loop", parent_folder_id="a")])
        assert hierarchy.full_path("a") == ["Loop"]

    def test_cycle_above_a_chain(self) -> None:
        hierarchy = FolderHierarchy([
            Folder(id="x", display_name="X", parent_folder_id="y"),
            Folder(id="y", display_name="Y", parent_folder_id="x"),
            Folder(id="leaf", display_name="Leaf", parent_folder_id="x"),
        ])
        assert hierarchy.full_path("leaf") == ["Y", "X", "Leaf"]


class TestResolveDirectory:
    """Tests for mapping items to local directories."""

    def test_item_without_folder_resolves_to_root(self) -> None:
        hierarchy = FolderHierarchy(_folders())
        item = Item(id="i1", display_name="NB1", type="Notebook")
        assert hierarchy.item_directory(Path("/sync"), item) == Path("/sync")

    def test_item_in_nested_folder(self) -> None:
        hierarchy = FolderHierarchy(_folders())
        item = Item(id="i1", display_name="NB1", type="Notebook", folder_id="f3")
        assert hierarchy.item_directory(Path("/sync"), item) == Path("/sync/Sales/Reports/Monthly")

    def test_folder_names_are_sanitized(self) -> None:
        hierarchy = FolderHierarchy([Folder(id="f", display_name="a/b: c")])
        assert hierarchy.resolve_directory(Path("/sync"), "f") == Path("/sync/a_b_ c")


class TestToTree:
    """Tests for the display tree."""

    def test_nested_structure(self) -> None:
        tree = FolderHierarchy(_folders()).to_tree()

        names = [f["name"] for f in tree["folders"]]
        assert names == ["Sales", "Shared"]
        sales = tree["folders"][0]
        assert sales["folders"][0]["name"] == "Reports"
        assert sales["folders"][0]["folders"][0]["name"] == "Monthly"

    def test_cycle_members_appear_once(self) -> None:
        tree = FolderHierarchy([
            Folder(id="a", display_name="A", parent_folder_id="b"),
            Folder(id="b", display_name="B", parent_folder_id="a"),
        ]).to_tree()

        assert [f["name"] for f in tree["folders"]] == ["A", "B"]
        assert all(f["folders"] == [] for f in tree["folders"])
