from unittest.mock import patch

import pytest

from errors import CloneError, SnapshotNotFoundError, StorageError
from snapshot_manager import SnapshotManager
from tests.conftest import populate, tree_contents


def test_first_snapshot_uses_base_name(live_root):
    snapshots = SnapshotManager(live_root)
    path = snapshots.create_snapshot()

    assert path == live_root.parent / ".minecraftBACKUP"
    assert tree_contents(path) == tree_contents(live_root)


def test_second_snapshot_does_not_collide(live_root):
    snapshots = SnapshotManager(live_root)
    first = snapshots.create_snapshot()
    (live_root / "options.txt").write_text("fov:90\n")
    second = snapshots.create_snapshot()

    assert first != second
    assert second.name.startswith(".minecraftBACKUP_")
    assert (first / "options.txt").read_text() == "fov:70\n"
    assert (second / "options.txt").read_text() == "fov:90\n"


def test_same_second_snapshots_get_a_counter(live_root):
    snapshots = SnapshotManager(live_root)
    with patch("snapshot_manager._timestamp", return_value="2024-05-01_12-00-00"):
        paths = [snapshots.create_snapshot() for _ in range(3)]

    assert [p.name for p in paths] == [
        ".minecraftBACKUP",
        ".minecraftBACKUP_2024-05-01_12-00-00",
        ".minecraftBACKUP_2024-05-01_12-00-00_1",
    ]


def test_snapshot_of_missing_root(tmp_path):
    with pytest.raises(SnapshotNotFoundError):
        SnapshotManager(tmp_path / ".minecraft").create_snapshot()
    assert list(tmp_path.iterdir()) == []


def test_failed_snapshot_leaves_nothing_behind(live_root):
    snapshots = SnapshotManager(live_root)
    with patch("snapshot_manager.clone", side_effect=CloneError("Clone", live_root, "disk full")):
        with pytest.raises(CloneError):
            snapshots.create_snapshot()

    assert [p.name for p in live_root.parent.iterdir()] == [".minecraft"]
    assert snapshots.list_snapshots() == []


def test_list_snapshots_matches_marker(live_root):
    parent = live_root.parent
    (parent / ".minecraftBACKUP").mkdir()
    (parent / ".minecraftBACKUP_2024-01-01_00-00-00").mkdir()
    (parent / "launcher_profiles.json").write_text("{}")

    names = SnapshotManager(live_root).list_snapshots()

    assert sorted(names) == [".minecraftBACKUP", ".minecraftBACKUP_2024-01-01_00-00-00"]


def test_list_snapshots_missing_parent(tmp_path):
    with pytest.raises(SnapshotNotFoundError):
        SnapshotManager(tmp_path / "gone" / ".minecraft").list_snapshots()


def test_delete_snapshot(live_root):
    snapshots = SnapshotManager(live_root)
    path = snapshots.create_snapshot()

    assert snapshots.delete_snapshot(path.name) == path
    assert not path.exists()
    assert live_root.is_dir()


def test_delete_missing_snapshot_is_not_an_error(live_root):
    snapshots = SnapshotManager(live_root)
    snapshots.delete_snapshot(".minecraftBACKUP")
    snapshots.delete_snapshot(live_root.parent / "nothing-hereBACKUP")


def test_delete_refuses_live_root(live_root):
    with pytest.raises(StorageError, match="live directory"):
        SnapshotManager(live_root).delete_snapshot(live_root)
    assert live_root.is_dir()


@pytest.mark.parametrize("name", [".", "", ".minecraft/..", ".minecraft/mods"])
def test_delete_refuses_parent_and_children_of_live_root(live_root, name):
    snapshots = SnapshotManager(live_root)
    backup = snapshots.create_snapshot()

    with pytest.raises(StorageError, match="live directory"):
        snapshots.delete_snapshot(name)

    assert (live_root / "mods" / "old-mod.jar").exists()
    assert backup.is_dir()


def test_delete_refuses_names_without_marker(live_root):
    other = live_root.parent / "launcher_logs"
    other.mkdir()
    with pytest.raises(StorageError, match="not a backup"):
        SnapshotManager(live_root).delete_snapshot("launcher_logs")
    assert other.is_dir()


def test_backup_list_restore_round_trip(tmp_path):
    from swap_coordinator import SwapCoordinator

    root = populate(tmp_path / ".minecraft", {"options.txt": "fov:70\n", "mods/a.jar": b"a"})
    original = tree_contents(root)
    snapshots = SnapshotManager(root)

    snapshots.create_snapshot()
    names = snapshots.list_snapshots()
    assert len(names) == 1
    assert names[0].endswith("BACKUP")

    (root / "options.txt").write_text("fov:30\n")
    (root / "mods" / "b.jar").write_bytes(b"b")

    SwapCoordinator(root).restore(snapshots.snapshot_path(names[0]))

    assert tree_contents(root) == original
