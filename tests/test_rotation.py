"""
Snapshot rotation tests.
"""

import os
from datetime import datetime, timezone

from mdsha.storage.rotation import SnapshotRotator

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc).timestamp()


def make_rotator(tmp_path, retention_minutes=7 * 24 * 60, now=NOW):
    return SnapshotRotator(str(tmp_path), retention_minutes=retention_minutes, clock=lambda: now)


def write(tmp_path, name, content=None):
    (tmp_path / name).write_text(content if content is not None else name)


def read(tmp_path, name):
    return (tmp_path / name).read_text()


def test_full_rotation(tmp_path):
    for name in ("metadata.mfs", "metadata.mfs.1", "metadata.mfs.2", "metadata.mfs.3"):
        write(tmp_path, name)

    result = make_rotator(tmp_path).rotate()

    assert not (tmp_path / "metadata.mfs").exists()
    assert read(tmp_path, "metadata.mfs.1") == "metadata.mfs"
    assert read(tmp_path, "metadata.mfs.2") == "metadata.mfs.1"
    assert read(tmp_path, "metadata.mfs.3") == "metadata.mfs.2"
    assert result.archived == str(tmp_path / "metadata.mfs.archive-20260301120000")
    assert read(tmp_path, "metadata.mfs.archive-20260301120000") == "metadata.mfs.3"
    assert result.pruned == []


def test_partial_rotation(tmp_path):
    write(tmp_path, "metadata.mfs")

    result = make_rotator(tmp_path).rotate()

    assert result.archived is None
    assert read(tmp_path, "metadata.mfs.1") == "metadata.mfs"
    assert sorted(os.listdir(tmp_path)) == ["metadata.mfs.1"]


def test_at_most_four_generations_kept(tmp_path):
    rotator = make_rotator(tmp_path)
    for i in range(6):
        write(tmp_path, "metadata.mfs", f"gen{i}")
        rotator.rotate()

    numbered = [n for n in os.listdir(tmp_path) if "archive" not in n]
    assert sorted(numbered) == ["metadata.mfs.1", "metadata.mfs.2", "metadata.mfs.3"]
    assert read(tmp_path, "metadata.mfs.1") == "gen5"
    assert read(tmp_path, "metadata.mfs.3") == "gen3"
    # Same-second archives do not overwrite each other
    assert len(rotator.list_archives()) == 3


def test_prune_respects_retention(tmp_path):
    write(tmp_path, "metadata.mfs.archive-20260201120000")  # 28 days old
    write(tmp_path, "metadata.mfs.archive-20260222115900")  # just over 7 days old
    write(tmp_path, "metadata.mfs.archive-20260222120100")  # just under 7 days old
    write(tmp_path, "metadata.mfs.archive-20260301110000")  # 1 hour old

    pruned = make_rotator(tmp_path).prune()

    assert sorted(os.path.basename(p) for p in pruned) == [
        "metadata.mfs.archive-20260201120000",
        "metadata.mfs.archive-20260222115900",
    ]
    assert (tmp_path / "metadata.mfs.archive-20260222120100").exists()
    assert (tmp_path / "metadata.mfs.archive-20260301110000").exists()


def test_prune_ignores_unrelated_files(tmp_path):
    write(tmp_path, "metadata.mfs.archive-garbage")
    write(tmp_path, "changelog.mfs.1")

    assert make_rotator(tmp_path, retention_minutes=0).prune() == []
    assert (tmp_path / "metadata.mfs.archive-garbage").exists()


def test_rotate_prunes_after_archiving(tmp_path):
    write(tmp_path, "metadata.mfs.3")
    write(tmp_path, "metadata.mfs.archive-20250101000000")

    result = make_rotator(tmp_path, retention_minutes=60).rotate()

    assert [os.path.basename(p) for p in result.pruned] == ["metadata.mfs.archive-20250101000000"]
    assert (tmp_path / "metadata.mfs.archive-20260301120000").exists()


def test_zero_retention_keeps_the_archive_just_created(tmp_path):
    write(tmp_path, "metadata.mfs.3")
    write(tmp_path, "metadata.mfs.archive-20260301110000")

    # Mid-second clock: the new archive's name is already older than "now"
    result = make_rotator(tmp_path, retention_minutes=0, now=NOW + 0.5).rotate()

    assert result.archived == str(tmp_path / "metadata.mfs.archive-20260301120000")
    assert (tmp_path / "metadata.mfs.archive-20260301120000").exists()
    assert [os.path.basename(p) for p in result.pruned] == ["metadata.mfs.archive-20260301110000"]
