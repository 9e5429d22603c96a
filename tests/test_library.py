# tests/test_library.py
"""Tests for VideoIndex, LibraryIndex and the partitioned tree layout."""

import json
from datetime import datetime, timezone

import pytest

from clipcatalog.exceptions import (
    ConsistencyError,
    CrossPartitionDuplicateError,
    DuplicateIdError,
    IdentityMismatchError,
    LibraryLayoutError,
    PartitionMismatchError,
)
from clipcatalog.library import LibraryIndex, VideoIndex

FEB = datetime(2024, 2, 10, tzinfo=timezone.utc)


class TestVideoIndex:
    def test_duplicate_ids_rejected(self, make_video):
        with pytest.raises(DuplicateIdError) as exc:
            VideoIndex([make_video(), make_video()])
        assert exc.value.ids == ["dQw4w9WgXcQ"]

    def test_push_returns_previous(self, make_video):
        index = VideoIndex()
        first = make_video()
        assert index.push(first) is None
        assert index.push(make_video()) is first
        assert len(index) == 1

    def test_sorted_videos(self, make_video):
        late = make_video(video_id="BpibZSMGtdY", published_at=FEB)
        early = make_video()
        assert [v.video_id for v in VideoIndex([late, early]).sorted_videos()] == [
            "dQw4w9WgXcQ", "BpibZSMGtdY"
        ]

    def test_ensure_same_year_month(self, make_video):
        assert VideoIndex().ensure_same_year_month() is None
        assert VideoIndex([make_video()]).ensure_same_year_month() == (2024, 1)
        with pytest.raises(PartitionMismatchError):
            VideoIndex([make_video(), make_video(video_id="BpibZSMGtdY", published_at=FEB)]).ensure_same_year_month()

    def test_ensure_placed_in(self, make_video):
        index = VideoIndex([make_video()])
        index.ensure_placed_in(2024, 1)
        with pytest.raises(PartitionMismatchError) as exc:
            index.ensure_placed_in(2024, 2)
        assert exc.value.expected == (2024, 2)


class TestLibraryIndex:
    def test_insert_places_by_publish_month(self, make_video):
        library = LibraryIndex()
        library.insert(make_video())
        library.insert(make_video(video_id="BpibZSMGtdY", published_at=FEB))
        assert library.partition_keys() == [(2024, 1), (2024, 2)]
        assert "BpibZSMGtdY" in library.partition(2024, 2)
        assert len(library) == 2

    def test_upsert_moves_between_partitions(self, make_video):
        library = LibraryIndex()
        original = make_video()
        library.insert(original)
        assert library.insert(make_video(published_at=FEB)) is original
        assert library.partition_keys() == [(2024, 2)]
        assert len(library) == 1

    def test_remove_drops_empty_partition(self, make_video):
        library = LibraryIndex()
        library.insert(make_video())
        assert library.remove("dQw4w9WgXcQ") is not None
        assert library.partition_keys() == []
        assert library.remove("dQw4w9WgXcQ") is None

    def test_partition_is_a_copy(self, make_video):
        library = LibraryIndex()
        library.insert(make_video())
        library.partition(2024, 1).pop("dQw4w9WgXcQ")
        assert "dQw4w9WgXcQ" in library
        assert len(library.partition(1999, 1)) == 0

    def test_merge_rejects_cross_partition_duplicates(self, make_video):
        jan = VideoIndex([make_video()])
        feb = VideoIndex([make_video(published_at=FEB)])
        with pytest.raises(CrossPartitionDuplicateError) as exc:
            LibraryIndex.merge(jan, feb)
        assert exc.value.ids == ["dQw4w9WgXcQ"]
        assert isinstance(exc.value, ConsistencyError)
        assert isinstance(exc.value, DuplicateIdError)

    def test_from_partitions_checks_placement(self, make_video):
        with pytest.raises(PartitionMismatchError):
            LibraryIndex.from_partitions({(2024, 2): VideoIndex([make_video()])})

    def test_from_partitions_reports_every_misplaced_partition(self, make_video):
        with pytest.raises(PartitionMismatchError) as exc:
            LibraryIndex.from_partitions({
                (2024, 3): VideoIndex([make_video()]),
                (2024, 4): VideoIndex([make_video(video_id="BpibZSMGtdY", published_at=FEB)]),
            })
        assert "2024-03" in str(exc.value)
        assert "2024-04" in str(exc.value)

    def test_from_partitions(self, make_video):
        library = LibraryIndex.from_partitions({
            (2024, 1): VideoIndex([make_video()]),
            (2024, 2): VideoIndex([make_video(video_id="BpibZSMGtdY", published_at=FEB)]),
        })
        assert library.years() == [2024]
        assert [v.video_id for v in library.videos()] == ["dQw4w9WgXcQ", "BpibZSMGtdY"]


class TestPersistence:
    def _saved_library(self, make_video, gateway, music_root):
        library = LibraryIndex()
        library.insert(make_video())
        library.insert(make_video(video_id="BpibZSMGtdY", published_at=FEB))
        library.save_partitions(music_root, gateway)
        return library

    def test_save_writes_all_twelve_months(self, make_video, gateway, music_root):
        self._saved_library(make_video, gateway, music_root)
        names = sorted(p.name for p in (music_root / "2024").iterdir())
        assert names == [f"{m:02d}.json" for m in range(1, 13)]
        assert json.loads((music_root / "2024" / "03.json").read_text()) == []

    def test_save_then_load(self, make_video, gateway, music_root):
        library = self._saved_library(make_video, gateway, music_root)
        loaded = LibraryIndex.load_partitions(music_root, gateway)
        assert loaded.ids() == library.ids()
        assert loaded.get("dQw4w9WgXcQ") == library.get("dQw4w9WgXcQ")

    def test_save_rewrites_emptied_year(self, make_video, gateway, music_root):
        self._saved_library(make_video, gateway, music_root)
        LibraryIndex().save_partitions(music_root, gateway)
        assert json.loads((music_root / "2024" / "01.json").read_text()) == []
        assert len(LibraryIndex.load_partitions(music_root, gateway)) == 0

    def test_missing_month_file(self, make_video, gateway, music_root):
        self._saved_library(make_video, gateway, music_root)
        (music_root / "2024" / "05.json").unlink()
        with pytest.raises(LibraryLayoutError) as exc:
            LibraryIndex.load_partitions(music_root, gateway)
        assert "missing month file 05.json" in str(exc.value)
        assert len(exc.value.problems) == 1

    def test_video_in_wrong_month_file(self, make_video, gateway, music_root):
        self._saved_library(make_video, gateway, music_root)
        year = music_root / "2024"
        (year / "03.json").write_text((year / "02.json").read_text())
        (year / "02.json").write_text("[]\n")
        with pytest.raises(LibraryLayoutError) as exc:
            LibraryIndex.load_partitions(music_root, gateway)
        assert any(isinstance(e, IdentityMismatchError) for e in exc.value.errors)
        assert "wrong month" in str(exc.value)

    def test_collects_every_problem(self, make_video, gateway, music_root):
        self._saved_library(make_video, gateway, music_root)
        (music_root / "2024" / "07.json").unlink()
        (music_root / "2024" / "08.json").write_text("{not json")
        (music_root / "2024" / "notes.txt").write_text("hi")
        (music_root / "misc").mkdir()
        (music_root / "1999").write_text("")
        with pytest.raises(LibraryLayoutError) as exc:
            LibraryIndex.load_partitions(music_root, gateway)
        reasons = [p.reason for p in exc.value.problems]
        assert "missing month file 07.json" in reasons
        assert "invalid month file" in reasons
        assert "unexpected entry in year directory" in reasons
        assert "unexpected entry, expected a YYYY directory" in reasons
        assert "year entry is not a directory" in reasons

    def test_undecodable_and_missing_month_collected(self, make_video, gateway, music_root):
        self._saved_library(make_video, gateway, music_root)
        (music_root / "2024" / "03.json").write_bytes(b"[\xff\xfe]")
        (music_root / "2024" / "05.json").unlink()
        with pytest.raises(LibraryLayoutError) as exc:
            LibraryIndex.load_partitions(music_root, gateway)
        assert sorted(p.reason for p in exc.value.problems) == [
            "invalid month file", "missing month file 05.json"
        ]

    def test_uuid_past_year_9999_collected(self, make_video, gateway, music_root):
        self._saved_library(make_video, gateway, music_root)
        path = music_root / "2024" / "01.json"
        data = json.loads(path.read_text())
        data[0]["clips"][0]["uuid"] = "ffffffff-ffff-7fff-bfff-ffffffffffff"
        path.write_text(json.dumps(data))
        (music_root / "2024" / "05.json").unlink()
        with pytest.raises(LibraryLayoutError) as exc:
            LibraryIndex.load_partitions(music_root, gateway)
        assert len(exc.value.problems) == 2
        assert "invalid month file" in [p.reason for p in exc.value.problems]

    def test_dotfiles_ignored(self, make_video, gateway, music_root):
        self._saved_library(make_video, gateway, music_root)
        (music_root / ".git").mkdir()
        (music_root / ".DS_Store").write_text("")
        assert len(LibraryIndex.load_partitions(music_root, gateway)) == 2

    def test_missing_root(self, gateway, tmp_path):
        with pytest.raises(LibraryLayoutError, match="not a directory"):
            LibraryIndex.load_partitions(tmp_path / "nowhere", gateway)

    def test_duplicate_across_months(self, make_video, gateway, music_root):
        self._saved_library(make_video, gateway, music_root)
        earlier = make_video(published_at=datetime(2023, 1, 1, 12, tzinfo=timezone.utc))
        year = music_root / "2023"
        year.mkdir()
        for month in range(1, 13):
            gateway.write_partition(year / f"{month:02d}.json", [earlier] if month == 1 else [])
        with pytest.raises(CrossPartitionDuplicateError) as exc:
            LibraryIndex.load_partitions(music_root, gateway)
        assert exc.value.ids == ["dQw4w9WgXcQ"]
