# tests/test_json_files.py
"""Tests for the JSON file persistence gateway."""

import json

import pytest

from clipcatalog.exceptions import ArtistReferenceError, DocumentError


class TestReadDraftVideos:
    def test_reads_submission(self, gateway, write_json, draft_payload):
        drafts = gateway.read_draft_videos(write_json("new.json", draft_payload))
        assert len(drafts) == 1
        assert drafts[0].uploader_name == "clipper"
        assert drafts[0].clips[1].content.external_artists == ("guest-pianist",)

    def test_missing_file(self, gateway, tmp_path):
        with pytest.raises(DocumentError, match="failed to open"):
            gateway.read_draft_videos(tmp_path / "absent.json")

    def test_invalid_json(self, gateway, tmp_path):
        path = tmp_path / "new.json"
        path.write_text("[{")
        with pytest.raises(DocumentError, match="invalid JSON"):
            gateway.read_draft_videos(path)

    def test_top_level_must_be_list(self, gateway, write_json):
        with pytest.raises(DocumentError, match="top level must be a list"):
            gateway.read_draft_videos(write_json("new.json", {"videoId": "dQw4w9WgXcQ"}))

    def test_unknown_field_rejected(self, gateway, write_json, draft_payload):
        draft_payload[0]["clips"][0]["artist"] = "suisei"
        with pytest.raises(DocumentError) as exc:
            gateway.read_draft_videos(write_json("new.json", draft_payload))
        assert "dQw4w9WgXcQ" in exc.value.reasons[0]

    def test_wrong_primitive_type_rejected(self, gateway, write_json, draft_payload):
        draft_payload[0]["clips"][0]["isClipped"] = "yes"
        with pytest.raises(DocumentError):
            gateway.read_draft_videos(write_json("new.json", draft_payload))

    def test_reports_every_bad_video(self, gateway, write_json, draft_payload):
        second = json.loads(json.dumps(draft_payload[0]))
        second["videoId"] = "BpibZSMGtdY"
        second["clips"][0]["artists"] = ["nobody"]
        draft_payload[0]["clips"][0]["startTime"] = "soon"
        draft_payload.append(second)
        with pytest.raises(DocumentError) as exc:
            gateway.read_draft_videos(write_json("new.json", draft_payload))
        assert len(exc.value.reasons) == 2
        assert exc.value.reasons[1].startswith("[1] BpibZSMGtdY")
        inner = exc.value.errors[1].errors[0]
        assert isinstance(inner, ArtistReferenceError)


class TestPartitions:
    def test_pretty_printed_with_trailing_newline(self, gateway, make_video, tmp_path):
        path = tmp_path / "2024" / "01.json"
        gateway.write_partition(path, [make_video(title="歌枠")])
        text = path.read_text(encoding="utf-8")
        assert text.endswith("]\n")
        assert '\n  {\n    "videoId": "dQw4w9WgXcQ"' in text
        assert "歌枠" in text

    def test_round_trip(self, gateway, make_video, tmp_path):
        video = make_video()
        path = tmp_path / "01.json"
        gateway.write_partition(path, [video])
        assert gateway.read_partition(path) == [video]

    def test_empty_partition(self, gateway, tmp_path):
        path = tmp_path / "01.json"
        gateway.write_partition(path, [])
        assert path.read_text() == "[]\n"
        assert gateway.read_partition(path) == []

    def test_read_reports_lift_errors(self, gateway, make_video, tmp_path):
        path = tmp_path / "01.json"
        gateway.write_partition(path, [make_video()])
        data = json.loads(path.read_text())
        data[0]["duration"] = "PT15S"
        path.write_text(json.dumps(data))
        with pytest.raises(DocumentError, match="exceeds video duration"):
            gateway.read_partition(path)

    def test_invalid_utf8(self, gateway, tmp_path):
        path = tmp_path / "03.json"
        path.write_bytes(b"[\xff\xfe]")
        with pytest.raises(DocumentError, match="not valid UTF-8"):
            gateway.read_partition(path)

    def test_uuid_past_year_9999(self, gateway, make_video, tmp_path):
        path = tmp_path / "01.json"
        gateway.write_partition(path, [make_video()])
        data = json.loads(path.read_text())
        data[0]["clips"][0]["uuid"] = "ffffffff-ffff-7fff-bfff-ffffffffffff"
        path.write_text(json.dumps(data))
        with pytest.raises(DocumentError) as exc:
            gateway.read_partition(path)
        assert "dQw4w9WgXcQ" in exc.value.reasons[0]


class TestFlatFiles:
    def test_minified(self, gateway, tmp_path):
        path = tmp_path / "public" / "clips.min.json"
        gateway.write_flat_clips(path, {"a": {"songTitle": "ゴースト", "startTimeSecs": 1}})
        assert path.read_text(encoding="utf-8") == '{"a":{"songTitle":"ゴースト","startTimeSecs":1}}'

    def test_videos_minified(self, gateway, tmp_path):
        path = tmp_path / "videos.min.json"
        gateway.write_flat_videos(path, {"dQw4w9WgXcQ": {"tags": []}})
        assert json.loads(path.read_text()) == {"dQw4w9WgXcQ": {"tags": []}}
        assert " " not in path.read_text()
