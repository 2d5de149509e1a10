"""Tests for Asset."""

import base64

import pytest

from theme_sync.asset import Asset
from theme_sync.errors import EncodingError, MalformedContentError, ThemeSyncError


def test_is_valid():
    assert Asset(key="test.txt", value="one").is_valid()
    assert Asset(key="test.txt", attachment="one").is_valid()
    assert not Asset(value="one").is_valid()
    assert not Asset(key="test.txt").is_valid()


def test_size():
    assert Asset(value="one").size() == 3
    assert Asset(value="caf\u00e9").size() == 5
    assert Asset(attachment="other").size() == 5


def test_contents_plain_value():
    data = Asset(value="this is content").contents()
    assert len(data) == 15


def test_contents_rejects_bad_base64():
    with pytest.raises(EncodingError):
        Asset(attachment="this is bad content").contents()


def test_contents_decodes_attachment():
    encoded = base64.b64encode(b"this is bad content").decode("ascii")
    data = Asset(attachment=encoded).contents()
    assert len(data) == 19
    assert data == b"this is bad content"


def test_contents_reformats_json():
    data = Asset(key="test.json", value='{"test":"one"}').contents()
    assert len(data) == 19
    assert data == b'{\n  "test": "one"\n}'


def test_contents_rejects_malformed_json():
    asset = Asset(key="config/settings_data.json", value="{not json")
    with pytest.raises(MalformedContentError):
        asset.contents()
    with pytest.raises(ValueError):
        asset.contents()


def test_json_keeps_key_order_and_unicode():
    data = Asset(key="x.json", value='{"b": 1, "a": "caf\\u00e9"}').contents()
    assert data.decode("utf-8") == '{\n  "b": 1,\n  "a": "café"\n}'


def test_write(tmp_path):
    asset = Asset(key="output/blah.txt", value="this is content")
    with pytest.raises(OSError):
        asset.write(str(tmp_path / "does" / "not" / "exist"))

    (tmp_path / "output").mkdir()
    asset.write(str(tmp_path))
    assert (tmp_path / "output" / "blah.txt").read_bytes() == b"this is content"


def test_write_does_not_create_file_for_bad_attachment(tmp_path):
    asset = Asset(key="bad.png", attachment="not base64!")
    with pytest.raises(ThemeSyncError):
        asset.write(str(tmp_path))
    assert not (tmp_path / "bad.png").exists()


def test_checksum():
    encoded = base64.b64encode(b"same").decode("ascii")
    assert Asset(key="a.txt", value="same").checksum() == Asset(
        key="a.bin", attachment=encoded
    ).checksum()


def test_dict_round_trip_ignores_unknown_fields():
    asset = Asset.from_dict({"key": "a.txt", "value": "x", "public_url": "http://x"})
    assert asset == Asset(key="a.txt", value="x")
    assert asset.to_dict() == {"key": "a.txt", "value": "x"}
    assert Asset(key="a.png", attachment="AA==").to_dict() == {
        "key": "a.png",
        "attachment": "AA==",
    }
