import json
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from photomap import exif, overrides
from photomap.asset import ImageAsset


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_load_json_items(tmp_path):
    path = _write(tmp_path / "data.json", json.dumps({"items": [{"file": "a.jpg", "latitude": 1}]}))

    assert overrides.load_overrides(path) == [{"file": "a.jpg", "latitude": 1}]


def test_load_yaml_with_legacy_files_key(tmp_path):
    path = _write(
        tmp_path / "data.yaml",
        "files:\n"
        "  - file: trip/b.jpg\n"
        "    dateTime: '2020:01:01 10:00:00'\n"
        "    longitude: 14.4\n"
        "  - just a string\n",
    )

    records = overrides.load_overrides(path)

    assert records == [{"file": "trip/b.jpg", "dateTime": "2020:01:01 10:00:00", "longitude": 14.4}]


@pytest.mark.parametrize(
    "name, text",
    [
        ("data.json", json.dumps({"images": []})),
        ("data.json", json.dumps({"items": {"file": "a.jpg"}})),
        ("data.json", "{not json"),
        ("data.yaml", "- a\n- b\n"),
        ("data.txt", "items: []"),
    ],
)
def test_unusable_data_files_raise(tmp_path, name, text):
    path = _write(tmp_path / name, text)

    with pytest.raises(overrides.OverrideFileError):
        overrides.load_overrides(path)


def test_missing_data_file_raises(tmp_path):
    with pytest.raises(overrides.OverrideFileError):
        overrides.load_overrides(str(tmp_path / "missing.json"))


def test_find_override_first_match_wins():
    records = [
        {"file": "./trip/a.jpg", "latitude": 1},
        {"file": "trip/a.jpg", "latitude": 2},
        {"external": "http://x/y.jpg"},
    ]

    assert overrides.find_override(records, "trip/a.jpg")["latitude"] == 1
    assert overrides.find_override(records, "trip/b.jpg") is None


@pytest.mark.parametrize("value, expected", [(3, 3.0), (2.5, 2.5), (-0.0, 0.0)])
def test_to_float_accepts_numbers(value, expected):
    assert overrides.to_float(value) == expected


@pytest.mark.parametrize("value", [True, "50.0", None, [1]])
def test_to_float_rejects_non_numbers(value):
    with pytest.raises(TypeError):
        overrides.to_float(value)


def test_override_wins_over_exif_values():
    exif_time = datetime(2020, 1, 1, 8, 0, tzinfo=timezone.utc)
    asset = ImageAsset(
        path="b.jpg",
        timestamp=exif_time,
        latitude=10.0,
        longitude=20.0,
        has_latitude=True,
        has_longitude=True,
    )
    record = {
        "file": "b.jpg",
        "external": "http://x/b.jpg",
        "dateTime": "2021:06:01 12:00:00",
        "timeZone": "Europe/Prague",
        "latitude": 50,
        "longitude": 14.4,
    }

    result = overrides.apply_override(asset, record)

    assert result.external_url == "http://x/b.jpg"
    assert result.external_icon_url == "http://x/b.jpg"
    assert result.timestamp == datetime(2021, 6, 1, 12, 0, tzinfo=ZoneInfo("Europe/Prague"))
    assert (result.latitude, result.longitude) == (50.0, 14.4)
    assert result.has_location
    # the original asset is untouched
    assert asset.timestamp == exif_time


def test_absent_keys_keep_extracted_values():
    asset = ImageAsset(path="a.jpg", latitude=1.5, has_latitude=True, longitude=2.5, has_longitude=True)

    result = overrides.apply_override(asset, {"file": "a.jpg", "externalIcon": "http://x/icon.png"})

    assert (result.latitude, result.longitude) == (1.5, 2.5)
    assert result.has_location
    assert result.external_url == ""
    assert result.external_icon_url == "http://x/icon.png"


def test_zone_only_override_shifts_by_zone_delta():
    original = datetime(2021, 6, 1, 10, 0, tzinfo=timezone.utc)
    asset = ImageAsset(path="a.jpg", timestamp=original)

    result = overrides.apply_override(asset, {"timeZone": "Europe/Prague"})

    # offsets are compared on the reference date (winter time, +1h)
    assert result.timestamp - original == timedelta(hours=1)
    assert result.timestamp.replace(tzinfo=None) == datetime(2021, 6, 1, 11, 0)


def test_shift_timezone_between_named_zones():
    original = datetime(2021, 3, 1, 12, 0, tzinfo=ZoneInfo("America/New_York"))

    shifted = overrides.shift_timezone(original, ZoneInfo("Asia/Tokyo"))

    assert shifted.replace(tzinfo=None) - original.replace(tzinfo=None) == timedelta(hours=14)


def test_zone_only_override_without_timestamp_does_nothing():
    result = overrides.apply_override(ImageAsset(path="a.jpg"), {"timeZone": "Asia/Tokyo"})

    assert result.timestamp is None


def test_datetime_and_zone_are_parsed_without_shift():
    asset = ImageAsset(path="a.jpg", timestamp=datetime(2000, 1, 1, tzinfo=timezone.utc))

    result = overrides.apply_override(
        asset, {"dateTime": "2022:02:02 02:02:02\x00", "timeZone": "Asia/Tokyo"}
    )

    assert result.timestamp == datetime(2022, 2, 2, 2, 2, 2, tzinfo=ZoneInfo("Asia/Tokyo"))


def test_invalid_datetime_keeps_timestamp(capsys):
    original = datetime(2000, 1, 1, tzinfo=timezone.utc)
    asset = ImageAsset(path="a.jpg", timestamp=original)

    result = overrides.apply_override(asset, {"dateTime": "yesterday"})

    assert result.timestamp == original
    assert "Warning" in capsys.readouterr().out


def test_unknown_zone_is_reported(capsys):
    original = datetime(2000, 1, 1, tzinfo=timezone.utc)
    asset = ImageAsset(path="a.jpg", timestamp=original)

    result = overrides.apply_override(asset, {"timeZone": "Mars/Olympus_Mons"})

    assert result.timestamp == original
    assert "Unknown time zone" in capsys.readouterr().out


def test_single_axis_override_is_not_a_location():
    result = overrides.apply_override(ImageAsset(path="a.jpg"), {"latitude": 50.0})

    assert result.has_latitude
    assert not result.has_location


def test_non_numeric_axis_disables_location(capsys):
    asset = ImageAsset(path="a.jpg", latitude=1.0, longitude=2.0, has_latitude=True, has_longitude=True)

    result = overrides.apply_override(asset, {"latitude": "north", "longitude": 3})

    assert result.latitude == 0.0
    assert not result.has_latitude
    assert result.longitude == 3.0
    assert not result.has_location
    assert "Invalid latitude" in capsys.readouterr().out


def test_zero_coordinates_from_override_are_a_location():
    result = overrides.apply_override(ImageAsset(path="a.jpg"), {"latitude": 0, "longitude": 0})

    assert result.has_location
    assert (result.latitude, result.longitude) == (0.0, 0.0)


def test_zone_only_override_with_host_zone_keeps_wall_clock(monkeypatch):
    monkeypatch.setenv("TZ", "Europe/Prague")
    local = exif.parse_exif_datetime("2020:07:15 12:00:00")
    asset = ImageAsset(path="a.jpg", timestamp=local)

    result = overrides.apply_override(asset, {"timeZone": "Europe/Prague"})

    assert result.timestamp == local


@pytest.mark.parametrize("key", ["external", "externalIcon"])
def test_non_string_url_is_reported_and_ignored(key, capsys):
    asset = ImageAsset(path="a.jpg", external_url="http://x/a.jpg", external_icon_url="http://x/a.jpg")

    result = overrides.apply_override(asset, {"file": "a.jpg", key: None})

    assert result.external_url == "http://x/a.jpg"
    assert result.external_icon_url == "http://x/a.jpg"
    assert f"Invalid {key}" in capsys.readouterr().out


def test_record_with_empty_external_is_not_an_external_image():
    assert not overrides.is_external_record({"external": None, "latitude": 1.0})
    assert overrides.is_external_record({"external": "http://x/a.jpg"})
