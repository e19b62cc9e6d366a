import json
import os
import tempfile
import zipfile
from datetime import datetime

import pytest
from lxml import etree

from create_sample_photos import create_sample_photo
from photomap import app, kml
from photomap.config import Config

NS = {"k": kml.KML_NS, "gx": kml.GX_NS}


def _sample_dir(tmp_path):
    photos = tmp_path / "photos"
    create_sample_photo(str(photos / "b.jpg"), 49.2, 16.6, datetime(2020, 1, 1, 12, 0))
    create_sample_photo(str(photos / "trip" / "a.jpg"), timestamp=datetime(2020, 1, 1, 9, 0))
    create_sample_photo(str(photos / "c.jpg"), 50.1, 14.4)
    data = tmp_path / "data.json"
    data.write_text(json.dumps({
        "items": [
            {"file": "trip/a.jpg", "latitude": 50.0, "longitude": 14.4},
            {"external": "http://x/remote.jpg", "latitude": 48.2, "longitude": 16.4,
             "dateTime": "2020:01:01 15:00:00"},
        ]
    }))
    return photos, data


def test_full_run_with_kmz(tmp_path):
    photos, data = _sample_dir(tmp_path)
    out = tmp_path / "out"

    app.main([
        "-i", str(photos), "-o", str(out), "--data", str(data),
        "--timesort", "--path", "--kmz", "--name", "Trip", "--maxsize", "100",
    ])

    root = etree.parse(str(out / "doc.kml")).getroot()
    document = root.find("k:Document", namespaces=NS)
    assert document.findtext("k:name", namespaces=NS) == "Trip"
    placemarks = document.findall("k:Placemark", namespaces=NS)
    assert placemarks[0].findtext("k:name", namespaces=NS) == "Path"
    # c.jpg has no time and sorts first, then a (9:00), b (12:00), remote (15:00)
    urls = [p.findtext("gx:Carousel/gx:Image/gx:ImageUrl", namespaces=NS) for p in placemarks[1:]]
    assert urls == ["files/c.jpg", "files/trip/a.jpg", "files/b.jpg", "http://x/remote.jpg"]

    assert (out / "files" / "trip" / "a.jpg").exists()
    assert (out / "files" / ".thumbnails" / "b.jpg.png").exists()
    with zipfile.ZipFile(out / "doc.kmz") as archive:
        names = set(archive.namelist())
    assert {"doc.kml", "files/b.jpg", "files/.thumbnails/b.jpg.png"} <= names
    assert "doc.kmz" not in names


def test_base64_run_writes_no_files(tmp_path):
    photos = tmp_path / "photos"
    create_sample_photo(str(photos / "a.jpg"), 49.2, 16.6)
    out = tmp_path / "out"

    app.main(["-i", str(photos), "-o", str(out), "--base64", "--mode", "g-maps"])

    assert not (out / "files").exists()
    root = etree.parse(str(out / "doc.kml")).getroot()
    href = root.findtext(".//k:IconStyle/k:Icon/k:href", namespaces=NS)
    assert href.startswith("data:image/png;base64,")


def test_missing_required_flags_exit_before_indexing(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        app.main(["-o", str(tmp_path / "out")])

    assert excinfo.value.code != 0
    assert not (tmp_path / "out").exists()


def test_unknown_mode_exits(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        app.main(["-i", str(tmp_path), "-o", str(tmp_path / "out"), "--mode", "g-earth-mars"])

    assert excinfo.value.code != 0
    assert not (tmp_path / "out").exists()


def test_bad_data_file_exits_without_output(tmp_path, capsys):
    data = tmp_path / "data.json"
    data.write_text(json.dumps({"images": []}))

    with pytest.raises(SystemExit) as excinfo:
        app.main(["-i", str(tmp_path), "-o", str(tmp_path / "out"), "--data", str(data)])

    assert excinfo.value.code == 1
    assert "Cannot find key 'items'" in capsys.readouterr().out
    assert not (tmp_path / "out").exists()


def test_missing_input_directory_exits(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        app.main(["-i", str(tmp_path / "nope"), "-o", str(tmp_path / "out")])

    assert excinfo.value.code == 1


def test_config_from_args_defaults(tmp_path):
    args = app.build_parser().parse_args(["-i", str(tmp_path), "-o", "out/"])

    config = app.config_from_args(args)

    assert config.output_dir == "out"
    assert config.mode is kml.RenderMode.GX_CAROUSEL
    assert config.prefer_external_image is True
    assert config.prefer_external_icon is False
    assert config.overrides == ()


def _record_scratch_dirs(monkeypatch):
    created = []
    make_scratch = tempfile.TemporaryDirectory

    def recording(*args, **kwargs):
        scratch = make_scratch(*args, **kwargs)
        created.append(scratch.name)
        return scratch

    monkeypatch.setattr(app.tempfile, "TemporaryDirectory", recording)
    return created


def test_scratch_dir_removed_after_run(tmp_path, monkeypatch):
    photos = tmp_path / "photos"
    create_sample_photo(str(photos / "a.jpg"), 49.2, 16.6)
    created = _record_scratch_dirs(monkeypatch)

    app.run(Config(input_dir=str(photos), output_dir=str(tmp_path / "out")))

    assert len(created) == 1
    assert not os.path.exists(created[0])


def test_scratch_dir_removed_when_run_fails(tmp_path, monkeypatch):
    photos = tmp_path / "photos"
    create_sample_photo(str(photos / "a.jpg"), 49.2, 16.6)
    created = _record_scratch_dirs(monkeypatch)

    def failing_build(images, config):
        raise RuntimeError("document failed")

    monkeypatch.setattr(app, "build_document", failing_build)

    with pytest.raises(RuntimeError):
        app.run(Config(input_dir=str(photos), output_dir=str(tmp_path / "out")))

    assert len(created) == 1
    assert not os.path.exists(created[0])
    assert not (tmp_path / "out" / "doc.kml").exists()
