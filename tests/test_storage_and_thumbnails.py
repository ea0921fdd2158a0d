"""Tests for the saved map store, thumbnails, config and session assembly."""

import logging

import numpy as np
import pytest

from collab_sketch import create_session
from collab_sketch.core import SyncEngine, SyncState
from collab_sketch.errors import PersistenceError
from collab_sketch.services import FileSnapshotStore
from collab_sketch.utils import load_thumbnail, make_thumbnail, setup_logging, setup_metrics
from collab_sketch.utils.config import Settings
from conftest import FakePerception


class TestFileSnapshotStore:

    def test_nothing_saved(self, store):
        assert store.load_snapshot_bytes() is None
        assert not store.has_saved_snapshot()

    def test_save_and_load(self, store):
        store.save_snapshot_bytes(b"\x02first")
        store.save_snapshot_bytes(b"\x02second")
        assert store.has_saved_snapshot()
        assert store.load_snapshot_bytes() == b"\x02second"

    def test_no_temp_files_left(self, store):
        store.save_snapshot_bytes(b"data")
        assert [p.name for p in store.path.parent.iterdir()] == [store.path.name]

    def test_creates_parent_directory(self, tmp_path):
        store = FileSnapshotStore(tmp_path / "nested" / "dir" / "map.bin")
        store.save_snapshot_bytes(b"data")
        assert store.load_snapshot_bytes() == b"data"

    def test_save_failure_is_recoverable(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"not a directory")
        store = FileSnapshotStore(blocker / "map.bin")
        with pytest.raises(PersistenceError) as exc_info:
            store.save_snapshot_bytes(b"data")
        assert exc_info.value.details["path"] == str(blocker / "map.bin")


class TestThumbnails:

    def test_downscales_and_encodes_jpeg(self):
        image = np.zeros((480, 640, 3), dtype=np.uint8)
        image[:, :320] = 255
        data = make_thumbnail(image, max_size=64, quality=80)
        assert data[:2] == b"\xff\xd8"
        img = load_thumbnail(data)
        assert img.size == (64, 48)
        assert img.format == "JPEG"

    def test_float_and_grayscale_images(self):
        assert load_thumbnail(make_thumbnail(np.full((20, 10), 0.5))).size == (10, 20)
        rgba = np.zeros((8, 8, 4), dtype=np.uint8)
        assert load_thumbnail(make_thumbnail(rgba)).mode == "RGB"

    def test_rejects_bad_shapes(self):
        with pytest.raises(ValueError):
            make_thumbnail(np.zeros((4, 4, 2), dtype=np.uint8))
        with pytest.raises(ValueError):
            make_thumbnail(np.zeros((0, 0, 3), dtype=np.uint8))


class TestConfigAndSession:

    def test_settings_defaults(self, tmp_path):
        settings = Settings(DATA_DIR=str(tmp_path), _env_file=None)
        assert settings.snapshot_path == tmp_path / "mymap.arexperience"
        assert settings.STROKE_DISTANCE == 0.1
        assert settings.RELOCALIZATION_TIMEOUT_SECONDS is None
        assert settings.is_development

    def test_settings_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("COLLAB_SKETCH_THUMBNAIL_MAX_SIZE", "128")
        monkeypatch.setenv("COLLAB_SKETCH_RELOCALIZATION_TIMEOUT_SECONDS", "2.5")
        settings = Settings(DATA_DIR=str(tmp_path), _env_file=None)
        assert settings.THUMBNAIL_MAX_SIZE == 128
        assert settings.RELOCALIZATION_TIMEOUT_SECONDS == 2.5

    def test_setup_logging_with_files(self, tmp_path):
        settings = Settings(LOG_DIR=str(tmp_path / "logs"), _env_file=None)
        setup_logging(settings)
        logging.getLogger("collab_sketch.test").error("written to error log")
        for handler in logging.getLogger("collab_sketch").handlers:
            handler.flush()
        assert (tmp_path / "logs" / "errors.log").exists()

    def test_metrics_disabled(self):
        metrics = setup_metrics(enabled=False)
        metrics.increment_counter("anchors_sent")
        assert metrics.counter("anchors_sent") == 0
        assert metrics.get_metrics()["counters"] == {}

    def test_create_session(self, hub, settings):
        engine = create_session(FakePerception(), hub.join("alice"), settings=settings,
                                configure_logging=False)
        assert isinstance(engine, SyncEngine)
        assert engine.device_name == "alice"
        assert engine.store.path == settings.snapshot_path
        assert engine.state == SyncState.IDLE
