"""
Tests for the maintenance scripts and deployment config.
"""
import importlib
import os

from cleanup_all_data import clear_gallery_data
from gallery.auth import check_credentials
from gallery.store import load_events, save_events
from hash_admin_password import make_hash


def test_clear_gallery_data(tmp_path):
    events_file = str(tmp_path / 'data' / 'events.json')
    image_folder = tmp_path / 'gallery-images'
    (image_folder / 'ev').mkdir(parents=True)
    (image_folder / 'ev' / 'a_full.webp').write_bytes(b'x')
    (image_folder / 'stray.txt').write_text('x')
    save_events(events_file, {'ev': {'title': 'Event', 'photos': []}})

    removed = clear_gallery_data(events_file, str(image_folder))

    assert removed == ['ev', 'stray.txt']
    assert load_events(events_file) == {}
    assert os.listdir(image_folder) == []


def test_clear_gallery_data_missing_paths(tmp_path):
    assert clear_gallery_data(str(tmp_path / 'none.json'), str(tmp_path / 'none')) == []


def test_generated_hash_logs_admin_in():
    hashed = make_hash('open sesame')

    assert check_credentials('kim@example.com', 'open sesame', 'kim@example.com', password_hash=hashed)
    assert not check_credentials('kim@example.com', 'open', 'kim@example.com', password_hash=hashed)


def test_gunicorn_config(monkeypatch):
    monkeypatch.setenv('PORT', '9000')
    monkeypatch.delenv('GUNICORN_WORKERS', raising=False)

    config = importlib.reload(importlib.import_module('gallery.gunicorn_config'))

    assert config.bind == '0.0.0.0:9000'
    assert config.workers == 1
    assert config.worker_class == 'sync'
