"""
Shared fixtures for the gallery API tests.
"""
import os

import pytest
from werkzeug.security import generate_password_hash

from gallery.app import app as flask_app
from gallery.store import save_events

ADMIN_EMAIL = 'admin@example.com'
ADMIN_PASSWORD = 'correct horse battery staple'


@pytest.fixture
def gallery_app(tmp_path):
    """
    The Flask app pointed at temporary data and image folders.
    """
    original_config = dict(flask_app.config)

    image_folder = tmp_path / 'gallery-images'
    image_folder.mkdir()

    flask_app.config.update(
        TESTING=True,
        SECRET_KEY='test_secret_key',
        EVENTS_FILE=str(tmp_path / 'data' / 'events.json'),
        IMAGE_FOLDER=str(image_folder),
        ADMIN_EMAIL=ADMIN_EMAIL,
        # cheap hash so property tests stay fast
        ADMIN_PASSWORD_HASH=generate_password_hash(ADMIN_PASSWORD, method='pbkdf2:sha256:1000'),
        ADMIN_PASSWORD=None,
        PUBLIC_GALLERY_URL='https://gallery.example.com',
        DEFAULT_LOCATION='',
    )

    yield flask_app

    flask_app.config.clear()
    flask_app.config.update(original_config)


@pytest.fixture
def admin_credentials():
    return {'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD}


@pytest.fixture
def client(gallery_app):
    with gallery_app.test_client() as client:
        yield client


@pytest.fixture
def admin_client(gallery_app):
    """A test client with an admin session."""
    with gallery_app.test_client() as client:
        response = client.post('/api/gallery/login', json={
            'email': ADMIN_EMAIL,
            'password': ADMIN_PASSWORD,
        })
        assert response.status_code == 200
        yield client


@pytest.fixture
def seed_events(gallery_app):
    """Write an events collection straight to the store."""
    def _seed(events):
        save_events(gallery_app.config['EVENTS_FILE'], events)
        return events
    return _seed


@pytest.fixture
def event_with_photos(gallery_app, seed_events):
    """
    An event with three photos whose files exist on disk.
    """
    event_id = 'spring_fair'
    event_dir = os.path.join(gallery_app.config['IMAGE_FOLDER'], event_id)
    os.makedirs(event_dir)

    photos = []
    for name in ('a', 'b', 'c'):
        for kind in ('full', 'thumb'):
            with open(os.path.join(event_dir, f"{name}_{kind}.webp"), 'wb') as f:
                f.write(f"{name}-{kind}".encode())
        photos.append({
            'full': f"/gallery-images/{event_id}/{name}_full.webp",
            'thumb': f"/gallery-images/{event_id}/{name}_thumb.webp",
            'alt': f"Spring Fair - image {name}",
        })

    seed_events({
        event_id: {
            'title': 'Spring Fair',
            'date': '2025-05-03',
            'location': 'Main Square',
            'note': 'print in May newsletter',
            'photos': photos,
            'views': 0,
            'visitors': 0,
            'stats': {},
        }
    })

    return {'event_id': event_id, 'event_dir': event_dir, 'photos': photos}
