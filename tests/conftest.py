import io

import pytest
from PIL import Image

from guestbook import create_app
from guestbook.extensions import db
from guestbook.services.entries import EntryStore
from guestbook.services.media import LocalObjectStore, MediaIngest, Upload

ADMIN_PASSWORD = "let-me-in"


def image_bytes(fmt="PNG", size=(16, 16), color=(200, 80, 40)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def png_upload(filename="photo.png", size=(16, 16)):
    return Upload(filename=filename, mimetype="image/png", data=image_bytes("PNG", size))


@pytest.fixture
def app(tmp_path):
    """Application bound to a throwaway SQLite database and uploads folder."""
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'guestbook.db'}",
            "UPLOADS_FOLDER_PATH": str(tmp_path / "uploads"),
            "ADMIN_PASSWORD": ADMIN_PASSWORD,
            "ARCHIVE_DIR": str(tmp_path / "backup"),
        }
    )
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    with app.app_context():
        yield EntryStore(db.session)


@pytest.fixture
def object_store(tmp_path):
    return LocalObjectStore(tmp_path / "objects", "https://media.example/uploads")


@pytest.fixture
def ingest(object_store):
    return MediaIngest(object_store)


@pytest.fixture
def admin_headers():
    return {"X-Admin-Password": ADMIN_PASSWORD}


@pytest.fixture
def make_image():
    return image_bytes


@pytest.fixture
def make_upload():
    return png_upload
