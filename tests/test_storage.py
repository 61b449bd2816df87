import re

import pytest

from app import config
from app.utils import storage


@pytest.fixture
def unconfigured(monkeypatch):
    monkeypatch.setattr(storage, "_client", None)
    for name in ("S3_REGION", "S3_BUCKET", "S3_ACCESS_KEY_ID", "S3_SECRET_ACCESS_KEY", "S3_PUBLIC_URL_BASE"):
        monkeypatch.setattr(config, name, None)


def test_attachment_key_layout():
    key = storage.generate_attachment_key(12, 3, "engine photo (1).jpg")
    assert re.fullmatch(r"bookings/12/3/\d{8}_\d{6}_\d{6}_[0-9a-f]{8}_enginephoto1\.jpg", key)


def test_attachment_key_with_unusable_filename():
    assert storage.generate_attachment_key(1, 1, "///").endswith("_file")


def test_client_requires_credentials(unconfigured):
    with pytest.raises(storage.StorageNotConfiguredError):
        storage.get_s3_client()


def test_public_url_requires_base(unconfigured, monkeypatch):
    with pytest.raises(storage.StorageNotConfiguredError):
        storage.public_url_for_key("bookings/1/1/a.jpg")

    monkeypatch.setattr(config, "S3_PUBLIC_URL_BASE", "https://cdn.example.com/")
    assert storage.public_url_for_key("bookings/1/1/a.jpg") == "https://cdn.example.com/bookings/1/1/a.jpg"
