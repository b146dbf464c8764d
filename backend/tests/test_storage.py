"""
Tests unitaires pour le stockage objet local et les URLs signées.
"""

from urllib.parse import parse_qs, urlparse

import pytest

from app.services.storage import ObjectStore


@pytest.fixture
def store(tmp_path):
    return ObjectStore(
        base_dir=str(tmp_path),
        secret_key="test-secret",
        public_base_url="http://testserver/",
        url_ttl_seconds=60,
    )


def test_put_get(store):
    store.put("profilePictures/abc/profile.jpg", b"\xff\xd8data")
    assert store.get("profilePictures/abc/profile.jpg") == b"\xff\xd8data"
    assert store.exists("profilePictures/abc/profile.jpg")


def test_get_objet_absent(store):
    with pytest.raises(FileNotFoundError):
        store.get("missing/file.pdf")


def test_chemin_hors_racine_refuse(store):
    with pytest.raises(ValueError):
        store.put("../escape.txt", b"x")
    assert not store.exists("a/../../etc/passwd")


def test_list_un_niveau(store):
    store.put("profilePictures/a/profile.jpg", b"1")
    store.put("profilePictures/b/profile.png", b"2")
    store.put("profilePictures/readme.txt", b"3")

    result = store.list("profilePictures")
    assert result.prefixes == ["profilePictures/a", "profilePictures/b"]
    assert result.items == ["profilePictures/readme.txt"]
    assert store.list("nothing/here").items == []


def test_delete(store):
    store.put("docs/x.pdf", b"x")
    assert store.delete("docs/x.pdf") is True
    assert store.delete("docs/x.pdf") is False


def test_content_type():
    assert ObjectStore.content_type("a/profile.png") == "image/png"
    assert ObjectStore.content_type("a/blob") == "application/octet-stream"


def test_url_signee_valide_puis_expiree(store):
    url = store.download_url("profilePictures/a/profile.jpg", now=1000)
    parsed = urlparse(url)
    query = parse_qs(parsed.query)

    assert parsed.path == "/api/v1/storage/profilePictures/a/profile.jpg"
    expires = int(query["expires"][0])
    signature = query["signature"][0]
    assert expires == 1060

    assert store.verify("profilePictures/a/profile.jpg", expires, signature, now=1030)
    assert not store.verify("profilePictures/a/profile.jpg", expires, signature, now=1061)
    assert not store.verify("profilePictures/b/profile.jpg", expires, signature, now=1030)
    assert not store.verify("profilePictures/a/profile.jpg", expires + 1, signature, now=1030)
