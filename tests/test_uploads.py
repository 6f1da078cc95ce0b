from pathlib import Path

from florist import storage

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def test_upload_and_delete_image(client, admin_headers):
    response = client.post(
        "/api/upload/plants",
        files={"image": ("monstera.png", PNG, "image/png")},
        headers=admin_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["url"] == f"/uploads/plants/{body['filename']}"
    stored = storage.uploads_root() / "plants" / body["filename"]
    assert stored.read_bytes() == PNG

    # served back by the static mount
    assert client.get(body["url"]).content == PNG

    response = client.delete(f"/api/upload/plants/{body['filename']}", headers=admin_headers)
    assert response.status_code == 200
    assert not stored.exists()
    assert client.delete(f"/api/upload/plants/{body['filename']}", headers=admin_headers).status_code == 404


def test_only_images_are_accepted(client, admin_headers):
    response = client.post(
        "/api/upload/plants",
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Only image files are allowed"


def test_large_files_are_rejected(client, admin_headers, monkeypatch):
    monkeypatch.setattr(storage.settings, "MAX_FILE_SIZE", 10)
    response = client.post(
        "/api/upload/plants",
        files={"image": ("big.png", PNG, "image/png")},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "File is too large"


def test_unknown_upload_kind(client, admin_headers):
    response = client.post(
        "/api/upload/secrets",
        files={"image": ("a.png", PNG, "image/png")},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_uploads_require_admin(client, customer_headers):
    response = client.post(
        "/api/upload/plants",
        files={"image": ("a.png", PNG, "image/png")},
        headers=customer_headers,
    )
    assert response.status_code == 403


def test_plant_created_with_image(client, admin_headers, category):
    response = client.post(
        "/api/plants",
        data={"name": "Monstera", "category": str(category["id"]), "price": "45"},
        files={"image": ("monstera.webp", PNG, "image/webp")},
        headers=admin_headers,
    )
    assert response.status_code == 200
    image_url = response.json()["image_url"]
    assert image_url.startswith("/uploads/plants/") and image_url.endswith(".webp")
    assert (storage.uploads_root() / "plants" / Path(image_url).name).exists()


def stored_plant_images():
    directory = storage.uploads_root() / "plants"
    return set(directory.iterdir()) if directory.exists() else set()


def test_rejected_plant_leaves_no_image_behind(client, admin_headers, category):
    before = stored_plant_images()
    response = client.post(
        "/api/plants",
        data={"name": "Monstera", "category": "999", "price": "45"},
        files={"image": ("monstera.png", PNG, "image/png")},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid category"
    assert stored_plant_images() == before

    response = client.post(
        "/api/plants",
        data={"name": "Monstera", "category": str(category["id"]), "price": "45", "sale_price": "50"},
        files={"image": ("monstera.png", PNG, "image/png")},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert stored_plant_images() == before
