import pytest


@pytest.mark.asyncio
async def test_upload_stores_file_and_metadata(secured_client, token, tmp_path):
    headers = {"authorization": token}
    response = await secured_client.post(
        "/upload",
        files={"file": ("cat.png", b"\x89PNG-bytes", "image/png")},
        data={"descricao": "gato", "album": "pets"},
        headers=headers,
    )

    assert response.status_code == 201
    record = response.json()["data"]
    assert record["descricao"] == "gato"
    assert record["album"] == "pets"
    assert record["filename"] == "cat.png"
    assert record["path"] == "uploads/png/cat.png"
    assert record["type"] == "png"
    assert isinstance(record["id"], int)
    assert (tmp_path / "db" / "uploads" / "png" / "cat.png").read_bytes() == b"\x89PNG-bytes"

    response = await secured_client.get("/listalluploads", headers=headers)
    assert response.status_code == 200
    assert response.json() == [record]


@pytest.mark.asyncio
async def test_uploaded_files_are_served_statically(client):
    await client.post("/upload", files={"file": ("note.txt", b"hello", "text/plain")})

    response = await client.get("/uploads/txt/note.txt")
    assert response.status_code == 200
    assert response.content == b"hello"


@pytest.mark.asyncio
async def test_metadata_file_is_not_served(client):
    await client.post("/upload", files={"file": ("note.txt", b"hello", "text/plain")})

    response = await client.get("/uploads/data.json")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_upload_without_file(client):
    response = await client.post("/upload", data={"descricao": "sem arquivo"})
    assert response.status_code == 400
    assert response.json()["message"] == "No file provided"


@pytest.mark.asyncio
async def test_upload_requires_token_when_secured(secured_client):
    response = await secured_client.post("/upload", files={"file": ("a.txt", b"a", "text/plain")})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_delete_upload(client, tmp_path):
    await client.post("/upload", files={"file": ("a.txt", b"a", "text/plain")})
    await client.post("/upload", files={"file": ("b.txt", b"b", "text/plain")})

    response = await client.delete("/upload/a.txt")
    assert response.status_code == 200
    assert not (tmp_path / "db" / "uploads" / "txt" / "a.txt").exists()

    response = await client.post("/data/uploads/filter", json={"filters": []})
    assert [r["filename"] for r in response.json()] == ["b.txt"]


@pytest.mark.asyncio
async def test_delete_upload_without_metadata_store(client):
    response = await client.delete("/upload/a.txt")
    assert response.status_code == 404
    assert response.json()["message"] == "Metadata file not found"


@pytest.mark.asyncio
async def test_delete_unknown_upload_succeeds(client):
    await client.post("/upload", files={"file": ("a.txt", b"a", "text/plain")})

    response = await client.delete("/upload/missing.txt")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_repeated_metadata_fields_keep_every_value(client):
    response = await client.post(
        "/upload",
        files={"file": ("a.txt", b"a", "text/plain")},
        data={"tag": ["ferias", "praia"], "album": "2024"},
    )

    assert response.status_code == 201
    record = response.json()["data"]
    assert record["tag"] == ["ferias", "praia"]
    assert record["album"] == "2024"
