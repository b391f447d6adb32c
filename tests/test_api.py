import json

from fastapi.testclient import TestClient

from script2glb.config import Settings
from script2glb.main import create_app


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "API is running"
    assert body["timestamp"]


def test_api_description(client):
    body = client.get("/api").json()

    assert "POST /api/upload" in body["endpoints"]


def test_upload_raw_text(client, unity_script, read_glb):
    response = client.post(
        "/api/upload",
        content=unity_script,
        headers={"Content-Type": "text/plain"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "model/gltf-binary"
    assert response.headers["content-disposition"] == 'attachment; filename="model.glb"'
    assert int(response.headers["content-length"]) == len(response.content)
    assert response.headers["x-vertex-count"] == "4"
    assert response.headers["x-has-normals"] == "true"
    assert read_glb(response.content)["total"] == len(response.content)


def test_upload_json(client, triangle_script, read_glb):
    response = client.post("/api/upload", json={"script": triangle_script})

    assert response.status_code == 200
    document = read_glb(response.content)["document"]
    assert document["accessors"][0]["count"] == 3


def test_upload_json_content_key(client, triangle_script):
    response = client.post("/api/upload", json={"content": triangle_script})

    assert response.status_code == 200


def test_upload_multipart_file(client, triangle_script):
    response = client.post(
        "/api/upload",
        files={"file": ("Triangle.cs", triangle_script.encode("utf-8"), "text/plain")},
    )

    assert response.status_code == 200
    assert response.content[:4] == b"glTF"


def test_upload_form_field(client, triangle_script):
    response = client.post("/api/upload", data={"script": triangle_script})

    assert response.status_code == 200


def test_empty_upload_is_rejected(client):
    response = client.post("/api/upload", content="   \n", headers={"Content-Type": "text/plain"})

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "No script content provided",
        "detail": "No script content provided",
    }


def test_invalid_json_is_rejected(client):
    response = client.post(
        "/api/upload",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_script_without_mesh_is_rejected(client):
    response = client.post("/api/upload", json={"script": "public class Empty {}"})

    assert response.status_code == 400
    assert "Vector3[] vertices" in response.json()["error"]


def test_invalid_mesh_is_unprocessable(client):
    script = """
        Vector3[] vertices = new Vector3[] { new Vector3(0, 0, 0) };
        int[] triangles = new int[] { 0, 0, 5 };
    """
    response = client.post("/api/upload", json={"script": script})

    assert response.status_code == 422
    assert response.json()["success"] is False


def test_upload_size_limit(tmp_path, triangle_script):
    client = TestClient(create_app(Settings(script_path=tmp_path / "x.cs", max_upload_size=16)))
    response = client.post("/api/upload", content=triangle_script)

    assert response.status_code == 413


def test_get_script(client, unity_script):
    body = client.get("/api/script").json()

    assert body["success"] is True
    assert body["content"] == unity_script
    assert body["metadata"]["size"] == len(unity_script.encode("utf-8"))


def test_get_script_chunk(client, unity_script):
    body = client.get("/api/script/chunk", params={"start": 6, "chunkSize": 11}).json()

    assert body["content"] == unity_script[6:17]
    assert body["start"] == 6
    assert body["end"] == 17
    assert body["totalSize"] == len(unity_script)
    assert body["hasMore"] is True


def test_get_script_chunk_end_is_capped(client, unity_script):
    body = client.get("/api/script/chunk", params={"start": 0, "end": 50, "chunkSize": 20}).json()

    assert body["end"] == 20
    assert body["content"] == unity_script[:20]


def test_get_script_chunk_to_end(client, unity_script):
    size = len(unity_script)
    body = client.get("/api/script/chunk", params={"start": size - 5}).json()

    assert body["end"] == size
    assert body["hasMore"] is False
    assert body["content"] == unity_script[-5:]


def test_get_script_metadata(client):
    body = client.get("/api/script/metadata").json()
    metadata = body["metadata"]

    assert metadata["fileName"] == "Triangle.cs"
    assert metadata["className"] == "Triangle"
    assert metadata["usingStatements"] == ["using UnityEngine;", "using System.Collections;"]
    assert metadata["firstLines"][0] == "using UnityEngine;"
    assert len(metadata["firstLines"]) == 10


def test_get_script_format(client):
    body = client.get("/api/script/format").json()
    structure = body["structure"]

    assert structure["namespace"] == "Shapes"
    assert structure["className"] == "Triangle"
    assert structure["methods"] == ["Start"]
    assert structure["variables"] == ["scale"]
    assert body["preview"].startswith("using UnityEngine;")
    assert body["fileInfo"]["size"] > 0


def test_missing_script_file(tmp_path):
    client = TestClient(create_app(Settings(script_path=tmp_path / "missing.cs")))

    for path in ("/api/script", "/api/script/chunk", "/api/script/metadata", "/api/script/format"):
        response = client.get(path)
        assert response.status_code == 404
        assert response.json()["error"] == "Script file not found"


def test_index_page(client, settings):
    assert client.get("/").status_code == 500

    settings.index_html_path.write_text("<html>upload</html>", encoding="utf-8")
    response = client.get("/")
    assert response.status_code == 200
    assert "upload" in response.text


def test_unknown_route(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_cors_preflight(client):
    response = client.options(
        "/api/upload",
        headers={
            "Origin": "http://example.com",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_get_script_with_invalid_utf8(tmp_path):
    path = tmp_path / "Latin1.cs"
    path.write_bytes(b"// caf\xe9\npublic class Latin1 {}\n")
    client = TestClient(create_app(Settings(script_path=path)))

    response = client.get("/api/script")

    assert response.status_code == 200
    assert response.json()["content"] == "// caf\ufffd\npublic class Latin1 {}\n"
