import json
import struct

import numpy as np
import pytest
from fastapi.testclient import TestClient

from script2glb.config import Settings
from script2glb.main import create_app


TRIANGLE_SCRIPT = """\
Vector3[] vertices = new Vector3[]{ new Vector3(0,0,0), new Vector3(1,0,0), new Vector3(0,1,0) };
int[] triangles = new int[]{0,1,2};
"""

UNITY_SCRIPT = """\
using UnityEngine;
using System.Collections;

namespace Shapes
{
    public class Triangle : MonoBehaviour
    {
        public float scale = 1.0f;

        public void Start()
        {
            Mesh mesh = new Mesh();

            Vector3[] vertices = new Vector3[]
            {
                new Vector3(0f, 0f, 0f),
                new Vector3(1.0f, 0f, 0f),
                new Vector3(0f, 1.0f, 0f),
                new Vector3(1.0f, 1.0f, 0f)
            };

            Vector3[] normals = new Vector3[]
            {
                new Vector3(0f, 0f, -1f),
                new Vector3(0f, 0f, -1f),
                new Vector3(0f, 0f, -1f),
                new Vector3(0f, 0f, -1f)
            };

            int[] triangles = new int[]
            {
                0, 2, 1,
                2, 3, 1
            };

            mesh.vertices = vertices;
            mesh.normals = normals;
            mesh.triangles = triangles;
        }
    }
}
"""


def parse_glb(data: bytes):
    """Split a GLB file into (header, json document, json chunk, bin chunk)"""
    magic, version, total = struct.unpack_from("<III", data, 0)
    json_length, json_type = struct.unpack_from("<II", data, 12)
    json_chunk = data[20:20 + json_length]
    bin_offset = 20 + json_length
    bin_length, bin_type = struct.unpack_from("<II", data, bin_offset)
    bin_chunk = data[bin_offset + 8:bin_offset + 8 + bin_length]
    return {
        "magic": magic,
        "version": version,
        "total": total,
        "json_length": json_length,
        "json_type": json_type,
        "bin_length": bin_length,
        "bin_type": bin_type,
        "document": json.loads(json_chunk),
        "json_chunk": json_chunk,
        "bin_chunk": bin_chunk,
    }


def view_array(glb, view_index: int, dtype: str) -> np.ndarray:
    view = glb["document"]["bufferViews"][view_index]
    start = view["byteOffset"]
    return np.frombuffer(glb["bin_chunk"][start:start + view["byteLength"]], dtype=dtype)


@pytest.fixture
def triangle_script():
    return TRIANGLE_SCRIPT


@pytest.fixture
def unity_script():
    return UNITY_SCRIPT


@pytest.fixture
def read_glb():
    return parse_glb


@pytest.fixture
def read_view():
    return view_array


@pytest.fixture
def script_file(tmp_path):
    path = tmp_path / "Triangle.cs"
    path.write_text(UNITY_SCRIPT, encoding="utf-8")
    return path


@pytest.fixture
def settings(tmp_path, script_file):
    return Settings(
        script_path=script_file,
        index_html_path=tmp_path / "index.html",
    )


@pytest.fixture
def client(settings):
    return TestClient(create_app(settings))
