"""
GLB Encoder
Packs a MeshRecord into a binary glTF 2.0 container
"""
import json
import logging
import struct
from typing import Any, Dict, List, NamedTuple

import numpy as np

from .errors import EncodingFailure, InvalidMesh, NoMeshFound
from .models import MeshRecord

logger = logging.getLogger(__name__)

GENERATOR = "Unity Script to GLB Converter"

GLB_MAGIC = 0x46546C67          # "glTF"
GLB_VERSION = 2
CHUNK_JSON = 0x4E4F534A         # "JSON"
CHUNK_BIN = 0x004E4942          # "BIN\0"

HEADER_SIZE = 12
CHUNK_HEADER_SIZE = 8

COMPONENT_FLOAT = 5126
COMPONENT_UNSIGNED_SHORT = 5123

MAX_INDEX = 0xFFFF


class Segment(NamedTuple):
    """One bufferView worth of packed data"""
    data: bytes
    byte_offset: int


def padding_for(length: int) -> int:
    """Bytes needed to bring `length` up to a 4-byte boundary"""
    return (4 - length % 4) % 4


def validate(mesh: MeshRecord) -> None:
    """
    Check encoder preconditions

    Raises:
        NoMeshFound: if vertices or triangles are missing
        InvalidMesh: if the record cannot be turned into a triangle list
    """
    if not mesh.vertices or not mesh.indices:
        raise NoMeshFound(
            "Could not extract mesh data from script. "
            "Make sure it contains Vector3[] vertices and int[] triangles arrays."
        )

    if mesh.malformed_vertices:
        raise InvalidMesh(
            f"{mesh.malformed_vertices} Vector3 vertex value(s) could not be parsed as numbers"
        )

    # Literals beyond float32 range overflow to inf
    with np.errstate(over="ignore"):
        if not np.isfinite(np.asarray(mesh.vertices, dtype="<f4")).all():
            raise InvalidMesh("Vertex positions must be finite 32-bit floats")

        if mesh.has_normals and not np.isfinite(np.asarray(mesh.normals, dtype="<f4")).all():
            raise InvalidMesh("Normals must be finite 32-bit floats")

    if len(mesh.indices) % 3 != 0:
        raise InvalidMesh(
            f"Triangle index count {len(mesh.indices)} is not a multiple of 3"
        )

    vertex_count = len(mesh.vertices)
    for position, index in enumerate(mesh.indices):
        if index < 0 or index > MAX_INDEX:
            raise InvalidMesh(
                f"Index {index} at position {position} does not fit in 16 bits"
            )
        if index >= vertex_count:
            raise InvalidMesh(
                f"Index {index} at position {position} is out of range "
                f"for {vertex_count} vertices"
            )


def _pack_buffers(mesh: MeshRecord, with_normals: bool):
    """Flatten the arrays into little-endian segments A (+B) (+C)"""
    positions = np.asarray(mesh.vertices, dtype="<f4").reshape(-1, 3)
    indices = np.asarray(mesh.indices, dtype="<u2")

    segments: List[Segment] = []
    offset = 0
    arrays = [positions.tobytes(), indices.tobytes()]
    if with_normals:
        normals = np.asarray(mesh.normals, dtype="<f4").reshape(-1, 3)
        arrays.append(normals.tobytes())

    for data in arrays:
        segments.append(Segment(data=data, byte_offset=offset))
        offset += len(data)

    return positions, segments


def build_document(mesh: MeshRecord, positions: np.ndarray,
                   segments: List[Segment], with_normals: bool) -> Dict[str, Any]:
    """Build the glTF JSON document describing the packed segments"""
    attributes = {"POSITION": 0}
    accessors: List[Dict[str, Any]] = [
        {
            "bufferView": 0,
            "componentType": COMPONENT_FLOAT,
            "count": len(mesh.vertices),
            "type": "VEC3",
            "min": positions.min(axis=0).tolist(),
            "max": positions.max(axis=0).tolist(),
        },
        {
            "bufferView": 1,
            "componentType": COMPONENT_UNSIGNED_SHORT,
            "count": len(mesh.indices),
            "type": "SCALAR",
        },
    ]

    if with_normals:
        attributes["NORMAL"] = 2
        accessors.append({
            "bufferView": 2,
            "componentType": COMPONENT_FLOAT,
            "count": len(mesh.normals),
            "type": "VEC3",
        })

    return {
        "asset": {
            "version": "2.0",
            "generator": GENERATOR,
        },
        "scene": 0,
        "scenes": [{"nodes": [0]}],
        "nodes": [{"mesh": 0}],
        "meshes": [{
            "primitives": [{
                "attributes": attributes,
                "indices": 1,
            }]
        }],
        "accessors": accessors,
        "bufferViews": [
            {
                "buffer": 0,
                "byteOffset": segment.byte_offset,
                "byteLength": len(segment.data),
            }
            for segment in segments
        ],
        "buffers": [{
            "byteLength": sum(len(segment.data) for segment in segments),
        }],
    }


def assemble(document: Dict[str, Any], binary: bytes) -> bytes:
    """
    Write the GLB header and the JSON and BIN chunks

    The JSON chunk is padded with spaces and the BIN chunk with zeros.
    """
    try:
        json_text = json.dumps(document, separators=(",", ":"), allow_nan=False)
    except ValueError as e:
        raise EncodingFailure(f"glTF document is not valid JSON: {e}") from e
    json_bytes = json_text.encode("utf-8")
    json_bytes += b" " * padding_for(len(json_bytes))
    bin_bytes = binary + b"\x00" * padding_for(len(binary))

    total_length = (HEADER_SIZE + CHUNK_HEADER_SIZE + len(json_bytes)
                    + CHUNK_HEADER_SIZE + len(bin_bytes))

    glb = b"".join([
        struct.pack("<III", GLB_MAGIC, GLB_VERSION, total_length),
        struct.pack("<II", len(json_bytes), CHUNK_JSON),
        json_bytes,
        struct.pack("<II", len(bin_bytes), CHUNK_BIN),
        bin_bytes,
    ])

    if len(glb) != total_length or total_length % 4 != 0:
        raise EncodingFailure(
            f"GLB length mismatch: header says {total_length}, wrote {len(glb)}"
        )
    return glb


def encode(mesh: MeshRecord) -> bytes:
    """
    Convert a mesh record to a GLB file

    Args:
        mesh: Extracted mesh arrays

    Returns:
        Complete GLB file contents

    Raises:
        NoMeshFound: if vertices or indices are missing
        InvalidMesh: if vertices or indices are inconsistent
        EncodingFailure: if the assembled buffers disagree with their headers
    """
    validate(mesh)

    with_normals = mesh.has_normals
    if (mesh.normals or mesh.malformed_normals) and not with_normals:
        logger.warning(
            f"Dropping normals: {len(mesh.normals)} normals "
            f"({mesh.malformed_normals} malformed) for {len(mesh.vertices)} vertices"
        )

    positions, segments = _pack_buffers(mesh, with_normals)

    expected = [len(mesh.vertices) * 12, len(mesh.indices) * 2]
    if with_normals:
        expected.append(len(mesh.normals) * 12)
    if [len(segment.data) for segment in segments] != expected:
        raise EncodingFailure(
            f"Segment sizes {[len(s.data) for s in segments]} do not match {expected}"
        )

    document = build_document(mesh, positions, segments, with_normals)
    binary = b"".join(segment.data for segment in segments)
    return assemble(document, binary)
