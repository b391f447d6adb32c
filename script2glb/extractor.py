"""
Mesh Extractor
Pulls vertex, normal and triangle arrays out of C# Unity script text
"""
import re
from typing import List, Optional, Tuple

from .models import MeshRecord, Vec3


# Signed decimal literal, optionally in exponent form
_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"


def _array_block(type_name: str, names: str) -> "re.Pattern[str]":
    """Outer pattern: `<type>[] <name> = new <type>[] { ... };` across lines"""
    return re.compile(
        rf"(?:{type_name}\s*\[\s*\]|var)\s+(?:{names})\s*=\s*"
        rf"new\s+{type_name}\s*\[\s*\d*\s*\]\s*\{{(.*?)\}}\s*;",
        re.DOTALL,
    )


VERTICES_BLOCK = _array_block("Vector3", "vertices")
NORMALS_BLOCK = _array_block("Vector3", "normals")
TRIANGLES_BLOCK = _array_block("int", "triangles|indices")

VECTOR3_CALL = re.compile(r"new\s+Vector3\s*\(")
VECTOR3 = re.compile(
    rf"new\s+Vector3\s*\(\s*({_NUMBER})[fF]?\s*,"
    rf"\s*({_NUMBER})[fF]?\s*,"
    rf"\s*({_NUMBER})[fF]?\s*\)"
)
INDEX = re.compile(r"\d+")


def _find_block(pattern: "re.Pattern[str]", source_text: str) -> Optional[str]:
    match = pattern.search(source_text)
    return match.group(1) if match else None


def _parse_vectors(block: Optional[str]) -> Tuple[List[Vec3], int]:
    """Return the Vector3 triples in `block` and the number of calls that did not parse"""
    if block is None:
        return [], 0

    vectors = [
        (float(m.group(1)), float(m.group(2)), float(m.group(3)))
        for m in VECTOR3.finditer(block)
    ]
    calls = len(VECTOR3_CALL.findall(block))
    return vectors, calls - len(vectors)


def _parse_indices(block: Optional[str]) -> List[int]:
    if block is None:
        return []
    return [int(m.group(0)) for m in INDEX.finditer(block)]


def extract(source_text: str) -> MeshRecord:
    """
    Extract mesh arrays from script source

    Never raises: a missing array comes back empty and the caller decides
    whether the record is usable.

    Args:
        source_text: Full text of the script

    Returns:
        MeshRecord with vertices, normals and indices in declaration order
    """
    vertices, bad_vertices = _parse_vectors(_find_block(VERTICES_BLOCK, source_text))
    normals, bad_normals = _parse_vectors(_find_block(NORMALS_BLOCK, source_text))
    indices = _parse_indices(_find_block(TRIANGLES_BLOCK, source_text))

    return MeshRecord(
        vertices=vertices,
        normals=normals,
        indices=indices,
        malformed_vertices=bad_vertices,
        malformed_normals=bad_normals,
    )
