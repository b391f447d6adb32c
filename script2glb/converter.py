"""
Script Converter
Runs extraction and encoding and reports the outcome as a result value
"""
import logging
from typing import Optional

from pydantic import BaseModel

from .encoder import encode
from .errors import (
    ConversionError,
    ConversionErrorKind,
    EncodingFailure,
    InvalidMesh,
    NoMeshFound,
)
from .extractor import extract
from .models import ConversionMetadata, MeshRecord

logger = logging.getLogger(__name__)


class ConversionResult(BaseModel):
    """Outcome of one conversion: either `glb` or `error` is set"""
    glb: Optional[bytes] = None
    error: Optional[ConversionError] = None
    mesh: Optional[MeshRecord] = None
    metadata: Optional[ConversionMetadata] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _failure(kind: ConversionErrorKind, message: str,
             mesh: Optional[MeshRecord] = None) -> ConversionResult:
    return ConversionResult(error=ConversionError(kind=kind, message=message), mesh=mesh)


def convert_mesh(mesh: MeshRecord) -> ConversionResult:
    """
    Encode an already extracted mesh

    Args:
        mesh: Extracted mesh arrays

    Returns:
        ConversionResult holding the GLB bytes or the reason it was rejected
    """
    try:
        glb = encode(mesh)
    except NoMeshFound as e:
        logger.warning(
            f"No mesh found: {mesh.vertex_count} vertices, {len(mesh.indices)} indices"
        )
        return _failure(ConversionErrorKind.NO_MESH_FOUND, str(e), mesh)
    except InvalidMesh as e:
        logger.warning(f"Invalid mesh: {e}")
        return _failure(ConversionErrorKind.INVALID_MESH, str(e), mesh)
    except EncodingFailure as e:
        logger.exception(
            f"Encoding failed for {mesh.vertex_count} vertices, "
            f"{len(mesh.indices)} indices, {len(mesh.normals)} normals: {e}"
        )
        return _failure(ConversionErrorKind.ENCODING_FAILURE, str(e), mesh)
    except Exception as e:
        logger.exception(f"Unexpected encoding error: {e}")
        return _failure(ConversionErrorKind.ENCODING_FAILURE, f"Conversion failed: {e}", mesh)

    metadata = ConversionMetadata(
        vertexCount=mesh.vertex_count,
        triangleCount=mesh.triangle_count,
        indexCount=len(mesh.indices),
        hasNormals=mesh.has_normals,
        byteLength=len(glb),
    )
    return ConversionResult(glb=glb, mesh=mesh, metadata=metadata)


def convert_script(source_text: str) -> ConversionResult:
    """
    Convenience function to convert script text to GLB

    Args:
        source_text: C# script content

    Returns:
        ConversionResult; never raises
    """
    logger.info(f"Converting script ({len(source_text)} characters)")

    result = convert_mesh(extract(source_text))

    if result.ok:
        logger.info(
            f"Conversion successful: {result.metadata.vertexCount} vertices, "
            f"{result.metadata.triangleCount} triangles"
        )
    return result
