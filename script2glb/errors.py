"""
Conversion error taxonomy
"""
from enum import Enum

from pydantic import BaseModel


class ConversionErrorKind(str, Enum):
    NO_MESH_FOUND = "no_mesh_found"
    INVALID_MESH = "invalid_mesh"
    ENCODING_FAILURE = "encoding_failure"


class ConversionError(BaseModel):
    """Error value returned by the conversion pipeline"""
    kind: ConversionErrorKind
    message: str


class InvalidMesh(ValueError):
    """Mesh arrays cannot be encoded as a triangle list"""


class NoMeshFound(InvalidMesh):
    """Script holds no usable vertex or triangle array"""


class EncodingFailure(RuntimeError):
    """Internal layout check failed while assembling the GLB"""
