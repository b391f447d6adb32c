"""
Pydantic models for mesh data and API responses
"""
from pydantic import BaseModel, ConfigDict
from typing import List, Optional, Tuple


Vec3 = Tuple[float, float, float]


class MeshRecord(BaseModel):
    """Mesh arrays extracted from a script"""
    model_config = ConfigDict(frozen=True)

    vertices: Tuple[Vec3, ...] = ()
    normals: Tuple[Vec3, ...] = ()   # Same indexing as vertices, may be empty
    indices: Tuple[int, ...] = ()    # Triangle list, 3 per face
    # Vector3 calls whose arguments did not parse
    malformed_vertices: int = 0
    malformed_normals: int = 0

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    @property
    def has_normals(self) -> bool:
        return (
            len(self.normals) > 0
            and len(self.normals) == len(self.vertices)
            and self.malformed_normals == 0
        )


class ConversionMetadata(BaseModel):
    """Metadata about the conversion"""
    vertexCount: int
    triangleCount: int
    indexCount: int
    hasNormals: bool
    byteLength: int


class FileStats(BaseModel):
    size: int
    created: str
    modified: str


class ScriptResponse(BaseModel):
    """Response from /api/script"""
    success: bool = True
    content: str
    metadata: Optional[FileStats] = None


class ScriptChunkResponse(BaseModel):
    """Response from /api/script/chunk"""
    success: bool = True
    content: str
    start: int
    end: int
    totalSize: int
    hasMore: bool


class ScriptMetadata(FileStats):
    fileName: str
    firstLines: List[str]
    estimatedLines: int
    className: Optional[str] = None
    usingStatements: List[str] = []


class ScriptMetadataResponse(BaseModel):
    """Response from /api/script/metadata"""
    success: bool = True
    metadata: ScriptMetadata


class ScriptStructure(BaseModel):
    usingStatements: List[str] = []
    namespace: Optional[str] = None
    className: Optional[str] = None
    methods: List[str] = []
    variables: List[str] = []


class ScriptFormatResponse(BaseModel):
    """Response from /api/script/format"""
    success: bool = True
    structure: ScriptStructure
    fileInfo: Optional[FileStats] = None
    preview: str


class HealthResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: str


class ErrorResponse(BaseModel):
    """Error response"""
    success: bool = False
    error: str
    detail: Optional[str] = None
