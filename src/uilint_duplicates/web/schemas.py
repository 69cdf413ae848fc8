from pydantic import BaseModel, Field
from typing import Optional, List


class ProjectRequest(BaseModel):
    path: str


class IndexRequest(ProjectRequest):
    force: bool = False


class IndexStartedResponse(BaseModel):
    message: str
    path: str


class IndexStatsResponse(BaseModel):
    hasIndex: bool
    totalFiles: int
    totalChunks: int
    totalVectors: int
    dimension: int
    indexSizeBytes: int
    embeddingModel: Optional[str] = None
    lastUpdated: Optional[str] = None


class DuplicatesRequest(ProjectRequest):
    threshold: Optional[float] = Field(default=None, ge=-1.0, le=1.0)
    min_group_size: Optional[int] = Field(default=None, ge=2)
    kind: Optional[str] = None
    exclude_paths: List[str] = []


class ChunkResult(BaseModel):
    id: str
    filePath: str
    startLine: int
    endLine: int
    name: Optional[str]
    kind: str
    score: float


class DuplicateGroupResult(BaseModel):
    members: List[ChunkResult]
    avgSimilarity: float
    kind: str


class DuplicatesResponse(BaseModel):
    groups: List[DuplicateGroupResult]


class SearchRequest(ProjectRequest):
    query: str
    top_k: int = Field(default=10, ge=1)
    threshold: float = Field(default=0.5, ge=-1.0, le=1.0)


class SimilarRequest(ProjectRequest):
    file_path: str
    line: int = Field(ge=1)
    top_k: int = Field(default=10, ge=1)
    threshold: float = Field(default=0.5, ge=-1.0, le=1.0)


class SearchResponse(BaseModel):
    results: List[ChunkResult]


class LintRequest(ProjectRequest):
    # Files or directories, relative to the project; the whole project when empty
    files: List[str] = []
    threshold: Optional[float] = Field(default=None, ge=-1.0, le=1.0)


class FindingResult(BaseModel):
    file_path: str
    line: int
    kind: str
    name: str
    similarity: int
    other_name: str
    other_location: str
    chunk_id: str
    match_id: str
    message: str


class LintResponse(BaseModel):
    findings: List[FindingResult]
