from dataclasses import dataclass, field
from typing import List, Optional

from .scanning.filesystem import classify


@dataclass
class PhotoRecord:
    """
    One managed (or scanned) media file as stored in the catalog.
    `path` is canonical and is the only identity used by mutations.
    """
    path: str
    name: str
    date_taken: int          # epoch seconds, never None once stored
    width: int = 0
    height: int = 0
    source_type: str = 'uploaded'   # scanned/uploaded
    is_favorite: bool = False
    created_at: Optional[int] = None

    @property
    def media_type(self) -> str:
        return classify(self.path)


@dataclass
class Album:
    id: int
    name: str
    created_at: int
    # Computed at query time, never stored
    count: int = 0
    cover_photo_path: Optional[str] = None


@dataclass
class ExtractedMetadata:
    timestamp: int
    width: int = 0
    height: int = 0
    timestamp_source: str = 'embedded'  # embedded/filename/mtime/now


@dataclass
class IngestFailure:
    path: str
    error: Exception

    @property
    def reason(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


@dataclass
class IngestResult:
    """Outcome of a batch: every input path lands in exactly one list."""
    records: List[PhotoRecord] = field(default_factory=list)
    failures: List[IngestFailure] = field(default_factory=list)
