"""Data models returned by listing operations.

Listings are returned one segment at a time. A segment carries the items
of one page plus the token needed to request the next page; the facade
never follows that token on its own.
"""

from datetime import datetime
from typing import Dict, Generic, List, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ContainerDescriptor(BaseModel):
    """A container in the storage account."""
    name: str
    last_modified: datetime | None = None
    etag: str | None = None
    metadata: Dict[str, str] = Field(default_factory=dict)


class BlobDescriptor(BaseModel):
    """A blob within a container."""
    name: str                          # Path within the container
    container: str
    size: int = 0                      # Content length in bytes
    last_modified: datetime | None = None
    etag: str | None = None
    content_type: str | None = None


class ListSegment(BaseModel, Generic[T]):
    """One page of listing results."""
    items: List[T] = Field(default_factory=list)
    continuation_token: str | None = None  # None when the listing is exhausted

    @property
    def has_more(self) -> bool:
        return self.continuation_token is not None


ContainerSegment = ListSegment[ContainerDescriptor]
BlobSegment = ListSegment[BlobDescriptor]
