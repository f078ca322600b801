"""Chunked upload session state for the SharePoint REST API.

A chunked upload runs three phases against one server-side session,
keyed by a client-chosen upload id:
- StartUploadFile: create a zero-byte stub and open the session
- ContinueUpload: append each chunk at its starting byte offset
- FinishUpload: resend the last chunk at its starting offset, finalize
  the file and release the session

Chunks go out strictly in order; the service tracks a single offset and
rejects gaps or overlaps. An interrupted upload leaves an orphaned session
on the server that nothing here resumes or cleans up.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from uuid import uuid4

DEFAULT_CHUNK_SIZE = 100 * 1024 * 1024  # 100MB


def plan_chunks(total_size: int, chunk_size: int) -> Iterator[tuple[int, int]]:
    """Yield (offset, length) for each chunk of a buffer.

    Args:
        total_size: Buffer length in bytes
        chunk_size: Maximum chunk length in bytes

    Yields:
        Starting offset and length of each chunk, in order

    Raises:
        ValueError: If chunk_size is not positive
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    for offset in range(0, total_size, chunk_size):
        yield offset, min(chunk_size, total_size - offset)


@dataclass
class UploadSession:
    """Local bookkeeping for one chunked upload call.

    Attributes:
        total_size: Length of the full buffer
        upload_id: Random session id sent with every phase
        offset: Bytes acknowledged so far
        last_chunk_size: Length of the most recently sent chunk
    """

    total_size: int
    upload_id: str = field(default_factory=lambda: str(uuid4()))
    offset: int = 0
    last_chunk_size: int = 0

    def advance(self, length: int) -> None:
        """Record that a chunk of the given length was accepted."""
        self.offset += length
        self.last_chunk_size = length

    @property
    def finish_offset(self) -> int:
        """Offset sent with FinishUpload: where the last chunk began."""
        return self.total_size - self.last_chunk_size

    @property
    def percent_complete(self) -> float:
        """Share of the buffer sent so far, as a percentage."""
        if self.total_size == 0:
            return 100.0
        return round(self.offset / self.total_size * 100, 1)
