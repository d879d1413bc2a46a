"""
Content streams — re-readable document content with memory→disk spillover.

A CachedStreamFactory hands out output streams (for writing new content) and
input streams (for reading it back any number of times).  Bytes are kept in
memory until either the per-stream limit or the factory-wide pool limit would
be exceeded; from then on the whole stream lives in a temp file owned by that
stream.  dispose() releases the memory share and deletes the temp file.

Usage::

    factory = CachedStreamFactory(max_memory_instance=1024, temp_dir=tmp)
    with factory.new_output_stream() as out:
        out.write(b"hello")
        stream = out.get_input_stream()
    stream.read()       # b"hello"
    stream.rewind()
    stream.read()       # b"hello" again
    stream.dispose()
"""

from __future__ import annotations

import io
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, BinaryIO, Iterator

from docimporter.core.config import GB, MB, ImporterSettings
from docimporter.core.logging import get_logger
from docimporter.pipeline.errors import StreamError

logger = get_logger(__name__)

COPY_CHUNK_SIZE = 64 * 1024
TEMP_FILE_PREFIX = "docimporter-"


class CachedStreamFactory:
    """Creates cached streams sharing one memory pool and temp directory."""

    def __init__(
        self,
        max_memory_instance: int = 100 * MB,
        max_memory_pool: int = 1 * GB,
        temp_dir: str | Path | None = None,
    ) -> None:
        self.max_memory_instance = max_memory_instance
        self.max_memory_pool = max_memory_pool
        self.temp_dir = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
        self._lock = threading.Lock()
        self._pool_used = 0

    @classmethod
    def from_settings(cls, settings: ImporterSettings) -> CachedStreamFactory:
        return cls(
            max_memory_instance=settings.MAX_MEMORY_INSTANCE,
            max_memory_pool=settings.MAX_MEMORY_POOL,
            temp_dir=settings.TEMP_DIR,
        )

    @property
    def pool_used(self) -> int:
        """Bytes currently held in memory by live streams of this factory."""
        return self._pool_used

    def new_output_stream(self) -> CachedOutputStream:
        return CachedOutputStream(_CacheBuffer(self))

    def new_input_stream(self, source: Any = None) -> CachedInputStream:
        """
        Cache *source* and return a stream positioned at its start.

        Accepts bytes-like objects, str (encoded as UTF-8), binary file
        objects, other CachedInputStreams (copied), or None for empty content.
        """
        out = self.new_output_stream()
        try:
            if source is None:
                pass
            elif isinstance(source, (bytes, bytearray, memoryview)):
                out.write(bytes(source))
            elif isinstance(source, str):
                out.write(source.encode("utf-8"))
            elif isinstance(source, CachedInputStream):
                source.rewind()
                _copy(source, out)
                source.rewind()
            elif hasattr(source, "read"):
                _copy(source, out)
            else:
                raise TypeError(
                    f"Unsupported content source type: {type(source).__name__}"
                )
        except OSError as exc:
            out.close()
            raise StreamError(f"Could not cache content: {exc}") from exc
        except BaseException:
            out.close()
            raise
        return out.get_input_stream()

    # ─── Memory pool accounting ────────────────────────

    def _reserve(self, held: int, extra: int) -> bool:
        """Reserve *extra* bytes for a stream already holding *held* bytes."""
        with self._lock:
            if held + extra > self.max_memory_instance:
                return False
            if self._pool_used + extra > self.max_memory_pool:
                return False
            self._pool_used += extra
            return True

    def _release(self, amount: int) -> None:
        if amount <= 0:
            return
        with self._lock:
            self._pool_used = max(0, self._pool_used - amount)


def _copy(source: BinaryIO | CachedInputStream, out: CachedOutputStream) -> None:
    while True:
        chunk = source.read(COPY_CHUNK_SIZE)
        if not chunk:
            break
        out.write(chunk)


class _CacheBuffer:
    """Storage shared by an output stream and the input stream it becomes."""

    def __init__(self, factory: CachedStreamFactory) -> None:
        self.factory = factory
        self.size = 0
        self.path: Path | None = None
        self.disposed = False
        self._memory: io.BytesIO | None = io.BytesIO()
        self._memory_held = 0
        self._file: BinaryIO | None = None

    @property
    def in_memory(self) -> bool:
        return self._file is None

    @property
    def handle(self) -> BinaryIO:
        if self.disposed:
            raise StreamError("Content stream has been disposed.")
        return self._memory if self._file is None else self._file

    def write(self, data: bytes) -> int:
        if self.disposed:
            raise StreamError("Cannot write to a disposed content stream.")
        n = len(data)
        if not n:
            return 0
        if self._file is None and self.factory._reserve(self._memory_held, n):
            self._memory.write(data)
            self._memory_held += n
        else:
            if self._file is None:
                self._spill()
            try:
                self._file.write(data)
            except OSError as exc:
                raise StreamError(
                    f"Could not write content to temp file {self.path}: {exc}"
                ) from exc
        self.size += n
        return n

    def _spill(self) -> None:
        try:
            self.factory.temp_dir.mkdir(parents=True, exist_ok=True)
            fd, name = tempfile.mkstemp(
                prefix=TEMP_FILE_PREFIX, suffix=".tmp", dir=self.factory.temp_dir
            )
            self.path = Path(name)
            self._file = os.fdopen(fd, "w+b")
            self._file.write(self._memory.getvalue())
        except OSError as exc:
            raise StreamError(
                f"Could not allocate temp file in {self.factory.temp_dir}: {exc}"
            ) from exc
        logger.debug(
            "Content spilled to disk",
            path=str(self.path),
            memory_bytes=self._memory_held,
        )
        self._memory.close()
        self._memory = None
        self.factory._release(self._memory_held)
        self._memory_held = 0

    def finish_writing(self) -> None:
        if self._file is not None:
            try:
                self._file.flush()
            except OSError as exc:
                raise StreamError(f"Could not flush temp file {self.path}: {exc}") from exc
        self.handle.seek(0)

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        if self._memory is not None:
            self._memory.close()
            self._memory = None
        self.factory._release(self._memory_held)
        self._memory_held = 0
        if self._file is not None:
            self._file.close()
            self._file = None
        if self.path is not None:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
            except OSError as exc:
                logger.warning(
                    "Could not delete temp file", path=str(self.path), error=str(exc)
                )


class CachedOutputStream:
    """Write-once cache that becomes a CachedInputStream when done."""

    def __init__(self, buffer: _CacheBuffer) -> None:
        self._buffer = buffer
        self._closed = False
        self._handed_over = False

    def write(self, data: bytes) -> int:
        if self._closed:
            raise StreamError("Cannot write to a closed output stream.")
        return self._buffer.write(data)

    def write_text(self, text: str, encoding: str = "utf-8") -> int:
        return self.write(text.encode(encoding))

    def writable(self) -> bool:
        return not self._closed

    def flush(self) -> None:
        pass

    @property
    def size(self) -> int:
        return self._buffer.size

    @property
    def is_cache_empty(self) -> bool:
        return self._buffer.size == 0

    def get_input_stream(self) -> CachedInputStream:
        """Hand the written bytes over to a new input stream."""
        if self._handed_over:
            raise StreamError("Output stream content was already handed over.")
        if self._closed:
            raise StreamError("Output stream is closed.")
        self._buffer.finish_writing()
        self._handed_over = True
        self._closed = True
        return CachedInputStream(self._buffer)

    def close(self) -> None:
        """Close the stream, disposing its content unless handed over."""
        if not self._handed_over:
            self._buffer.dispose()
        self._closed = True

    def __enter__(self) -> CachedOutputStream:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class CachedInputStream:
    """Re-readable content.  Always readable again after rewind()."""

    def __init__(self, buffer: _CacheBuffer) -> None:
        self._buffer = buffer

    @property
    def stream_factory(self) -> CachedStreamFactory:
        return self._buffer.factory

    @property
    def size(self) -> int:
        return self._buffer.size

    @property
    def is_empty(self) -> bool:
        return self._buffer.size == 0

    @property
    def is_in_memory(self) -> bool:
        return self._buffer.in_memory

    @property
    def is_disposed(self) -> bool:
        return self._buffer.disposed

    @property
    def temp_path(self) -> Path | None:
        """Backing temp file, or None while the content fits in memory."""
        return self._buffer.path

    def readable(self) -> bool:
        return not self._buffer.disposed

    def seekable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        try:
            return self._buffer.handle.read(size)
        except OSError as exc:
            raise StreamError(f"Could not read content: {exc}") from exc

    def readline(self, size: int = -1) -> bytes:
        return self._buffer.handle.readline(size)

    def readinto(self, b: bytearray) -> int:
        return self._buffer.handle.readinto(b)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._buffer.handle.seek(offset, whence)

    def tell(self) -> int:
        return self._buffer.handle.tell()

    def rewind(self) -> None:
        """Move back to the first byte."""
        self._buffer.handle.seek(0)

    def read_all(self) -> bytes:
        """Rewind and return the whole content."""
        self.rewind()
        data = self.read()
        self.rewind()
        return data

    def read_text(self, encoding: str | None = None, errors: str = "replace") -> str:
        return self.read_all().decode(encoding or "utf-8", errors)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._buffer.handle)

    def dispose(self) -> None:
        """Release memory and delete any temp file.  Safe to call twice."""
        self._buffer.dispose()

    def close(self) -> None:
        self.dispose()

    def __enter__(self) -> CachedInputStream:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()

    def __repr__(self) -> str:
        where = "memory" if self.is_in_memory else str(self.temp_path)
        state = ", disposed" if self.is_disposed else ""
        return f"CachedInputStream(size={self.size}, in={where}{state})"
