"""Row-streaming writer for 1-bit grayscale PNG images.

Bitmap output is written one scanline at a time as the automaton produces it,
so the image is never held in memory. Image.fromarray(...).save needs the whole
array up front, hence this small chunk writer on top of zlib.
"""

import struct
import zlib

from .errors import SinkError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
IDAT_CHUNK_SIZE = 64 * 1024


def write_chunk(stream, chunk_type: bytes, data: bytes = b""):
    """Write one length-prefixed, CRC-terminated PNG chunk."""
    crc = zlib.crc32(chunk_type + data) & 0xFFFFFFFF
    stream.write(struct.pack(">I", len(data)))
    stream.write(chunk_type)
    stream.write(data)
    stream.write(struct.pack(">I", crc))


class PngStreamWriter:
    """Writes scanlines to a binary stream as they arrive, never holding the full image."""

    def __init__(self, stream, width: int, height: int, level: int = 9):
        if width < 1 or height < 1:
            raise ValueError(f"Image must be at least 1x1, got {width}x{height}")
        self.stream = stream
        self.width = width
        self.height = height
        self.row_bytes = (width + 7) // 8
        self.rows_written = 0
        self._compressor = zlib.compressobj(level)
        self._pending = []
        self._pending_size = 0
        self._header_written = False
        self._finished = False

    def write_header(self):
        self.stream.write(PNG_SIGNATURE)
        # bit depth 1, color type 0 (grayscale), deflate, adaptive filtering, no interlace
        ihdr = struct.pack(">IIBBBBB", self.width, self.height, 1, 0, 0, 0, 0)
        write_chunk(self.stream, b"IHDR", ihdr)
        self._header_written = True

    def write_row(self, packed: bytes):
        """Append one packed scanline (MSB-first, padded to a whole byte)."""
        if self._finished:
            raise SinkError("PNG stream already finished", self.rows_written)
        if len(packed) != self.row_bytes:
            raise SinkError(
                f"Scanline has {len(packed)} bytes, expected {self.row_bytes}", self.rows_written
            )
        if self.rows_written >= self.height:
            raise SinkError(f"Image height is {self.height}, got an extra row", self.rows_written)
        if not self._header_written:
            self.write_header()

        # Filter type 0 (None) precedes every scanline
        self._buffer(self._compressor.compress(b"\x00" + bytes(packed)))
        self.rows_written += 1
        if self._pending_size >= IDAT_CHUNK_SIZE:
            self._flush_idat()

    def finish(self):
        """Flush the compressor and close the image with IEND."""
        if self._finished:
            return
        if self.rows_written != self.height:
            raise SinkError(f"Image height is {self.height}, only {self.rows_written} rows written")
        self._buffer(self._compressor.flush())
        self._flush_idat()
        write_chunk(self.stream, b"IEND")
        self._finished = True
        if hasattr(self.stream, "flush"):
            self.stream.flush()

    def _buffer(self, data: bytes):
        if data:
            self._pending.append(data)
            self._pending_size += len(data)

    def _flush_idat(self):
        if self._pending:
            write_chunk(self.stream, b"IDAT", b"".join(self._pending))
            self._pending = []
            self._pending_size = 0
