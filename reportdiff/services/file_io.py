"""
File I/O service for loading and saving report text.

Reads never raise for the usual failure modes (missing, unreadable,
binary or oversize files); they return a ReadResult carrying the error
message so the UI can show it. Writes go through a temporary file in
the target directory and replace the target in one move.
"""

from __future__ import annotations

import codecs
import os
import shutil
import tempfile
import logging
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Optional

import chardet


DEFAULT_MAX_TEXT_SIZE = 20 * 1024 * 1024

# Longest BOM first so UTF-32 LE is not mistaken for UTF-16 LE
BOM_ENCODINGS = (
    (codecs.BOM_UTF32_LE, 'utf-32-le'),
    (codecs.BOM_UTF32_BE, 'utf-32-be'),
    (codecs.BOM_UTF8, 'utf-8'),
    (codecs.BOM_UTF16_LE, 'utf-16-le'),
    (codecs.BOM_UTF16_BE, 'utf-16-be'),
)
BOM_BY_ENCODING = {encoding: bom for bom, encoding in BOM_ENCODINGS}

# Magic numbers of formats that are never plain-text reports
BINARY_SIGNATURES = (
    b'%PDF',
    b'PK\x03\x04',         # zip containers (docx, xlsx, odt)
    b'\xd0\xcf\x11\xe0',   # legacy Office documents
    b'\x89PNG',
    b'\xff\xd8\xff',
    b'GIF8',
    b'\x1f\x8b',
    b'\x7fELF',
)


class LineEnding(Enum):
    """Line ending style of a text."""
    LF = auto()
    CRLF = auto()
    CR = auto()
    MIXED = auto()
    NONE = auto()    # single line


@dataclass
class FileContent:
    """Decoded report text with the metadata needed to write it back."""
    content: str
    encoding: str
    line_ending: LineEnding
    bom: bool
    size: int

    @property
    def line_count(self) -> int:
        return len(self.content.splitlines())


@dataclass
class ReadResult:
    success: bool
    content: Optional[FileContent] = None
    error: Optional[str] = None
    is_binary: bool = False


@dataclass
class WriteResult:
    success: bool
    bytes_written: int = 0
    error: Optional[str] = None


def split_bom(raw: bytes) -> tuple[bytes, Optional[str]]:
    """Strip a leading byte order mark; returns the rest and the BOM's encoding."""
    for bom, encoding in BOM_ENCODINGS:
        if raw.startswith(bom):
            return raw[len(bom):], encoding
    return raw, None


def detect_line_ending(content: str) -> LineEnding:
    """Classify the line endings used in a text."""
    crlf = content.count('\r\n')
    lf = content.count('\n') - crlf
    cr = content.count('\r') - crlf

    present = [ending for ending, count in
               ((LineEnding.CRLF, crlf), (LineEnding.LF, lf), (LineEnding.CR, cr)) if count]
    if not present:
        return LineEnding.NONE
    if len(present) > 1:
        return LineEnding.MIXED
    return present[0]


class FileIOService:
    """Reads and writes report text files."""

    def __init__(
        self,
        default_encoding: str = 'utf-8',
        fallback_encoding: str = 'latin-1',
        binary_check_size: int = 8192,
        min_confidence: float = 0.7
    ):
        self.default_encoding = default_encoding
        self.fallback_encoding = fallback_encoding
        self.binary_check_size = binary_check_size
        self.min_confidence = min_confidence

    def read_file(
        self,
        path: Path | str,
        encoding: Optional[str] = None,
        max_text_size: int = DEFAULT_MAX_TEXT_SIZE
    ) -> ReadResult:
        """
        Read a report, detecting its encoding unless one is forced.

        Args:
            path: File to read
            encoding: Encoding to use instead of detection
            max_text_size: Files larger than this (in bytes) are refused

        Returns:
            ReadResult with the decoded content or an error message
        """
        path = Path(path)

        if not path.exists():
            return ReadResult(success=False, error=f"File not found: {path}")
        if not path.is_file():
            return ReadResult(success=False, error=f"Not a file: {path}")

        try:
            size = path.stat().st_size
            if size > max_text_size:
                return ReadResult(
                    success=False,
                    error=f"File too large to compare: {path.name} is {size / (1024 * 1024):.1f} MB, "
                          f"the limit is {max_text_size / (1024 * 1024):.1f} MB"
                )
            raw = path.read_bytes()
        except PermissionError:
            logging.error(f"FileIOService - Permission denied reading {path}")
            return ReadResult(success=False, error=f"Permission denied: {path}")
        except OSError as e:
            logging.error(f"FileIOService - Failed to read {path}: {e}")
            return ReadResult(success=False, error=f"Could not read {path}: {e}")

        body, bom_encoding = split_bom(raw)
        if bom_encoding is None and self._is_binary(raw[:self.binary_check_size]):
            return ReadResult(success=False, is_binary=True, error=f"Not a text file: {path}")

        content, used_encoding = self._decode(body, encoding or bom_encoding, path)
        logging.debug(f"FileIOService - Read {path} ({len(raw)} bytes, {used_encoding})")

        return ReadResult(
            success=True,
            content=FileContent(
                content=content,
                encoding=used_encoding,
                line_ending=detect_line_ending(content),
                bom=bom_encoding is not None,
                size=len(raw),
            )
        )

    def write_file(
        self,
        path: Path | str,
        content: str,
        encoding: str = 'utf-8',
        atomic: bool = True,
        create_backup: bool = False,
        bom: bool = False
    ) -> WriteResult:
        """
        Write report text; line endings are written as given.

        Args:
            path: Target file (parent directories are created)
            content: Text to write
            encoding: Target encoding
            atomic: Write a temporary file and move it over the target
            create_backup: Copy an existing target to ``<name>.bak`` first
            bom: Start the file with the byte order mark of ``encoding``

        Returns:
            WriteResult with the number of bytes written or an error message
        """
        path = Path(path)

        try:
            data = content.encode(encoding)
            if bom:
                data = BOM_BY_ENCODING.get(codecs.lookup(encoding).name, b'') + data
            path.parent.mkdir(parents=True, exist_ok=True)

            if create_backup and path.exists():
                shutil.copy2(path, path.with_name(path.name + '.bak'))

            if atomic:
                self._replace_atomically(path, data)
            else:
                path.write_bytes(data)

        except PermissionError:
            logging.error(f"FileIOService - Permission denied writing {path}")
            return WriteResult(success=False, error=f"Permission denied: {path}")
        except (OSError, UnicodeEncodeError) as e:
            logging.error(f"FileIOService - Failed to write {path}: {e}")
            return WriteResult(success=False, error=f"Write failed: {e}")

        logging.debug(f"FileIOService - Wrote {len(data)} bytes to {path}")
        return WriteResult(success=True, bytes_written=len(data))

    def _replace_atomically(self, path: Path, data: bytes) -> None:
        fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix='.tmp')
        try:
            with os.fdopen(fd, 'wb') as handle:
                handle.write(data)
            shutil.move(temp_name, path)
        except BaseException:
            if os.path.exists(temp_name):
                os.unlink(temp_name)
            raise

    def _decode(self, body: bytes, encoding: Optional[str], path: Path) -> tuple[str, str]:
        """Decode file bytes, falling back to a lossless single-byte codec."""
        encoding = encoding or self._detect_encoding(body)
        try:
            return body.decode(encoding), encoding
        except (UnicodeDecodeError, LookupError):
            logging.warning(
                f"FileIOService - {path} is not valid {encoding}, reading it as {self.fallback_encoding}"
            )
            return body.decode(self.fallback_encoding, errors='replace'), self.fallback_encoding

    def _is_binary(self, chunk: bytes) -> bool:
        """Guess from the first bytes whether a file is binary."""
        if not chunk:
            return False
        if chunk.startswith(BINARY_SIGNATURES) or b'\x00' in chunk:
            return True

        # Control characters other than tab, newlines and form feed
        control = sum(1 for byte in chunk if byte < 32 and byte not in b'\t\n\r\f\x1b')
        return control / len(chunk) > 0.3

    def _detect_encoding(self, body: bytes) -> str:
        if not body:
            return self.default_encoding

        guess = chardet.detect(body)
        name = (guess.get('encoding') or '').lower()
        if not name or (guess.get('confidence') or 0) <= self.min_confidence:
            return self.default_encoding
        # ASCII is a subset of UTF-8; later edits may add non-ASCII text
        return self.default_encoding if name == 'ascii' else name
