import codecs

import pytest

from reportdiff.services.file_io import FileIOService, LineEnding, detect_line_ending, split_bom


@pytest.fixture
def file_io():
    return FileIOService()


def test_read_utf8_report(tmp_path, file_io):
    path = tmp_path / "report.txt"
    text = "Résumé of the café review\nNaïve totals: 10 € and 20 €\n"
    path.write_bytes(text.encode("utf-8"))

    result = file_io.read_file(path)

    assert result.success
    assert result.content.content == text
    assert result.content.line_ending == LineEnding.LF
    assert result.content.line_count == 2
    assert result.content.bom is False


def test_read_strips_bom_and_detects_crlf(tmp_path, file_io):
    path = tmp_path / "report.txt"
    path.write_bytes(b"\xef\xbb\xbfa\r\nb\r\n")

    result = file_io.read_file(path)

    assert result.success
    assert result.content.bom is True
    assert result.content.content == "a\r\nb\r\n"
    assert result.content.line_ending == LineEnding.CRLF


def test_read_missing_file(tmp_path, file_io):
    result = file_io.read_file(tmp_path / "missing.txt")

    assert not result.success
    assert "not found" in result.error


def test_read_directory(tmp_path, file_io):
    result = file_io.read_file(tmp_path)

    assert not result.success
    assert "Not a file" in result.error


def test_read_binary_file(tmp_path, file_io):
    path = tmp_path / "image.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n" + bytes(range(256)))

    result = file_io.read_file(path)

    assert not result.success
    assert result.is_binary


def test_read_oversize_file(tmp_path, file_io):
    path = tmp_path / "big.txt"
    path.write_text("x" * 2048, encoding="utf-8")

    result = file_io.read_file(path, max_text_size=1024)

    assert not result.success
    assert "too large" in result.error


def test_write_file_atomic(tmp_path, file_io):
    path = tmp_path / "out" / "edited.txt"

    result = file_io.write_file(path, "line 1\r\nline 2")

    assert result.success
    assert result.bytes_written == len("line 1\r\nline 2")
    assert path.read_bytes() == b"line 1\r\nline 2"
    assert list(path.parent.iterdir()) == [path]


def test_write_file_with_backup(tmp_path, file_io):
    path = tmp_path / "edited.txt"
    path.write_text("old", encoding="utf-8")

    assert file_io.write_file(path, "new", create_backup=True).success

    assert path.read_text(encoding="utf-8") == "new"
    assert (tmp_path / "edited.txt.bak").read_text(encoding="utf-8") == "old"


def test_write_unencodable_text(tmp_path, file_io):
    result = file_io.write_file(tmp_path / "x.txt", "€", encoding="ascii")

    assert not result.success
    assert result.error


def test_read_utf16_with_bom(tmp_path, file_io):
    path = tmp_path / "report.txt"
    path.write_bytes("\ufeffSummary\nTotals".encode("utf-16-le"))

    result = file_io.read_file(path)

    assert result.success
    assert result.content.content == "Summary\nTotals"
    assert result.content.encoding == "utf-16-le"
    assert result.content.bom is True


def test_write_utf16_with_bom(tmp_path, file_io):
    path = tmp_path / "report.txt"

    result = file_io.write_file(path, "Summary\nTotals", encoding="utf-16-le", bom=True)

    assert result.success
    assert path.read_bytes() == codecs.BOM_UTF16_LE + "Summary\nTotals".encode("utf-16-le")
    assert file_io.read_file(path).content.encoding == "utf-16-le"


def test_split_bom():
    assert split_bom(b"\xef\xbb\xbfabc") == (b"abc", "utf-8")
    assert split_bom(b"\xff\xfe\x00\x00x") == (b"x", "utf-32-le")
    assert split_bom(b"abc") == (b"abc", None)


def test_detect_line_ending():
    assert detect_line_ending("one line") == LineEnding.NONE
    assert detect_line_ending("a\nb") == LineEnding.LF
    assert detect_line_ending("a\rb") == LineEnding.CR
    assert detect_line_ending("a\r\nb\nc") == LineEnding.MIXED
