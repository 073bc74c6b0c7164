import os

import pytest

from bhdist.bitarr import MaskedBitArray
from bhdist.errors import InputFormatError, MatrixWriteError, SampleShapeError
from bhdist.readwrite import (
    read_samples,
    read_samples_columns,
    read_samples_rows,
    write_distance_matrix,
)
from bhdist.trimat import TriMat

ROWS = "1001X0X\n1011X01\nX10X111\n"
COLUMNS = "11X\n001\n010\n11X\nXX1\n001\nX11\n"


def _write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return path


def test_read_rows(tmp_path):
    samples = read_samples_rows(_write(tmp_path, "rows.txt", ROWS))

    assert len(samples) == 3
    assert samples[0] == MaskedBitArray.from_string("1001X0X")
    assert samples[2] == MaskedBitArray.from_string("X10X111")


def test_read_columns_matches_rows(tmp_path):
    rows = read_samples_rows(_write(tmp_path, "rows.txt", ROWS))
    columns = read_samples_columns(_write(tmp_path, "cols.txt", COLUMNS))

    assert columns == rows


@pytest.mark.skipif(not os.path.isdir("/dev/fd"), reason="needs /dev/fd")
def test_read_columns_single_pass_from_pipe(tmp_path):
    expected = read_samples_rows(_write(tmp_path, "rows.txt", ROWS))
    read_fd, write_fd = os.pipe()
    with os.fdopen(write_fd, "w") as w:
        w.write(COLUMNS)

    samples = read_samples_columns(f"/dev/fd/{read_fd}")
    os.close(read_fd)

    assert samples == expected


def test_read_samples_dispatches(tmp_path):
    rows = read_samples(_write(tmp_path, "rows.txt", ROWS))
    cols = read_samples(_write(tmp_path, "cols.txt", COLUMNS), transposed=True)

    assert rows == cols


def test_crlf_line_endings(tmp_path):
    path = tmp_path / "crlf.txt"
    path.write_bytes(b"010\r\n011\r\n")

    samples = read_samples_rows(path)

    assert [len(s) for s in samples] == [3, 3]


def test_custom_na_char(tmp_path):
    samples = read_samples_rows(_write(tmp_path, "rows.txt", "0N1\n011\n"), na_char="N")

    assert samples[0].valid().tolist() == [True, False, True]


def test_format_error_names_file_line_and_position(tmp_path):
    path = _write(tmp_path, "bad.txt", "0101\n01a1\n")

    with pytest.raises(InputFormatError) as excinfo:
        read_samples_rows(path)

    err = excinfo.value
    assert (err.line, err.position, err.char) == (2, 3, "a")
    assert str(path) in str(err)
    assert "line 2" in str(err)
    assert "position 3" in str(err)


def test_format_error_in_transposed_file(tmp_path):
    path = _write(tmp_path, "bad_cols.txt", "01\n1?\n")

    with pytest.raises(InputFormatError) as excinfo:
        read_samples_columns(path)

    assert (excinfo.value.line, excinfo.value.position) == (2, 2)


def test_unequal_rows_rejected(tmp_path):
    with pytest.raises(SampleShapeError, match="line 3"):
        read_samples_rows(_write(tmp_path, "ragged.txt", "010\n011\n01\n"))


def test_unequal_transposed_lines_rejected(tmp_path):
    with pytest.raises(SampleShapeError, match="line 2"):
        read_samples_columns(_write(tmp_path, "ragged.txt", "010\n01\n"))


@pytest.mark.parametrize("reader", [read_samples_rows, read_samples_columns])
def test_empty_file_rejected(tmp_path, reader):
    with pytest.raises(SampleShapeError, match="empty"):
        reader(_write(tmp_path, "empty.txt", ""))


def test_missing_file_raises_oserror(tmp_path):
    with pytest.raises(OSError):
        read_samples_rows(tmp_path / "nope.txt")


def _store():
    dists = TriMat(2)
    dists.row(0).extend([1, 2])
    dists.row(1).extend([1])
    return dists


def test_write_to_file_creates_parent(tmp_path):
    out = tmp_path / "nested" / "dist.csv"

    written = write_distance_matrix(_store(), out)

    assert written == out
    assert out.read_text() == "0,1,2\n1,0,1\n2,1,0\n"


def test_write_to_stdout(capsys):
    assert write_distance_matrix(_store()) is None

    assert capsys.readouterr().out == "0,1,2\n1,0,1\n2,1,0\n"


class _UnflushableStdout:
    def write(self, text):
        return len(text)

    def flush(self):
        raise OSError(28, "No space left on device")


def test_stdout_flush_failure_reports_line(monkeypatch):
    monkeypatch.setattr("sys.stdout", _UnflushableStdout())

    with pytest.raises(MatrixWriteError) as excinfo:
        write_distance_matrix(_store())

    assert excinfo.value.line == 3


@pytest.mark.skipif(not os.path.exists("/dev/full"), reason="needs /dev/full")
def test_full_device_reports_line():
    with pytest.raises(MatrixWriteError) as excinfo:
        write_distance_matrix(_store(), "/dev/full")

    assert excinfo.value.line == 3
    assert "No space left" in str(excinfo.value)
