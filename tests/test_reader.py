"""Tests for RawChunkReader offset tracking and rotation detection."""

import os

from phplogtail.watch.reader import RawChunkReader

from .conftest import append


def test_attach_at_end_skips_existing_content(log_file):
    append(log_file, "old line\n")
    reader = RawChunkReader(log_file)
    assert reader.attach(from_beginning=False)
    assert reader.offset == len(b"old line\n")

    assert reader.read().data == b""
    append(log_file, "new line\n")
    chunk = reader.read()
    assert chunk.data == b"new line\n"
    assert not chunk.rotated


def test_attach_from_beginning_reads_everything(log_file):
    append(log_file, "one\ntwo\n")
    reader = RawChunkReader(log_file)
    reader.attach(from_beginning=True)
    assert reader.read().data == b"one\ntwo\n"
    assert reader.offset == 8


def test_repeated_reads_without_growth_are_empty(log_file):
    append(log_file, "x\n")
    reader = RawChunkReader(log_file)
    reader.attach(from_beginning=True)
    reader.read()
    offset = reader.offset
    for _ in range(3):
        chunk = reader.read()
        assert chunk.data == b""
        assert not chunk.rotated
    assert reader.offset == offset


def test_missing_file_is_adopted_when_it_appears(log_file):
    reader = RawChunkReader(log_file)
    assert reader.attach() is False

    chunk = reader.read()
    assert chunk.missing
    assert chunk.data == b""

    append(log_file, "hello\n")
    chunk = reader.read()
    assert chunk.data == b"hello\n"
    assert not chunk.rotated
    assert not chunk.missing


def test_shrink_is_reported_as_rotation(log_file):
    append(log_file, "a long first line\n")
    reader = RawChunkReader(log_file)
    reader.attach(from_beginning=True)
    reader.read()

    log_file.write_bytes(b"short\n")
    chunk = reader.read()
    assert chunk.rotated
    assert chunk.data == b"short\n"
    assert reader.offset == 6


def test_truncate_to_empty_is_rotation_without_data(log_file):
    append(log_file, "content\n")
    reader = RawChunkReader(log_file)
    reader.attach(from_beginning=True)
    reader.read()

    log_file.write_bytes(b"")
    chunk = reader.read()
    assert chunk.rotated
    assert chunk.data == b""
    assert reader.offset == 0


def test_replaced_file_is_rotation_even_when_larger(log_file, tmp_path):
    append(log_file, "a\n")
    reader = RawChunkReader(log_file)
    reader.attach(from_beginning=True)
    reader.read()

    replacement = tmp_path / "error.log.new"
    replacement.write_bytes(b"a much longer replacement file\n")
    os.replace(replacement, log_file)

    chunk = reader.read()
    assert chunk.rotated
    assert chunk.data == b"a much longer replacement file\n"


def test_deleted_and_recreated_file_is_rotation(log_file):
    append(log_file, "before\n")
    reader = RawChunkReader(log_file)
    reader.attach(from_beginning=True)
    reader.read()

    log_file.unlink()
    assert reader.read().missing
    assert reader.lost

    append(log_file, "after\n")
    chunk = reader.read()
    assert chunk.rotated
    assert chunk.data == b"after\n"
    assert not reader.lost
