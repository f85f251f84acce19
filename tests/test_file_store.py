import io
import re

import pytest

from prosperian.core.file_store import FileStore


def test_save_uses_unique_name_and_keeps_content(tmp_path):
    store = FileStore(tmp_path / "lists")

    name = store.save(io.BytesIO(b"nom,email\nAda,ada@example.com\n"), "prospects.csv")

    assert re.fullmatch(r"prospects_\d+_\d{8}\.csv", name)
    assert (tmp_path / "lists" / name).read_bytes() == b"nom,email\nAda,ada@example.com\n"
    assert store.exists(name)


def test_two_uploads_of_same_file_do_not_collide(tmp_path):
    store = FileStore(tmp_path)

    first = store.save(io.BytesIO(b"a\n"), "leads.csv")
    second = store.save(io.BytesIO(b"b\n"), "leads.csv")

    assert first != second


def test_count_rows_skips_header_and_blank_lines(tmp_path):
    store = FileStore(tmp_path)
    name = store.save(io.BytesIO(b"nom\nAcme\n\nBeta\n   \n"), "l.csv")
    header_only = store.save(io.BytesIO(b"nom\n"), "h.csv")
    empty = store.save(io.BytesIO(b""), "e.csv")

    assert store.count_rows(name) == 2
    assert store.count_rows(header_only) == 0
    assert store.count_rows(empty) == 0


def test_stored_path_with_public_prefix_resolves_to_file(tmp_path):
    store = FileStore(tmp_path)
    name = store.save(io.BytesIO(b"x\n"), "l.csv")

    assert store.exists(f"/public/list/{name}")
    with store.open(f"/public/list/{name}") as fh:
        assert fh.read() == b"x\n"


def test_delete(tmp_path):
    store = FileStore(tmp_path)
    name = store.save(io.BytesIO(b"x\n"), "l.csv")

    assert store.delete(name) is True
    assert store.exists(name) is False
    assert store.delete(name) is False


def test_paths_cannot_escape_root(tmp_path):
    store = FileStore(tmp_path / "lists")

    assert store.exists("..") is False
    with pytest.raises(ValueError):
        store.delete("..")
