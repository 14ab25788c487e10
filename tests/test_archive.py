import zipfile

import pytest

from skin_builder import zip_members
from wsz_archive import (
    SkinArchive,
    SkinArchiveWriter,
    canonical_name,
    from_host_fs_name,
    lookup_buffer,
    smoke_test_host_fs_names,
    to_host_fs_name,
)
from wsz_errors import ArchiveReadError, ArchiveWriteError


def test_canonical_names():
    assert canonical_name("Skin\\main.bmp") == "SKIN/MAIN.BMP"
    assert canonical_name("pledit.txt") == "PLEDIT.TXT"


def test_lookup_is_case_and_slash_insensitive():
    archive = SkinArchive.from_bytes(zip_members({"MySkin\\Main.Bmp": b"main", "pledit.TXT": b"pl"}))
    assert archive.read_entry("MAIN.BMP") == b"main"
    assert archive.read_entry("myskin/main.bmp") == b"main"
    assert archive.read_entry("PLEDIT.txt") == b"pl"
    assert archive.find_entry("main.bmp") == "MySkin\\Main.Bmp"
    assert archive.find_entry("region.txt") is None
    with pytest.raises(KeyError):
        archive.read_entry("region.txt")


def test_exact_match_wins_over_folder_match():
    buffers = {"OLD/MAIN.BMP": b"old", "MAIN.BMP": b"new"}
    assert lookup_buffer(buffers, "main.bmp") == ("MAIN.BMP", b"new")


def test_resource_forks_and_directories_are_ignored():
    data = zip_members({"__MACOSX/._MAIN.BMP": b"junk", "skin/": b"", "skin/MAIN.BMP": b"main"})
    archive = SkinArchive.from_bytes(data)
    assert archive.list_entries() == {"skin/MAIN.BMP"}
    assert archive.read_buffer_map() == {"SKIN/MAIN.BMP": b"main"}


def test_not_a_zip_is_an_archive_read_error(tmp_path):
    path = tmp_path / "broken.wsz"
    path.write_bytes(b"this is not a zip file")
    with pytest.raises(ArchiveReadError) as excinfo:
        SkinArchive.from_path(path)
    assert str(path) in str(excinfo.value)


def test_missing_file_is_an_archive_read_error(tmp_path):
    with pytest.raises(ArchiveReadError):
        SkinArchive.from_path(tmp_path / "nope.wsz")


def test_writer_replaces_target_on_success(tmp_path):
    path = tmp_path / "out.wsz"
    path.write_bytes(b"old contents")
    with SkinArchiveWriter(path) as writer:
        writer.write_entry("MAIN.BMP", b"main")
        writer.write_entry("sub\\pledit.txt", b"pl")
    with zipfile.ZipFile(path) as zf:
        assert zf.namelist() == ["MAIN.BMP", "sub/pledit.txt"]
        assert zf.read("MAIN.BMP") == b"main"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["out.wsz"]


def test_writer_leaves_nothing_on_failure(tmp_path):
    path = tmp_path / "out.wsz"
    with pytest.raises(RuntimeError):
        with SkinArchiveWriter(path) as writer:
            writer.write_entry("MAIN.BMP", b"main")
            raise RuntimeError("boom")
    assert list(tmp_path.iterdir()) == []


def test_writer_output_is_deterministic(tmp_path):
    for name in ("a.wsz", "b.wsz"):
        with SkinArchiveWriter(tmp_path / name) as writer:
            writer.write_entry("MAIN.BMP", b"main" * 100)
    assert (tmp_path / "a.wsz").read_bytes() == (tmp_path / "b.wsz").read_bytes()


def test_writer_into_missing_directory(tmp_path):
    with pytest.raises(ArchiveWriteError):
        with SkinArchiveWriter(tmp_path / "missing" / "out.wsz"):
            pass


def test_host_fs_names():
    smoke_test_host_fs_names()
    assert to_host_fs_name("Readme?.txt") == "Readme%3F.txt"
    assert from_host_fs_name("Readme%3F.txt") == "Readme?.txt"
