"""Skin archives (.wsz files are plain zip files) in and out.

Member names are matched case-insensitively and with either slash
convention, since skins were zipped on every platform imaginable. Many
skins also keep their files inside a top-level folder, so a lookup that
finds no exact match falls back to the member whose last path component
matches.
"""

from typing import Dict, Optional, Set, Tuple

import io
import os
import tempfile
import urllib.parse
import zipfile
import zlib

from wsz_errors import ArchiveReadError, ArchiveWriteError

IGNORED_PREFIXES = ("__MACOSX/",)
ZIP_TIMESTAMP = (1980, 1, 1, 0, 0, 0)  # fixed so packing the same tree twice gives the same bytes


def canonical_name(name: str) -> str:
    return name.replace("\\", "/").upper()


def base_name(name: str) -> str:
    return canonical_name(name).rstrip("/").rsplit("/", 1)[-1]


def lookup_buffer(buffer_map: Dict[str, bytes], name: str) -> Optional[Tuple[str, bytes]]:
    """Finds name in a map keyed by canonical names, exact match first,
    then by final path component. Returns (key, data) or None.
    """
    key = canonical_name(name)
    if key in buffer_map:
        return key, buffer_map[key]
    wanted = base_name(name)
    for candidate in sorted(buffer_map):
        if base_name(candidate) == wanted:
            return candidate, buffer_map[candidate]
    return None


class SkinArchive:
    def __init__(self, members: Dict[str, bytes], *, source: str):
        self.source = source
        self._members = members  # original name -> data, zip order
        self._buffers: Dict[str, bytes] = {}
        self._names: Dict[str, str] = {}
        for name, data in members.items():
            key = canonical_name(name)
            if key not in self._buffers:
                self._buffers[key] = data
                self._names[key] = name

    @classmethod
    def from_path(cls, path) -> "SkinArchive":
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise ArchiveReadError(path, e.strerror or str(e)) from e
        return cls.from_bytes(data, source=str(path))

    @classmethod
    def from_bytes(cls, data: bytes, *, source: str = "<memory>") -> "SkinArchive":
        members = {}
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as zf:
                for info in zf.infolist():
                    if info.is_dir():
                        continue
                    if canonical_name(info.filename).startswith(IGNORED_PREFIXES):
                        continue
                    members[info.filename] = zf.read(info)
        except (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError, EOFError) as e:
            raise ArchiveReadError(source, str(e)) from e
        return cls(members, source=source)

    def list_entries(self) -> Set[str]:
        return set(self._names.values())

    def find_entry(self, name: str) -> Optional[str]:
        found = lookup_buffer(self._buffers, name)
        return None if found is None else self._names[found[0]]

    def read_entry(self, name: str) -> bytes:
        found = lookup_buffer(self._buffers, name)
        if found is None:
            raise KeyError(name)
        return found[1]

    def read_buffer_map(self) -> Dict[str, bytes]:
        return dict(self._buffers)


class SkinArchiveWriter:
    """Writes a zip through a temporary file which replaces path only
    when the with-block finishes without an exception.

    Usage:
        with SkinArchiveWriter("skin.wsz") as writer:
            writer.write_entry("MAIN.BMP", data)
    """

    def __init__(self, path):
        self.path = str(path)
        self._tmp_path = None
        self._zip = None

    def __enter__(self):
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            fd, self._tmp_path = tempfile.mkstemp(
                prefix=".wsz_tool_", suffix=".tmp", dir=directory
            )
            os.close(fd)
            self._zip = zipfile.ZipFile(self._tmp_path, "w", zipfile.ZIP_DEFLATED)
        except OSError as e:
            self._discard()
            raise ArchiveWriteError(self.path, e.strerror or str(e)) from e
        return self

    def write_entry(self, name: str, data: bytes):
        assert self._zip is not None, "write_entry called outside of a with-block"
        info = zipfile.ZipInfo(name.replace("\\", "/"), date_time=ZIP_TIMESTAMP)
        info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = 0o644 << 16
        try:
            self._zip.writestr(info, data)
        except OSError as e:
            raise ArchiveWriteError(self.path, e.strerror or str(e)) from e

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self._discard()
            return False
        try:
            self._zip.close()
            self._zip = None
            os.replace(self._tmp_path, self.path)
            self._tmp_path = None
        except OSError as e:
            self._discard()
            raise ArchiveWriteError(self.path, e.strerror or str(e)) from e
        print(f"writing {self.path}")
        return False

    def _discard(self):
        if self._zip is not None:
            try:
                self._zip.close()
            except OSError:
                pass
            self._zip = None
        if self._tmp_path is not None and os.path.lexists(self._tmp_path):
            os.remove(self._tmp_path)
        self._tmp_path = None


# Host file system names for extracted members. Not tailored to any one
# OS; the rules are meant to accomodate Windows, macOS and UNIX at once.
# Unsafe characters are quoted as %XX of their UTF-8 bytes.

HOST_FS_UNSAFE_CHARS = set('"*/:<>?\\|\x7f') | set(chr(i) for i in range(0x20))
HOST_FS_UNSAFE_NAMES_UPPER = set(
    ["CLOCK$", "CON", "PRN", "AUX", "NUL"]
    + [f"COM{n}" for n in range(1, 10)]
    + [f"LPT{n}" for n in range(1, 10)]
)
HOST_FS_UNSAFE_START_CHARS = set(" ")
HOST_FS_UNSAFE_END_CHARS = set(" .")


def quote_char(ch):
    return "".join(f"%{byt:02X}" for byt in ch.encode("utf-8"))


def to_host_fs_name(member_name: str) -> str:
    filename = member_name.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
    stem = filename.split(".", 1)[0]
    filename_chars = [ch for ch in filename]
    for i, ch in enumerate(filename_chars):
        unsafe = ch in HOST_FS_UNSAFE_CHARS
        if stem.upper() in HOST_FS_UNSAFE_NAMES_UPPER and i == 0:
            unsafe = True
        if filename == "." * len(filename) and i == 0:
            unsafe = True
        if i == 0 and ch in HOST_FS_UNSAFE_START_CHARS:
            unsafe = True
        if i == len(filename_chars) - 1 and ch in HOST_FS_UNSAFE_END_CHARS:
            unsafe = True
        if unsafe or ch == "%":  # quote % too since we use it for quoting
            filename_chars[i] = quote_char(ch)
    host_fs_name = "".join(filename_chars)
    if not host_fs_name:
        host_fs_name = "(empty)"
    return host_fs_name


def from_host_fs_name(host_fs_name: str) -> str:
    if host_fs_name == "(empty)":
        return ""
    return urllib.parse.unquote(host_fs_name, errors="strict")


def smoke_test_host_fs_names():
    names = ["pledit.txt", "CON.txt", "aux", "100%.txt", "a:b?.txt", " lead", "trail.", "..", "", "Ünïcode.txt"]
    round_trip_test_failures = {
        name: to_host_fs_name(name)
        for name in names
        if from_host_fs_name(to_host_fs_name(name)) != name
    }
    assert not round_trip_test_failures, round_trip_test_failures
    assert to_host_fs_name("pledit.txt") == "pledit.txt"
    assert to_host_fs_name("skin/Readme.txt") == "Readme.txt"
    assert to_host_fs_name("skin\\CON.txt") == "%43ON.txt"
    assert to_host_fs_name("trail.") == "trail%2E"
