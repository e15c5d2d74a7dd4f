"""Writer for the synthetic server launch jar.

The jar carries nothing but ``META-INF/MANIFEST.MF``. The JVM reads the
``Main-Class`` and ``Class-Path`` headers from it, so the manifest has to obey
the jar manifest line rules: at most 72 bytes per line, continuation lines
start with a single space, CRLF line endings.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterable
import urllib.parse
import zipfile

MANIFEST_PATH = "META-INF/MANIFEST.MF"
MAX_LINE_BYTES = 72
LINE_BREAK = b"\r\n"
# 1980-01-01 is the earliest timestamp a zip entry can hold.
FIXED_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


def _split_utf8(data: bytes, limit: int) -> int:
    """Largest cut point <= limit that does not split a UTF-8 sequence."""
    if len(data) <= limit:
        return len(data)
    cut = limit
    while cut > 0 and (data[cut] & 0xC0) == 0x80:
        cut -= 1
    return cut


def wrap_header(name: str, value: str) -> bytes:
    raw = f"{name}: {value}".encode("utf-8")
    cut = _split_utf8(raw, MAX_LINE_BYTES)
    lines = [raw[:cut]]
    rest = raw[cut:]
    while rest:
        cut = _split_utf8(rest, MAX_LINE_BYTES - 1)
        lines.append(b" " + rest[:cut])
        rest = rest[cut:]
    return LINE_BREAK.join(lines) + LINE_BREAK


def render_manifest(main_class: str, class_path: Iterable[str]) -> bytes:
    entries = list(class_path)
    headers = [("Manifest-Version", "1.0"), ("Main-Class", main_class)]
    if entries:
        headers.append(("Class-Path", " ".join(entries)))
    return b"".join(wrap_header(name, value) for name, value in headers) + LINE_BREAK


def class_path_entry(library: Path, jar_dir: Path) -> str:
    relative = library.resolve().relative_to(jar_dir.resolve())
    # Class-Path entries are relative URLs.
    return urllib.parse.quote(relative.as_posix(), safe="/+-._~")


def write_launch_jar(jar_path: Path, main_class: str, libraries: Iterable[Path]) -> Path:
    jar_dir = jar_path.parent
    entries = [class_path_entry(library, jar_dir) for library in libraries]
    manifest = render_manifest(main_class, entries)
    if jar_path.exists():
        jar_path.unlink()
    info = zipfile.ZipInfo(MANIFEST_PATH, date_time=FIXED_TIMESTAMP)
    info.compress_type = zipfile.ZIP_DEFLATED
    with zipfile.ZipFile(jar_path, "w") as jar:
        jar.writestr(info, manifest)
    return jar_path
