"""Download file naming: pick a name from the response, then avoid clobbering existing files."""
from __future__ import annotations

import os
import re
import secrets
from pathlib import Path, PurePosixPath
from typing import Mapping
from urllib.parse import unquote, urlsplit

_FILENAME_STAR = re.compile(r"filename\*\s*=\s*([^;]+)", re.IGNORECASE)
_FILENAME = re.compile(r'filename\s*=\s*("(?:[^"\\]|\\.)*"|[^;]+)', re.IGNORECASE)


def filename_from_content_disposition(value: str | None) -> str | None:
    """filename* (RFC 5987) wins over filename. Directory parts are dropped."""
    if not value:
        return None
    match = _FILENAME_STAR.search(value)
    if match:
        raw = match.group(1).strip().strip('"')
        charset, _, encoded = raw.partition("''")
        if encoded:
            name = unquote(encoded, encoding=charset or "utf-8", errors="replace")
        else:
            name = unquote(raw)
        name = _basename(name)
        if name:
            return name
    match = _FILENAME.search(value)
    if match:
        name = _basename(match.group(1).strip().strip('"'))
        if name:
            return name
    return None


def filename_from_url(url: str) -> str | None:
    return _basename(unquote(urlsplit(url).path)) or None


def random_filename() -> str:
    return secrets.token_hex(8)


def choose_filename(headers: Mapping[str, str], url: str) -> str:
    return (
        filename_from_content_disposition(headers.get("content-disposition"))
        or filename_from_url(url)
        or random_filename()
    )


def unique_destination(directory: Path, filename: str) -> Path:
    """name.ext, then name(1).ext, name(2).ext, ... until the path is unused."""
    candidate = directory / filename
    stem, suffix = Path(filename).stem, Path(filename).suffix
    counter = 1
    while candidate.exists():
        candidate = directory / f"{stem}({counter}){suffix}"
        counter += 1
    return candidate


def _basename(name: str) -> str:
    name = PurePosixPath(name.replace("\\", "/")).name
    return "" if name in (".", "..") else name


def move_to_unique_destination(source: Path, directory: Path, filename: str) -> Path:
    """
    Move source into directory under the first free name, never replacing a file.

    The name is claimed with a hard link, which fails if the path already exists, so a
    file created by someone else after the name was picked moves us on to the next counter.
    """
    while True:
        candidate = unique_destination(directory, filename)
        try:
            os.link(source, candidate)
        except FileExistsError:
            continue
        source.unlink()
        return candidate
