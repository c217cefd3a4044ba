"""Downloading map archives and installing them into the game's maps directory."""

from __future__ import annotations

import http.client
import logging
import os
import shutil
import stat
import tempfile
import urllib.error
import urllib.request
import zipfile
from pathlib import Path

from .api import Map

log = logging.getLogger(__name__)

_INVALID_CHARS = str.maketrans({char: "_" for char in '/\\:*?"<>|'})


class InstallError(Exception):
    """Raised when a map cannot be downloaded, extracted or copied into place."""


def sanitize_filename(name: str) -> str:
    """Replace characters that are not allowed in file names with underscores."""
    return name.translate(_INVALID_CHARS)


def download_file(path: str | os.PathLike[str], url: str) -> None:
    """Fetch url and write the response body to path."""
    with open(path, "wb") as out:
        try:
            response = urllib.request.urlopen(url)
        except urllib.error.HTTPError as exc:
            exc.close()
            raise InstallError(f"bad status: {exc.code} {exc.reason}") from exc
        with response:
            if response.status != 200:
                raise InstallError(f"bad status: {response.status} {response.reason}")
            try:
                shutil.copyfileobj(response, out)
            except http.client.HTTPException as exc:
                raise InstallError(f"failed to read download: {exc}") from exc


def unzip(src: str | os.PathLike[str], dest: str | os.PathLike[str]) -> None:
    """Extract the archive at src into dest, refusing entries that escape dest."""
    try:
        archive = zipfile.ZipFile(src)
    except zipfile.BadZipFile as exc:
        raise InstallError(f"not a valid zip archive: {exc}") from exc

    os.makedirs(dest, exist_ok=True)
    base = os.path.normpath(dest)
    root = os.path.join(base, "")
    with archive:
        for info in archive.infolist():
            target = os.path.normpath(base + os.sep + info.filename)
            if not target.startswith(root):
                raise InstallError(f"illegal file path: {target}")
            if info.is_dir():
                os.makedirs(target, exist_ok=True)
                continue
            os.makedirs(os.path.dirname(target), exist_ok=True)
            try:
                with archive.open(info) as source, open(target, "wb") as out:
                    shutil.copyfileobj(source, out)
            except (zipfile.BadZipFile, NotImplementedError) as exc:
                raise InstallError(f"failed to extract '{info.filename}': {exc}") from exc
            mode = (info.external_attr >> 16) & 0o777
            if mode:
                os.chmod(target, mode)


def single_root_folder(path: str | os.PathLike[str]) -> str | None:
    """Return the name of the only entry in path if it is a directory, else None."""
    try:
        with os.scandir(path) as entries:
            entries = list(entries)
    except OSError:
        return None
    if any(not entry.is_dir(follow_symlinks=False) for entry in entries):
        return None
    if len(entries) == 1:
        return entries[0].name
    return None


def _sorted_entries(path: Path) -> list[os.DirEntry[str]]:
    with os.scandir(path) as entries:
        return sorted(entries, key=lambda entry: entry.name)


def copy_file(src: str | os.PathLike[str], dest: str | os.PathLike[str]) -> None:
    """Copy a file's contents and permission bits."""
    try:
        source = open(src, "rb")
    except OSError as exc:
        raise InstallError(f"failed to open source file '{src}': {exc}") from exc
    with source:
        try:
            target = open(dest, "wb")
        except OSError as exc:
            raise InstallError(f"failed to create destination file '{dest}': {exc}") from exc
        with target:
            try:
                shutil.copyfileobj(source, target)
            except OSError as exc:
                raise InstallError(
                    f"failed to copy file contents from '{src}' to '{dest}': {exc}"
                ) from exc
    try:
        mode = os.stat(src).st_mode
    except OSError as exc:
        raise InstallError(f"failed to get source file info '{src}': {exc}") from exc
    try:
        os.chmod(dest, stat.S_IMODE(mode))
    except OSError as exc:
        raise InstallError(f"failed to set mode of '{dest}': {exc}") from exc


def copy_dir(src: str | os.PathLike[str], dest: str | os.PathLike[str]) -> None:
    """Copy a directory tree recursively."""
    src, dest = Path(src), Path(dest)
    try:
        mode = os.stat(src).st_mode
    except OSError as exc:
        raise InstallError(f"failed to get source directory info '{src}': {exc}") from exc
    try:
        os.makedirs(dest, mode=stat.S_IMODE(mode), exist_ok=True)
    except OSError as exc:
        raise InstallError(f"failed to create destination directory '{dest}': {exc}") from exc
    try:
        entries = _sorted_entries(src)
    except OSError as exc:
        raise InstallError(f"failed to read source directory '{src}': {exc}") from exc
    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            copy_dir(src / entry.name, dest / entry.name)
        else:
            copy_file(src / entry.name, dest / entry.name)


def move_dir_contents(src: str | os.PathLike[str], dest: str | os.PathLike[str]) -> None:
    """Copy everything inside src into dest, then remove src."""
    src, dest = Path(src), Path(dest)
    try:
        entries = _sorted_entries(src)
    except OSError as exc:
        raise InstallError(f"failed to read source directory '{src}': {exc}") from exc
    for entry in entries:
        source, target = src / entry.name, dest / entry.name
        if entry.is_dir(follow_symlinks=False):
            try:
                copy_dir(source, target)
            except InstallError as exc:
                raise InstallError(
                    f"failed to copy directory '{source}' to '{target}': {exc}"
                ) from exc
        else:
            try:
                copy_file(source, target)
            except InstallError as exc:
                raise InstallError(
                    f"failed to copy file '{source}' to '{target}': {exc}"
                ) from exc
    shutil.rmtree(src)


def install_map(map_: Map, maps_dir: str | os.PathLike[str]) -> Path:
    """Download a map's archive and install it; return the directory it went into."""
    url = map_.modfile.download.binary_url
    if not url:
        raise InstallError(f"no download URL found for map {map_.name}")

    try:
        workspace = tempfile.TemporaryDirectory(prefix="skaterxl-map-download-")
    except OSError as exc:
        raise InstallError(f"failed to create temporary directory: {exc}") from exc

    with workspace as temp_name:
        temp_dir = Path(temp_name)
        zip_path = temp_dir / map_.modfile.filename
        log.info("Downloading '%s' to '%s' from URL: %s", map_.name, zip_path, url)
        try:
            download_file(zip_path, url)
        except (InstallError, OSError) as exc:
            raise InstallError(f"failed to download map: {exc}") from exc

        log.info("Extracting '%s'...", map_.name)
        destination = Path(maps_dir) / sanitize_filename(map_.name)
        try:
            destination.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as exc:
            raise InstallError(
                f"failed to create map destination directory '{destination}': {exc}"
            ) from exc

        extract_dir = temp_dir / "extracted_zip"
        try:
            extract_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as exc:
            raise InstallError(f"failed to create temporary extraction directory: {exc}") from exc

        try:
            unzip(zip_path, extract_dir)
        except (InstallError, OSError) as exc:
            raise InstallError(
                f"failed to extract map '{map_.name}' to temporary location: {exc}"
            ) from exc

        root = single_root_folder(extract_dir)
        if root:
            log.info(
                "Detected single root folder '%s' in zip. Moving contents to '%s'.",
                root, destination,
            )
            try:
                move_dir_contents(extract_dir / root, destination)
            except (InstallError, OSError) as exc:
                raise InstallError(
                    f"failed to move contents from single root folder: {exc}"
                ) from exc
        else:
            log.info(
                "No single root folder detected. Moving all extracted contents to '%s'.",
                destination,
            )
            try:
                move_dir_contents(extract_dir, destination)
            except (InstallError, OSError) as exc:
                raise InstallError(f"failed to move extracted contents: {exc}") from exc

    log.info("Successfully installed '%s' to '%s'!", map_.name, destination)
    return destination