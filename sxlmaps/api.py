"""Map catalogue: the data model and retrieval from the maps API."""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any

log = logging.getLogger(__name__)

API_ENDPOINT = "https://api.skatebit.app/api/v1/skaterxl/maps"
_PREVIEW_LENGTH = 500

_KIND_NAMES = {int: "an integer", str: "a string", dict: "an object", list: "an array"}


class FetchError(Exception):
    """Raised when the map list cannot be retrieved or decoded."""


@dataclass(frozen=True)
class DownloadInfo:
    binary_url: str = ""
    date_expires: int = 0


@dataclass(frozen=True)
class Modfile:
    id: int = 0
    filename: str = ""
    version: str = ""
    filesize: int = 0
    download: DownloadInfo = field(default_factory=DownloadInfo)


@dataclass(frozen=True)
class Submitter:
    id: int = 0
    username: str = ""
    profile_url: str = ""


@dataclass(frozen=True)
class Logo:
    filename: str = ""
    original: str = ""
    thumb_320x180: str = ""


@dataclass(frozen=True)
class Tag:
    id: int = 0
    name: str = ""


@dataclass(frozen=True)
class Stats:
    downloads_total: int = 0
    subscribers_total: int = 0
    ratings_positive: int = 0
    ratings_negative: int = 0
    ratings_display_text: str = ""


@dataclass(frozen=True)
class Image:
    filename: str = ""
    original: str = ""


@dataclass(frozen=True)
class Map:
    id: int = 0
    game_id: int = 0
    name: str = ""
    name_id: str = ""
    summary: str = ""
    description_plaintext: str = ""
    profile_url: str = ""
    submitted_by: Submitter = field(default_factory=Submitter)
    date_added: int = 0
    date_updated: int = 0
    date_live: int = 0
    logo: Logo = field(default_factory=Logo)
    modfile: Modfile = field(default_factory=Modfile)
    tags: tuple[Tag, ...] = ()
    stats: Stats = field(default_factory=Stats)
    images: tuple[Image, ...] = ()


def _get(data: dict[str, Any], key: str, kind: type) -> Any:
    """Return data[key] checked against kind; a missing or null value gives the zero value."""
    value = data.get(key)
    if value is None:
        return kind()
    if kind is int:
        valid = isinstance(value, int) and not isinstance(value, bool)
    else:
        valid = isinstance(value, kind)
    if not valid:
        raise ValueError(
            f"field {key!r} should be {_KIND_NAMES[kind]}, got {type(value).__name__}"
        )
    return value


def _object(value: Any, what: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{what} should be an object, got {type(value).__name__}")
    return value


def _download(data: dict[str, Any]) -> DownloadInfo:
    return DownloadInfo(
        binary_url=_get(data, "binary_url", str),
        date_expires=_get(data, "date_expires", int),
    )


def _modfile(data: dict[str, Any]) -> Modfile:
    return Modfile(
        id=_get(data, "id", int),
        filename=_get(data, "filename", str),
        version=_get(data, "version", str),
        filesize=_get(data, "filesize", int),
        download=_download(_get(data, "download", dict)),
    )


def parse_map(data: Any) -> Map:
    """Build a Map from one decoded JSON item; raise ValueError on a malformed item."""
    data = _object(data, "map")
    submitter = _get(data, "submitted_by", dict)
    logo = _get(data, "logo", dict)
    stats = _get(data, "stats", dict)
    media = _get(data, "media", dict)
    tags = tuple(
        Tag(id=_get(tag, "id", int), name=_get(tag, "name", str))
        for tag in (_object(item, "tag") for item in _get(data, "tags", list))
    )
    images = tuple(
        Image(filename=_get(image, "filename", str), original=_get(image, "original", str))
        for image in (_object(item, "image") for item in _get(media, "images", list))
    )
    return Map(
        id=_get(data, "id", int),
        game_id=_get(data, "game_id", int),
        name=_get(data, "name", str),
        name_id=_get(data, "name_id", str),
        summary=_get(data, "summary", str),
        description_plaintext=_get(data, "description_plaintext", str),
        profile_url=_get(data, "profile_url", str),
        submitted_by=Submitter(
            id=_get(submitter, "id", int),
            username=_get(submitter, "username", str),
            profile_url=_get(submitter, "profile_url", str),
        ),
        date_added=_get(data, "date_added", int),
        date_updated=_get(data, "date_updated", int),
        date_live=_get(data, "date_live", int),
        logo=Logo(
            filename=_get(logo, "filename", str),
            original=_get(logo, "original", str),
            thumb_320x180=_get(logo, "thumb_320x180", str),
        ),
        modfile=_modfile(_get(data, "modfile", dict)),
        tags=tags,
        stats=Stats(
            downloads_total=_get(stats, "downloads_total", int),
            subscribers_total=_get(stats, "subscribers_total", int),
            ratings_positive=_get(stats, "ratings_positive", int),
            ratings_negative=_get(stats, "ratings_negative", int),
            ratings_display_text=_get(stats, "ratings_display_text", str),
        ),
        images=images,
    )


def _preview(body: bytes | str) -> str:
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    return body[:_PREVIEW_LENGTH]


def parse_response(body: bytes | str) -> list[Map]:
    """Decode an API response body into its list of maps."""
    try:
        payload = _object(json.loads(body), "response")
        _get(payload, "itemType", str)
        _get(payload, "lastUpdated", str)
        _get(payload, "count", int)
        maps = [parse_map(item) for item in _get(payload, "items", list)]
    except ValueError as exc:
        log.error("Error unmarshaling JSON: %s. JSON Body (first 500 chars): %s", exc, _preview(body))
        raise FetchError(f"error unmarshaling JSON: {exc}") from exc
    return maps


def fetch_maps(url: str = API_ENDPOINT, timeout: float = 30.0) -> list[Map]:
    """Download and decode the list of maps from the API."""
    log.info("Fetching maps from API: %s", url)
    try:
        response = urllib.request.urlopen(url, timeout=timeout)
    except urllib.error.HTTPError as exc:
        with exc:
            body = exc.read()
        log.error(
            "API returned non-OK status: %s %s. Response Body (first 500 chars): %s",
            exc.code, exc.reason, _preview(body),
        )
        raise FetchError(f"API returned non-OK status: {exc.code} {exc.reason}") from exc
    except (OSError, http.client.HTTPException) as exc:
        log.error("Error during HTTP GET to %s: %s", url, exc)
        raise FetchError(f"error fetching maps: {exc}") from exc

    with response:
        try:
            body = response.read()
        except (OSError, http.client.HTTPException) as exc:
            log.error("Error reading response body: %s", exc)
            raise FetchError(f"error reading response body: {exc}") from exc
        if response.status != 200:
            log.error(
                "API returned non-OK status: %s %s. Response Body (first 500 chars): %s",
                response.status, response.reason, _preview(body),
            )
            raise FetchError(
                f"API returned non-OK status: {response.status} {response.reason}"
            )

    maps = parse_response(body)
    log.info("Successfully fetched %d maps from API.", len(maps))
    return maps