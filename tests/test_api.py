import json
import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from sxlmaps.api import (
    DownloadInfo,
    FetchError,
    Image,
    Map,
    Modfile,
    Stats,
    Submitter,
    Tag,
    fetch_maps,
    parse_map,
    parse_response,
)

SAMPLE = {
    "id": 42,
    "game_id": 629,
    "name": "Warehouse Park",
    "name_id": "warehouse-park",
    "summary": "An indoor park",
    "description_plaintext": "Ramps and rails",
    "profile_url": "https://example.com/maps/warehouse-park",
    "submitted_by": {"id": 7, "username": "rider", "profile_url": "https://example.com/u/rider"},
    "date_added": 1700000000,
    "date_updated": 1700000500,
    "date_live": 1700000100,
    "logo": {"filename": "logo.png", "original": "https://example.com/logo.png",
             "thumb_320x180": "https://example.com/thumb.png"},
    "modfile": {
        "id": 11,
        "filename": "warehouse.zip",
        "version": "1.2",
        "filesize": 1024,
        "download": {"binary_url": "https://example.com/warehouse.zip", "date_expires": 1800000000},
    },
    "tags": [{"id": 1, "name": "Park"}, {"id": 2, "name": "Indoor"}],
    "stats": {"downloads_total": 5000, "subscribers_total": 300, "ratings_positive": 90,
              "ratings_negative": 3, "ratings_display_text": "Very Positive"},
    "media": {"images": [{"filename": "a.png", "original": "https://example.com/a.png"}]},
}


class _Handler(BaseHTTPRequestHandler):
    def do_GET(self):
        status, body = self.server.routes.get(self.path, (404, b"missing"))
        self.send_response(status)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, *args):
        pass


@pytest.fixture
def server():
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    httpd.routes = {}
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield httpd
    httpd.shutdown()
    httpd.server_close()


def _url(server, path):
    return f"http://127.0.0.1:{server.server_address[1]}{path}"


def test_parse_map_reads_every_field():
    parsed = parse_map(SAMPLE)
    assert parsed.id == 42
    assert parsed.name == "Warehouse Park"
    assert parsed.submitted_by == Submitter(7, "rider", "https://example.com/u/rider")
    assert parsed.modfile == Modfile(
        11, "warehouse.zip", "1.2", 1024,
        DownloadInfo("https://example.com/warehouse.zip", 1800000000),
    )
    assert parsed.tags == (Tag(1, "Park"), Tag(2, "Indoor"))
    assert parsed.stats == Stats(5000, 300, 90, 3, "Very Positive")
    assert parsed.images == (Image("a.png", "https://example.com/a.png"),)
    assert parsed.logo.thumb_320x180 == "https://example.com/thumb.png"
    assert parsed.date_added == 1700000000


def test_parse_map_missing_fields_take_zero_values():
    assert parse_map({}) == Map()


def test_parse_map_null_nested_objects_take_zero_values():
    parsed = parse_map({"name": "Plaza", "modfile": None, "stats": None, "tags": None})
    assert parsed == Map(name="Plaza")


def test_parse_map_rejects_wrong_type():
    with pytest.raises(ValueError):
        parse_map({"id": "forty-two"})


def test_parse_map_rejects_boolean_for_integer():
    with pytest.raises(ValueError):
        parse_map({"stats": {"downloads_total": True}})


def test_parse_response_returns_items():
    body = json.dumps({"itemType": "map", "count": 1, "items": [SAMPLE]}).encode()
    maps = parse_response(body)
    assert maps == [parse_map(SAMPLE)]


def test_parse_response_null_items_is_empty():
    assert parse_response('{"items": null}') == []


def test_parse_response_invalid_json():
    with pytest.raises(FetchError, match="error unmarshaling JSON"):
        parse_response(b"{not json")


def test_parse_response_rejects_non_object():
    with pytest.raises(FetchError, match="error unmarshaling JSON"):
        parse_response(b"[1, 2]")


def test_fetch_maps_from_server(server):
    server.routes["/maps"] = (200, json.dumps({"count": 1, "items": [SAMPLE]}).encode())
    maps = fetch_maps(_url(server, "/maps"), timeout=5)
    assert [m.name for m in maps] == ["Warehouse Park"]


def test_fetch_maps_non_ok_status(server):
    server.routes["/maps"] = (500, b"boom")
    with pytest.raises(FetchError, match="API returned non-OK status: 500"):
        fetch_maps(_url(server, "/maps"), timeout=5)


def test_fetch_maps_bad_body(server):
    server.routes["/maps"] = (200, b"<html>")
    with pytest.raises(FetchError, match="error unmarshaling JSON"):
        fetch_maps(_url(server, "/maps"), timeout=5)


def test_fetch_maps_unreachable():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    with pytest.raises(FetchError, match="error fetching maps"):
        fetch_maps(f"http://127.0.0.1:{port}/maps", timeout=5)