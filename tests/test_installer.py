import io
import os
import threading
import zipfile
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from sxlmaps.api import DownloadInfo, Map, Modfile
from sxlmaps.installer import (
    InstallError,
    copy_dir,
    copy_file,
    download_file,
    install_map,
    move_dir_contents,
    sanitize_filename,
    single_root_folder,
    unzip,
)


class _Handler(BaseHTTPRequestHandler):
    def do_GET(self):
        status, body = self.server.routes.get(self.path, (404, b""))
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


def _zip_bytes(entries):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return buffer.getvalue()


def _map(name, url, filename="map.zip"):
    return Map(name=name, modfile=Modfile(filename=filename, download=DownloadInfo(binary_url=url)))


def test_sanitize_filename_replaces_reserved_characters():
    assert sanitize_filename('a/b\\c:d*e?f"g<h>i|j') == "a_b_c_d_e_f_g_h_i_j"


def test_sanitize_filename_keeps_ordinary_names():
    assert sanitize_filename("Mini Ramp 2") == "Mini Ramp 2"


def test_unzip_extracts_nested_files(tmp_path):
    archive = tmp_path / "a.zip"
    archive.write_bytes(_zip_bytes({"top.txt": b"top", "dir/inner/deep.txt": b"deep"}))
    unzip(archive, tmp_path / "out")
    assert (tmp_path / "out" / "top.txt").read_bytes() == b"top"
    assert (tmp_path / "out" / "dir" / "inner" / "deep.txt").read_bytes() == b"deep"


def test_unzip_rejects_paths_outside_destination(tmp_path):
    archive = tmp_path / "evil.zip"
    archive.write_bytes(_zip_bytes({"../evil.txt": b"x"}))
    with pytest.raises(InstallError, match="illegal file path"):
        unzip(archive, tmp_path / "out")
    assert not (tmp_path / "evil.txt").exists()


def test_unzip_rejects_non_archive(tmp_path):
    archive = tmp_path / "bad.zip"
    archive.write_bytes(b"not a zip")
    with pytest.raises(InstallError):
        unzip(archive, tmp_path / "out")


def test_single_root_folder_found(tmp_path):
    (tmp_path / "Park").mkdir()
    assert single_root_folder(tmp_path) == "Park"


@pytest.mark.parametrize(
    "dirs, files",
    [([], []), (["a", "b"], []), (["a"], ["loose.txt"])],
)
def test_single_root_folder_absent(tmp_path, dirs, files):
    for name in dirs:
        (tmp_path / name).mkdir()
    for name in files:
        (tmp_path / name).write_text("x")
    assert single_root_folder(tmp_path) is None


def test_single_root_folder_missing_directory(tmp_path):
    assert single_root_folder(tmp_path / "absent") is None


def test_copy_file_keeps_content_and_mode(tmp_path):
    src = tmp_path / "src.bin"
    src.write_bytes(b"payload")
    os.chmod(src, 0o640)
    dest = tmp_path / "dest.bin"
    copy_file(src, dest)
    assert dest.read_bytes() == b"payload"
    assert os.stat(dest).st_mode & 0o777 == os.stat(src).st_mode & 0o777


def test_copy_file_missing_source(tmp_path):
    with pytest.raises(InstallError, match="failed to open source file"):
        copy_file(tmp_path / "absent", tmp_path / "dest")


def test_copy_dir_is_recursive(tmp_path):
    src = tmp_path / "src"
    (src / "a" / "b").mkdir(parents=True)
    (src / "a" / "b" / "f.txt").write_text("deep")
    (src / "g.txt").write_text("top")
    copy_dir(src, tmp_path / "dest")
    assert (tmp_path / "dest" / "a" / "b" / "f.txt").read_text() == "deep"
    assert (tmp_path / "dest" / "g.txt").read_text() == "top"


def test_move_dir_contents_copies_and_removes_source(tmp_path):
    src = tmp_path / "src"
    (src / "sub").mkdir(parents=True)
    (src / "sub" / "x.txt").write_text("x")
    (src / "y.txt").write_text("y")
    dest = tmp_path / "dest"
    dest.mkdir()
    move_dir_contents(src, dest)
    assert not src.exists()
    assert sorted(p.name for p in dest.iterdir()) == ["sub", "y.txt"]
    assert (dest / "sub" / "x.txt").read_text() == "x"


def test_move_dir_contents_missing_source(tmp_path):
    with pytest.raises(InstallError, match="failed to read source directory"):
        move_dir_contents(tmp_path / "absent", tmp_path)


def test_download_file_writes_body(server, tmp_path):
    server.routes["/f.zip"] = (200, b"zipdata")
    target = tmp_path / "f.zip"
    download_file(target, _url(server, "/f.zip"))
    assert target.read_bytes() == b"zipdata"


def test_download_file_bad_status(server, tmp_path):
    with pytest.raises(InstallError, match="bad status: 404"):
        download_file(tmp_path / "f.zip", _url(server, "/absent"))


def test_install_map_without_url(tmp_path):
    with pytest.raises(InstallError, match="no download URL found for map Plaza"):
        install_map(Map(name="Plaza"), tmp_path)


def test_install_map_with_single_root_folder(server, tmp_path):
    server.routes["/m.zip"] = (200, _zip_bytes({
        "Berlin/level.bundle": b"bundle",
        "Berlin/extra/readme.txt": b"hello",
    }))
    name = "Berlin: Night"
    destination = install_map(_map(name, _url(server, "/m.zip")), tmp_path)
    assert destination == tmp_path / sanitize_filename(name)
    assert (destination / "level.bundle").read_bytes() == b"bundle"
    assert (destination / "extra" / "readme.txt").read_bytes() == b"hello"
    assert not (destination / "Berlin").exists()


def test_install_map_with_loose_files(server, tmp_path):
    server.routes["/m.zip"] = (200, _zip_bytes({"level.bundle": b"b", "Textures/t.png": b"t"}))
    destination = install_map(_map("Docks", _url(server, "/m.zip")), tmp_path)
    assert sorted(p.name for p in destination.iterdir()) == ["Textures", "level.bundle"]
    assert (destination / "Textures" / "t.png").read_bytes() == b"t"


def test_install_map_download_failure(server, tmp_path):
    with pytest.raises(InstallError, match="failed to download map"):
        install_map(_map("Docks", _url(server, "/absent")), tmp_path)


def test_install_map_corrupt_archive(server, tmp_path):
    server.routes["/m.zip"] = (200, b"garbage")
    with pytest.raises(InstallError, match="failed to extract map 'Docks'"):
        install_map(_map("Docks", _url(server, "/m.zip")), tmp_path)