import json
import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from hivekit.httplib import DEFAULT_USER_AGENT, delete, get, head, post, put


class _Handler(BaseHTTPRequestHandler):
    def log_message(self, *args):
        pass

    def _reply(self, status, body, ctype="application/json", extra=()):
        self.send_response(status)
        self.send_header("Content-Type", ctype)
        self.send_header("Content-Length", str(len(body)))
        for key, value in extra:
            self.send_header(key, value)
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def _handle(self):
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length)
        if self.path == "/redirect":
            self._reply(302, b"", extra=[("Location", "/echo")])
            return
        if self.path == "/xml":
            self._reply(200, b"<root><a>1</a></root>", ctype="application/xml")
            return
        if self.path == "/missing":
            self._reply(404, b"nope", ctype="text/plain")
            return
        payload = {
            "method": self.command,
            "path": self.path,
            "headers": dict(self.headers),
            "body": body.decode(),
        }
        self._reply(200, json.dumps(payload).encode())

    do_GET = do_POST = do_PUT = do_DELETE = do_HEAD = _handle


@pytest.fixture(scope="module")
def server():
    srv = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    yield srv
    srv.shutdown()
    srv.server_close()


@pytest.fixture
def base(server):
    return f"http://127.0.0.1:{server.server_address[1]}"


def test_get_url(base):
    resp = get(base + "/").response()
    data = resp.read()
    resp.close()
    assert len(data) > 0
    text = get(base + "/").to_string()
    assert len(text) > 0
    assert json.loads(text)["method"] == "GET"


def test_get_params_go_in_query(base):
    result = get(base + "/echo").param("a", "1").param("b", "x y").to_json()
    assert result["path"] == "/echo?a=1&b=x+y"


def test_get_params_extend_existing_query(base):
    result = get(base + "/echo?z=0").param("a", "1").to_json()
    assert result["path"] == "/echo?z=0&a=1"


def test_repeated_send_does_not_repeat_params(base):
    req = get(base + "/echo").param("a", "1")
    first = req.to_json()
    second = req.to_json()
    assert first["path"] == second["path"] == "/echo?a=1"


def test_post_params_become_form_body(base):
    result = post(base + "/form").param("name", "value").to_json()
    assert result["method"] == "POST"
    assert result["body"] == "name=value"
    assert result["headers"]["Content-Type"] == "application/x-www-form-urlencoded"


def test_post_explicit_body_takes_precedence(base):
    result = post(base + "/raw").param("name", "value").body("raw text").to_json()
    assert result["body"] == "raw text"
    assert result["path"] == "/raw"


def test_put_bytes_body_and_delete(base):
    assert put(base + "/p").body(b"abc").to_json()["body"] == "abc"
    assert delete(base + "/d").to_json()["method"] == "DELETE"


def test_headers(base):
    default = get(base + "/h").to_json()["headers"]
    assert default["User-Agent"] == DEFAULT_USER_AGENT
    custom = get(base + "/h").header("user-agent", "probe").header("x-demo", "1").to_json()
    assert custom["headers"]["User-Agent"] == "probe"
    assert custom["headers"]["X-Demo"] == "1"


def test_head_has_no_body(base):
    assert head(base + "/echo").to_bytes() == b""


def test_redirect_is_followed(base):
    result = get(base + "/redirect").to_json()
    assert result["path"] == "/echo"


def test_error_status_is_returned(base):
    resp = get(base + "/missing").response()
    try:
        assert resp.status == 404
        assert resp.read() == b"nope"
    finally:
        resp.close()


def test_scheme_is_added(server):
    port = server.server_address[1]
    result = get(f"127.0.0.1:{port}/echo").set_timeout(5, 5).to_json()
    assert result["path"] == "/echo"


def test_to_file(base, tmp_path):
    target = tmp_path / "out.xml"
    get(base + "/xml").to_file(str(target))
    assert target.read_bytes() == b"<root><a>1</a></root>"


def test_to_xml(base):
    root = get(base + "/xml").to_xml()
    assert root.tag == "root"
    assert root.find("a").text == "1"


def test_debug_prints_request(base, capsys):
    get(base + "/echo").debug(True).to_bytes()
    out = capsys.readouterr().out
    assert "GET /echo HTTP/1.1" in out
    assert f"User-Agent: {DEFAULT_USER_AGENT}" in out


def test_unsupported_scheme():
    with pytest.raises(ValueError):
        get("ftp://127.0.0.1/file").to_bytes()


def test_connection_refused():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    with pytest.raises(OSError):
        get(f"http://127.0.0.1:{port}/").set_timeout(2, 2).to_bytes()