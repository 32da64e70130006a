from hivekit.context import Request, Response
from hivekit.webcontext import WebContext


def test_write_string():
    ctx = WebContext()
    ctx.write_string("body")
    assert ctx.response_writer.body == b"body"
    assert ctx.response_writer.status == 200


def test_abort_sets_status_and_body():
    ctx = WebContext()
    ctx.abort(403, "denied")
    assert ctx.response_writer.status == 403
    assert ctx.response_writer.body == b"denied"


def test_redirect():
    ctx = WebContext()
    ctx.redirect(301, "/new")
    assert ctx.response_writer.get_header("Location") == "/new"
    assert ctx.response_writer.status == 301


def test_not_modified():
    ctx = WebContext()
    ctx.not_modified()
    assert ctx.response_writer.status == 304
    assert ctx.response_writer.body == b""


def test_not_found():
    ctx = WebContext()
    ctx.not_found("missing")
    assert ctx.response_writer.status == 404
    assert ctx.response_writer.body == b"missing"


def test_content_type_known_and_unknown():
    ctx = WebContext()
    ctx.content_type("json")
    assert ctx.response_writer.get_header("Content-Type") == "application/json"
    other = WebContext()
    other.content_type("no-such-extension")
    assert other.response_writer.get_header("Content-Type") == ""


def test_set_header_unique_and_multi():
    ctx = WebContext()
    ctx.set_header("X-A", "1", False)
    ctx.set_header("X-A", "2", False)
    assert ctx.response_writer.get_all("X-A") == ["1", "2"]
    ctx.set_header("X-A", "3", True)
    assert ctx.response_writer.get_all("X-A") == ["3"]


def test_set_cookie_appends_header():
    ctx = WebContext()
    ctx.set_cookie("a", "x;y")
    ctx.set_cookie("b", "2", -1, "/")
    assert ctx.response_writer.get_all("Set-Cookie") == ["a=x y", "b=2; Max-Age=0; Path=/"]


def test_get_cookie():
    req = Request(headers={"Cookie": "first=1; second=2"})
    ctx = WebContext(Response(), req)
    assert ctx.get_cookie("second") == "2"
    assert ctx.get_cookie("third") == ""


def test_fields_kept():
    ctx = WebContext(request_body=b"raw", params={":id": "5"})
    assert ctx.request_body == b"raw"
    assert ctx.params[":id"] == "5"