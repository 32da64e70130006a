from hivekit.context import Request
from hivekit.flash import FLASH_COOKIE, FlashData, read_from_request
from hivekit.webcontext import WebContext


def _stored_cookie(flash):
    ctx = WebContext()
    data = {}
    flash.store(data, ctx)
    header = ctx.response_writer.get_all("Set-Cookie")
    return data, header


def _request_with(cookie_pair):
    return WebContext(request=Request(headers={"Cookie": cookie_pair}))


def test_formatting_of_messages():
    flash = FlashData()
    flash.notice("hello %s", "world")
    flash.warning("plain")
    flash.error("%d items", 3)
    assert flash.data == {"notice": "hello world", "warning": "plain", "error": "3 items"}


def test_store_exposes_data_and_sets_cookie():
    flash = FlashData()
    flash.notice("saved")
    data, header = _stored_cookie(flash)
    assert data["flash"] == {"notice": "saved"}
    assert len(header) == 1
    assert header[0].startswith(FLASH_COOKIE + "=")
    assert header[0].endswith("; Path=/")


def test_round_trip_through_cookie():
    flash = FlashData()
    flash.notice("all good")
    flash.error("bad thing")
    _, header = _stored_cookie(flash)
    pair = header[0].split("; ")[0]
    ctx = _request_with(pair)
    data = {}
    restored = read_from_request(data, ctx)
    assert restored.data == flash.data
    assert data["flash"] == flash.data


def test_read_deletes_cookie():
    flash = FlashData()
    flash.warning("careful")
    _, header = _stored_cookie(flash)
    ctx = _request_with(header[0].split("; ")[0])
    read_from_request({}, ctx)
    deleted = ctx.response_writer.get_all("Set-Cookie")
    assert deleted == [f"{FLASH_COOKIE}=; Max-Age=0; Path=/"]


def test_entries_with_extra_colons_are_dropped():
    flash = FlashData()
    flash.notice("at 12:30")
    flash.error("fine")
    _, header = _stored_cookie(flash)
    restored = read_from_request({}, _request_with(header[0].split("; ")[0]))
    assert restored.data == {"error": "fine"}


def test_without_cookie_nothing_is_read():
    ctx = WebContext()
    data = {}
    flash = read_from_request(data, ctx)
    assert flash.data == {}
    assert data["flash"] == {}
    assert ctx.response_writer.get_all("Set-Cookie") == []