"""HTML error pages and the table of handlers that serve them."""

from __future__ import annotations

import html
import platform
from string import Template
from typing import Any, Callable

from hivekit.context import Request, Response

VERSION = "0.9.0"

Handler = Callable[[Response, Request], None]

error_maps: dict[str, Handler] = {}

_DEBUG_PAGE = Template(
    """<!DOCTYPE html>
<html>
<head>
    <meta http-equiv="Content-Type" content="text/html; charset=UTF-8" />
    <title>hivekit application error</title>
    <style>
        html, body, body * {padding: 0; margin: 0;}
        #header {background: #ffd; border-bottom: solid 2px #a31515; padding: 20px 10px;}
        #footer {border-top: solid 1px #aaa; padding: 5px 10px; font-size: 12px; color: green;}
        #content {padding: 5px;}
        #content .stack b {font-size: 13px; color: red;}
        #content .stack pre {padding-left: 10px;}
        td.t {text-align: right; padding-right: 5px; color: #888;}
    </style>
</head>
<body>
    <div id="header">
        <h2>$app_error</h2>
    </div>
    <div id="content">
        <table>
            <tr><td class="t">Request Method: </td><td>$request_method</td></tr>
            <tr><td class="t">Request URL: </td><td>$request_url</td></tr>
            <tr><td class="t">RemoteAddr: </td><td>$remote_addr</td></tr>
        </table>
        <div class="stack">
            <b>Stack</b>
            <pre>$stack</pre>
        </div>
    </div>
    <div id="footer">
        <p>hivekit $version</p>
        <p>python version: $runtime_version</p>
    </div>
</body>
</html>
"""
)

_STATUS_PAGE = Template(
    """<!DOCTYPE html>
<html lang="en">
<head>
    <meta http-equiv="Content-Type" content="text/html; charset=UTF-8">
    <title>$title</title>
    <style type="text/css">
        * {margin: 0; padding: 0;}
        body {background-color: #efefef; font: .9em sans-serif;}
        #wrapper {width: 600px; margin: 40px auto 0; text-align: center;}
        #container {width: 600px; padding-bottom: 15px; background-color: #fff;}
        .navtop {height: 40px; background-color: #24b2eb; padding: 13px;}
        .navtop h1 {color: #fff;}
        #content {padding: 10px 10px 25px; color: #333;}
        a.button {color: white; padding: 15px 20px; font-weight: bold;
                  background-color: #24b2eb; border-radius: 100px; display: block;
                  margin: 20px 200px 0; text-decoration: none;}
    </style>
</head>
<body>
    <div id="wrapper">
        <div id="container">
            <div class="navtop">
                <h1>$title</h1>
            </div>
            <div id="content">
                $content
                <a href="/" title="Home" class="button">Go Home</a><br />
                <br>powered by hivekit $version
            </div>
        </div>
    </div>
</body>
</html>
"""
)


def _esc(value: Any) -> str:
    return html.escape(str(value), quote=True)


def show_err(err: Any, response: Response, request: Request, stack: str, app_name: str) -> None:
    """Write a debugging page describing ``err`` raised while serving ``request``."""
    page = _DEBUG_PAGE.substitute(
        app_error=_esc(f"{app_name}:{err}"),
        request_method=_esc(request.method),
        request_url=_esc(request.uri),
        remote_addr=_esc(request.remote_addr),
        stack=_esc(stack),
        version=_esc(VERSION),
        runtime_version=_esc(platform.python_version()),
    )
    response.write(page.encode("utf-8"))


def _status_page(response: Response, status: int, title: str, items: list[str]) -> None:
    content = "".join(items[:-len(items)] or []) + "".join(items)
    page = _STATUS_PAGE.substitute(title=_esc(title), content=content, version=_esc(VERSION))
    response.write_header(status)
    response.write(page.encode("utf-8"))


def not_found(response: Response, request: Request) -> None:
    """Serve the 404 page."""
    _status_page(
        response,
        404,
        "Page Not Found",
        [
            "<br>The Page You have requested flown the coop.",
            "<br>Perhaps you are here because:",
            "<br><br><ul>",
            "<br>The page has moved",
            "<br>The page no longer exists",
            "<br>You were looking for your puppy and got lost",
            "<br>You like 404 pages",
            "</ul>",
        ],
    )


def unauthorized(response: Response, request: Request) -> None:
    """Serve the 401 page."""
    _status_page(
        response,
        401,
        "Unauthorized",
        [
            "<br>The Page You have requested can't authorized.",
            "<br>Perhaps you are here because:",
            "<br><br><ul>",
            "<br>Check the credentials that you supplied",
            "<br>Check the address for errors",
            "</ul>",
        ],
    )


def forbidden(response: Response, request: Request) -> None:
    """Serve the 403 page."""
    _status_page(
        response,
        403,
        "Forbidden",
        [
            "<br>The Page You have requested forbidden.",
            "<br>Perhaps you are here because:",
            "<br><br><ul>",
            "<br>Your address may be blocked",
            "<br>The site may be disabled",
            "<br>You need to log in",
            "</ul>",
        ],
    )


def service_unavailable(response: Response, request: Request) -> None:
    """Serve the 503 page."""
    _status_page(
        response,
        503,
        "Service Unavailable",
        [
            "<br>The Page You have requested unavailable.",
            "<br>Perhaps you are here because:",
            "<br><br><ul>",
            "<br><br>The page is overloaded",
            "<br>Please try again later.",
            "</ul>",
        ],
    )


def internal_server_error(response: Response, request: Request) -> None:
    """Serve the 500 page."""
    _status_page(
        response,
        500,
        "Internal Server Error",
        [
            "<br>The Page You have requested has down now.",
            "<br><br><ul>",
            "<br>simply try again later",
            "<br>you should report the fault to the website administrator",
            "</ul>",
        ],
    )


_DEFAULT_HANDLERS: dict[str, Handler] = {
    "404": not_found,
    "401": unauthorized,
    "403": forbidden,
    "503": service_unavailable,
    "500": internal_server_error,
}


def register_error_handlers() -> None:
    """Install the built-in page for every status that has no handler yet."""
    for code, handler in _DEFAULT_HANDLERS.items():
        error_maps.setdefault(code, handler)


def error_handler(err: str, handler: Handler) -> None:
    """Serve the error named ``err`` with ``handler``."""
    error_maps[err] = handler