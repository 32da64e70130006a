# hivekit

Building blocks for small web applications, usable on their own or together:

- `hivekit.cache`: pluggable caches (`MemoryCache`, `RedisCache`) chosen by name through `new_cache`. You can add your own adapter with `register`.
- `hivekit.beecache`: a simple in-process cache (`BeeCache`). An item expires when it has not been read for longer than its lifetime.
- `hivekit.config`: configuration readers for INI-style (`key = value`, `#` comments), JSON, XML (inside `<config>` tags) and YAML files through `new_config`.
- `hivekit.appconfig`: loads an application's `conf/app.conf` into a `Settings` object with `parse_config`.
- `hivekit.context`: `Request`, `Response`, `Context` with its `Input` and `Output`, cookie building (`build_cookie`) and status helpers such as `Output.is_redirect`.
- `hivekit.webcontext`: `WebContext`, a smaller context that writes straight to a `Response`.
- `hivekit.errors`: ready-made HTML pages for 401, 403, 404, 500 and 503, a debugging page (`show_err`) and the `error_maps` table.
- `hivekit.flash`: `FlashData`, one-shot notice, warning and error messages carried in a cookie to the next request.
- `hivekit.httplib`: a chainable HTTP client request builder (`get`, `post`, `put`, `delete`, `head`).

## Installation

```
pip install hivekit
```

## Quick look

A memory cache. `put` takes a lifetime in seconds and raises `KeyError` if the key is already there:

```python
from hivekit.cache import new_cache

cache = new_cache("memory", '{"interval": 60}')
cache.put("visits", 1, 10)
cache.incr("visits")
print(cache.get("visits"))  # 2
```

A Redis cache keeps every entry in one hash; the config needs `conn` and may name the hash with `key`:

```python
cache = new_cache("redis", '{"conn": "localhost:6379", "key": "appcache"}')
```

`BeeCache` has to be started before use:

```python
from hivekit.beecache import BeeCache

cache = BeeCache(every=60)
cache.start()
cache.put("page", "<html>...</html>", 300)
```

Reading configuration. The typed getters raise `ValueError` when the value does not fit:

```python
from hivekit.config import new_config

conf = new_config("ini", "conf/app.conf")
port = conf.get_int("httpport")
name = conf.get_string("appname")
```

Application settings, read from `<app_path>/conf/app.conf` unless `app_config_path` says otherwise:

```python
from hivekit.appconfig import Settings, parse_config

settings = Settings(app_path="/srv/myapp")
parse_config(settings)
print(settings.http_port, settings.run_mode)
```

Working with a request and its response:

```python
from hivekit.context import Context, Request

ctx = Context(Request(method="GET", uri="/account?callback=cb", host="example.com:8080"))
print(ctx.input.host(), ctx.input.port())  # example.com 8080
ctx.redirect(302, "/login")
print(ctx.response.status, ctx.response.get_header("Location"))  # 302 /login
```

Error pages:

```python
from hivekit import errors
from hivekit.context import Request, Response

errors.register_error_handlers()
response = Response()
errors.error_maps["404"](response, Request(uri="/missing"))
print(response.status)  # 404
```

Flash messages:

```python
from hivekit.flash import FlashData, read_from_request
from hivekit.webcontext import WebContext

ctx = WebContext()
page_data = {}
FlashData().notice("Saved %d items", 3)
flash = FlashData()
flash.notice("Saved")
flash.store(page_data, ctx)  # sets the HIVEKIT_FLASH cookie
```

On the next request, `read_from_request(page_data, ctx)` loads the messages and deletes the cookie.

Making an HTTP request:

```python
from hivekit import httplib

text = httplib.get("http://localhost:8080/").param("q", "hive").to_string()
```

## What hivekit does not do

hivekit has no HTTP server, router or controllers: it builds and inspects requests and responses, but serving them is up to your application. It has no logging facility of its own and no session store (`Input.session` only reads from a store you attach as `cru_session`). It installs no command-line program.

## Running the tests

```
pip install -e ".[test]"
pytest
```