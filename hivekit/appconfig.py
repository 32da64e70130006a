"""Application settings loaded from the application's INI file."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Callable

from hivekit.config import IniConfigContainer


class Config(IniConfigContainer):
    """Application configuration whose keys cannot be added after loading."""

    def get_bool(self, key: str) -> bool:
        """Return the boolean under ``key``; raise ValueError otherwise."""
        return super().get_bool(key)

    def get_int(self, key: str) -> int:
        """Return the integer under ``key``; raise ValueError otherwise."""
        return super().get_int(key)

    def get_int64(self, key: str) -> int:
        """Return the 64-bit integer under ``key``; raise ValueError otherwise."""
        return super().get_int64(key)

    def get_float(self, key: str) -> float:
        """Return the float under ``key``; raise ValueError otherwise."""
        return super().get_float(key)

    def get_string(self, key: str) -> str:
        """Return the string under ``key``, or an empty string."""
        return super().get_string(key)

    def set_value(self, key: str, value: str) -> None:
        """Replace the value of an existing ``key``; raise KeyError otherwise."""
        with self._lock:
            if key not in self.data:
                raise KeyError("key not found: " + key)
            self.data[key] = value


def load_config(name: str) -> Config:
    """Parse the INI file ``name`` into a :class:`Config`."""
    cfg = Config.load(name)
    assert isinstance(cfg, Config)
    return cfg


@dataclass
class Settings:
    """Runtime settings of an application, with their defaults."""

    app_name: str = "hivekit"
    app_path: str = field(default_factory=os.getcwd)
    app_config_path: str = ""
    static_dir: dict[str, str] = field(default_factory=lambda: {"/static": "static"})
    http_addr: str = ""
    http_port: int = 8080
    recover_panic: bool = True
    auto_render: bool = True
    pprof_on: bool = False
    views_path: str = "views"
    run_mode: str = "dev"
    session_on: bool = False
    session_provider: str = "memory"
    session_name: str = "hivekitsessionID"
    session_gc_max_lifetime: int = 3600
    session_save_path: str = ""
    use_fcgi: bool = False
    max_memory: int = 1 << 26
    enable_gzip: bool = False
    directory_index: bool = False
    enable_hot_update: bool = False
    http_server_timeout: int = 0
    errors_show: bool = True
    xsrf_key: str = "hivekitxsrf"
    enable_xsrf: bool = False
    xsrf_expire: int = 60
    copy_request_body: bool = False
    template_left: str = "{{"
    template_right: str = "}}"
    app_config: Config | None = None

    def __post_init__(self) -> None:
        if not self.app_config_path:
            self.app_config_path = os.path.join(self.app_path, "conf", "app.conf")


_INT_KEYS = {
    "httpport": "http_port",
    "maxmemory": "max_memory",
    "httpservertimeout": "http_server_timeout",
    "xsrfexpire": "xsrf_expire",
}

_BOOL_KEYS = {
    "autorender": "auto_render",
    "autorecover": "recover_panic",
    "pprofon": "pprof_on",
    "sessionon": "session_on",
    "usefcgi": "use_fcgi",
    "enablegzip": "enable_gzip",
    "directoryindex": "directory_index",
    "hotupdate": "enable_hot_update",
    "errorsshow": "errors_show",
    "copyrequestbody": "copy_request_body",
    "enablexsrf": "enable_xsrf",
}

_NONEMPTY_STRING_KEYS = {
    "runmode": "run_mode",
    "viewspath": "views_path",
    "sessionprovider": "session_provider",
    "sessionname": "session_name",
    "sessionsavepath": "session_save_path",
    "xsrfkey": "xsrf_key",
    "templateleft": "template_left",
    "templateright": "template_right",
}


def _apply(settings: Settings, keys: dict[str, str], getter: Callable[[str], Any]) -> None:
    for key, attr in keys.items():
        try:
            value = getter(key)
        except ValueError:
            continue
        setattr(settings, attr, value)


def parse_config(settings: Settings) -> Config:
    """Load ``settings.app_config_path`` and apply the values it holds to ``settings``."""
    cfg = load_config(settings.app_config_path)
    settings.app_config = cfg
    settings.http_addr = cfg.get_string("httpaddr")
    settings.app_name = cfg.get_string("appname")
    _apply(settings, _INT_KEYS, cfg.get_int)
    _apply(settings, _BOOL_KEYS, cfg.get_bool)
    for key, attr in _NONEMPTY_STRING_KEYS.items():
        value = cfg.get_string(key)
        if value:
            setattr(settings, attr, value)
    try:
        lifetime = cfg.get_int("sessiongcmaxlifetime")
    except ValueError:
        lifetime = 0
    if lifetime != 0:
        settings.session_gc_max_lifetime = lifetime
    return cfg