"""Configuration containers for INI, JSON, XML and YAML files."""

from __future__ import annotations

import json
import logging
import re
import threading
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from typing import Any, Protocol

import yaml

_log = logging.getLogger(__name__)

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def _parse_bool(text: str) -> bool:
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise ValueError(f"invalid boolean: {text!r}")


def _parse_int(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return value


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise ValueError(f"invalid float: {text!r}")
    return float(text)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigContainer(ABC):
    """Interface of a parsed configuration."""

    @abstractmethod
    def set(self, key: str, val: str) -> None:
        """Store ``val`` under ``key``."""

    @abstractmethod
    def get_string(self, key: str) -> str:
        """Return the string under ``key``, or an empty string."""

    @abstractmethod
    def get_int(self, key: str) -> int:
        """Return the integer under ``key``; raise ValueError otherwise."""

    @abstractmethod
    def get_int64(self, key: str) -> int:
        """Return the 64-bit integer under ``key``; raise ValueError otherwise."""

    @abstractmethod
    def get_bool(self, key: str) -> bool:
        """Return the boolean under ``key``; raise ValueError otherwise."""

    @abstractmethod
    def get_float(self, key: str) -> float:
        """Return the float under ``key``; raise ValueError otherwise."""

    @abstractmethod
    def diy(self, key: str) -> Any:
        """Return the raw value under ``key``; raise KeyError if absent."""


class _Adapter(Protocol):
    def parse(self, filename: str) -> ConfigContainer: ...


_adapters: dict[str, _Adapter] = {}


def register(name: str, adapter: _Adapter) -> None:
    """Make a config adapter available under ``name``."""
    if adapter is None:
        raise ValueError("config: Register adapter is nil")
    if name in _adapters:
        raise ValueError(f"config: Register called twice for adapter {name}")
    _adapters[name] = adapter


def new_config(adapter_name: str, filename: str) -> ConfigContainer:
    """Parse ``filename`` with the adapter registered as ``adapter_name``."""
    try:
        adapter = _adapters[adapter_name]
    except KeyError:
        raise ValueError(
            f"config: unknown adaptername {adapter_name!r} (forgotten import?)"
        ) from None
    return adapter.parse(filename)


class IniConfigContainer(ConfigContainer):
    """Flat ``key = value`` configuration with ``#`` comments."""

    def __init__(
        self,
        filename: str = "",
        comments: dict[int, list[str]] | None = None,
        data: dict[str, str] | None = None,
        offsets: dict[str, int] | None = None,
    ) -> None:
        self.filename = filename
        self.comments = comments if comments is not None else {}
        self.data = data if data is not None else {}
        self.offsets = offsets if offsets is not None else {}
        self._lock = threading.Lock()

    @classmethod
    def load(cls, name: str) -> IniConfigContainer:
        """Read and parse the INI file ``name``."""
        with open(name, "rb") as fh:
            raw = fh.read()
        cfg = cls(str(name))
        pending: list[str] = []
        n_comment = 0
        offset = 1
        for raw_line in raw.split(b"\n"):
            if raw_line.endswith(b"\r"):
                raw_line = raw_line[:-1]
            if not raw_line:
                continue
            offset += len(raw_line)
            line = raw_line.decode("utf-8")
            if line.startswith("#"):
                pending.append(line.lstrip("#").lstrip() + "\n")
                continue
            if pending:
                cfg.comments[n_comment] = ["".join(pending)]
                pending = []
                n_comment += 1
            key_part, sep, value = line.partition("=")
            if not sep:
                raise ValueError(f"malformed line in {name}: {line!r}")
            value = value.strip()
            if value.startswith('"'):
                value = value.strip('"')
            key = key_part.strip()
            cfg.comments.setdefault(n_comment - 1, []).append(key)
            cfg.data[key] = value.strip()
            cfg.offsets[key] = offset
        return cfg

    def get_bool(self, key: str) -> bool:
        return _parse_bool(self.data.get(key, ""))

    def get_int(self, key: str) -> int:
        return _parse_int(self.data.get(key, ""))

    def get_int64(self, key: str) -> int:
        return _parse_int(self.data.get(key, ""))

    def get_float(self, key: str) -> float:
        return _parse_float(self.data.get(key, ""))

    def get_string(self, key: str) -> str:
        return self.data.get(key, "")

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self.data[key] = value

    def diy(self, key: str) -> Any:
        try:
            return self.data[key]
        except KeyError:
            raise KeyError("key not find") from None


class IniConfig:
    """Adapter producing :class:`IniConfigContainer`."""

    def parse(self, name: str) -> IniConfigContainer:
        return IniConfigContainer.load(name)


class _MappingContainer(ConfigContainer):
    """Shared storage and raw access for tree-shaped configurations."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = data if data is not None else {}
        self._lock = threading.Lock()

    def _string(self, key: str) -> str:
        value = self.data.get(key)
        return value if isinstance(value, str) else ""

    def _store(self, key: str, val: str) -> None:
        with self._lock:
            self.data[key] = val

    def _raw(self, key: str) -> Any:
        try:
            return self.data[key]
        except KeyError:
            raise KeyError("not exist key") from None


class JsonConfigContainer(_MappingContainer):
    """Configuration read from a JSON object."""

    def get_bool(self, key: str) -> bool:
        value = self.data.get(key)
        if isinstance(value, bool):
            return value
        raise ValueError("not bool value")

    def get_int(self, key: str) -> int:
        value = self.data.get(key)
        if _is_number(value):
            return int(value)
        raise ValueError("not int value")

    def get_int64(self, key: str) -> int:
        value = self.data.get(key)
        if _is_number(value):
            return int(value)
        raise ValueError("not int64 value")

    def get_float(self, key: str) -> float:
        value = self.data.get(key)
        if _is_number(value):
            return float(value)
        raise ValueError("not float64 value")

    def get_string(self, key: str) -> str:
        return self._string(key)

    def set(self, key: str, val: str) -> None:
        self._store(key, val)

    def diy(self, key: str) -> Any:
        return self._raw(key)


class JsonConfig:
    """Adapter producing :class:`JsonConfigContainer`."""

    def parse(self, filename: str) -> JsonConfigContainer:
        with open(filename, "rb") as fh:
            data = json.loads(fh.read())
        if not isinstance(data, dict):
            raise ValueError("json config must be an object")
        return JsonConfigContainer(data)


def _element_value(element: ET.Element) -> Any:
    children = list(element)
    text = (element.text or "").strip()
    if not children and not element.attrib:
        return text
    result: dict[str, Any] = {f"-{k}": v for k, v in element.attrib.items()}
    for child in children:
        value = _element_value(child)
        if child.tag in result:
            existing = result[child.tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[child.tag] = [existing, value]
        else:
            result[child.tag] = value
    if text:
        result["#text"] = text
    return result


class XMLConfigContainer(_MappingContainer):
    """Configuration read from the children of a ``<config>`` element."""

    def _text(self, key: str) -> str:
        value = self.data.get(key)
        if not isinstance(value, str):
            raise ValueError(f"value of {key!r} is not text")
        return value

    def get_bool(self, key: str) -> bool:
        return _parse_bool(self._text(key))

    def get_int(self, key: str) -> int:
        return _parse_int(self._text(key))

    def get_int64(self, key: str) -> int:
        return _parse_int(self._text(key))

    def get_float(self, key: str) -> float:
        return _parse_float(self._text(key))

    def get_string(self, key: str) -> str:
        return self._string(key)

    def set(self, key: str, val: str) -> None:
        self._store(key, val)

    def diy(self, key: str) -> Any:
        return self._raw(key)


class XMLConfig:
    """Adapter producing :class:`XMLConfigContainer`."""

    def parse(self, filename: str) -> XMLConfigContainer:
        with open(filename, "rb") as fh:
            root = ET.fromstring(fh.read())
        if root.tag != "config":
            raise ValueError("xml config must be enclosed in <config> tags")
        data = _element_value(root)
        if not isinstance(data, dict):
            raise ValueError("xml config has no entries")
        return XMLConfigContainer(data)


def read_yml_reader(path: str) -> dict[str, Any] | None:
    """Read a YAML (or JSON) mapping from ``path``; None if too short or not a mapping."""
    with open(path, "rb") as fh:
        buf = fh.read()
    if len(buf) < 3:
        return None
    if buf[:1] == b"{":
        _log.debug("content looks like JSON, trying it")
        try:
            decoded = json.loads(buf)
        except ValueError:
            decoded = None
        if isinstance(decoded, dict):
            return decoded
    try:
        loaded = yaml.safe_load(buf)
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid yaml in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        _log.warning("yaml content of %s is not a mapping", path)
        return None
    return loaded


class YAMLConfigContainer(_MappingContainer):
    """Configuration read from a YAML mapping."""

    def get_bool(self, key: str) -> bool:
        value = self.data.get(key)
        if isinstance(value, bool):
            return value
        raise ValueError("not bool value")

    def get_int(self, key: str) -> int:
        value = self.data.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        raise ValueError("not int value")

    def get_int64(self, key: str) -> int:
        value = self.data.get(key)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        raise ValueError("not int64 value")

    def get_float(self, key: str) -> float:
        value = self.data.get(key)
        if isinstance(value, float):
            return value
        raise ValueError("not float64 value")

    def get_string(self, key: str) -> str:
        return self._string(key)

    def set(self, key: str, val: str) -> None:
        self._store(key, val)

    def diy(self, key: str) -> Any:
        return self._raw(key)


class YAMLConfig:
    """Adapter producing :class:`YAMLConfigContainer`."""

    def parse(self, filename: str) -> YAMLConfigContainer:
        return YAMLConfigContainer(read_yml_reader(filename) or {})


register("ini", IniConfig())
register("json", JsonConfig())
register("xml", XMLConfig())
register("yaml", YAMLConfig())