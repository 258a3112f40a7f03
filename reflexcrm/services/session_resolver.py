# Rev 0.2.0

"""Session identifier resolution (Rev 0.2.0)
Sources are tried in order and the first non-empty id wins:
access key → public IP lookup → fixed fallback. Resolution never raises.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Protocol

import requests

from ..utils.logging_setup import get_logger

DEFAULT_IP_LOOKUP_URL = "https://api.ipify.org?format=json"
DEFAULT_TIMEOUT = 3.0
DEFAULT_FALLBACK_ID = "local-user"

log = get_logger(__name__)


class SessionIdSource(Protocol):
    name: str

    def session_id(self) -> Optional[str]: ...


class AccessKeySource:
    name = "access_key"

    def __init__(self, access_key: Optional[str]):
        self._key = access_key

    def session_id(self) -> Optional[str]:
        key = (self._key or "").strip()
        return key or None


class PublicIPSource:
    name = "public_ip"

    def __init__(self, url: str = DEFAULT_IP_LOOKUP_URL, timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
        self._url = url
        self._timeout = timeout
        self._http = session or requests

    def session_id(self) -> Optional[str]:
        resp = self._http.get(self._url, timeout=self._timeout)
        resp.raise_for_status()
        ip = resp.json().get("ip")
        return ip.strip() if isinstance(ip, str) and ip.strip() else None


class StaticSource:
    name = "static"

    def __init__(self, value: str = DEFAULT_FALLBACK_ID):
        self._value = value

    def session_id(self) -> Optional[str]:
        return self._value


class SessionResolver:
    def __init__(self, sources: Iterable[SessionIdSource], fallback: str = DEFAULT_FALLBACK_ID):
        self._sources: List[SessionIdSource] = list(sources)
        self._fallback = fallback
        self.resolved_by: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Dict[str, Any], access_key: Optional[str] = None) -> "SessionResolver":
        cfg = settings.get("session", {})
        fallback = cfg.get("fallback_id") or DEFAULT_FALLBACK_ID
        return cls(
            [
                AccessKeySource(access_key),
                PublicIPSource(
                    url=cfg.get("ip_lookup_url") or DEFAULT_IP_LOOKUP_URL,
                    timeout=float(cfg.get("ip_lookup_timeout") or DEFAULT_TIMEOUT),
                ),
                StaticSource(fallback),
            ],
            fallback=fallback,
        )

    def resolve(self) -> str:
        for source in self._sources:
            try:
                sid = source.session_id()
            except (requests.RequestException, ValueError, AttributeError) as exc:
                # ValueError covers a non-JSON body, AttributeError a non-object one
                log.warning("Session id source %s failed: %s", source.name, exc)
                continue
            if sid:
                self.resolved_by = source.name
                log.info("Session id resolved via %s", source.name)
                return sid
        self.resolved_by = "fallback"
        return self._fallback
