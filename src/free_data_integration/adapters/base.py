from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Optional

import requests

from free_data_integration.config import Settings, api_key, get_settings
from free_data_integration.models import AdapterRequest, AdapterResult, PropertyData
from free_data_integration.registry import SourceConfig


logger = logging.getLogger("fdi.adapters")


class SourceResponseError(Exception):
    """A source answered, but not with a usable 2xx payload."""

    def __init__(self, status_code: Optional[int], detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}" if detail else f"HTTP {status_code}")


class SourceConfigurationError(Exception):
    """Missing API key or other local configuration for a source."""


class SourceAdapter(ABC):
    """Translate one external source into ``PropertyData`` records.

    Subclasses implement ``fetch``; callers only ever use ``adapt``, which
    never raises. Whatever goes wrong inside ``fetch`` is reported as an
    empty result with a message naming the source.
    """

    adapter_key: str = ""

    def __init__(
        self,
        config: SourceConfig,
        session: Optional[requests.Session] = None,
        settings: Optional[Settings] = None,
    ):
        self.config = config
        self.session = session
        self.settings = settings or get_settings()

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def access_method(self) -> str:
        return self.config.access_method

    @property
    def timeout(self) -> float:
        return self.settings.timeout_s

    def _require_key(self) -> Optional[str]:
        env = self.config.api_key_env
        if not env:
            return None
        key = api_key(env)
        if key is None and self.config.api_key_required:
            raise SourceConfigurationError(f"{self.name} API key not configured")
        return key

    def _check(self, response) -> None:
        status = getattr(response, "status_code", None)
        if status is None or status >= 400:
            raise SourceResponseError(status, getattr(response, "reason", "") or "")

    def _get(self, url: str, **kwargs):
        if self.session is None:
            raise SourceConfigurationError(f"{self.name} has no HTTP session")
        kwargs.setdefault("timeout", self.timeout)
        response = self.session.get(url, **kwargs)
        self._check(response)
        return response

    def _post(self, url: str, **kwargs):
        if self.session is None:
            raise SourceConfigurationError(f"{self.name} has no HTTP session")
        kwargs.setdefault("timeout", self.timeout)
        response = self.session.post(url, **kwargs)
        self._check(response)
        return response

    def adapt(self, request: AdapterRequest) -> AdapterResult:
        try:
            result = self.fetch(request)
        except SourceConfigurationError as exc:
            logger.info("%s skipped: %s", self.name, exc)
            return AdapterResult.empty(str(exc))
        except SourceResponseError as exc:
            logger.warning("%s returned an error response: %s", self.name, exc)
            suffix = f" (HTTP {exc.status_code})" if exc.status_code else ""
            return AdapterResult.empty(f"{self.name} returned an error response{suffix}")
        except requests.Timeout:
            logger.warning("%s timed out after %.1fs", self.name, self.timeout)
            return AdapterResult.empty(f"{self.name} request timed out")
        except ValueError as exc:
            # json decoding errors subclass ValueError
            logger.warning("%s returned malformed data: %s", self.name, exc)
            return AdapterResult.empty(f"{self.name} returned malformed data")
        except Exception as exc:
            logger.warning("%s failed: %s", self.name, exc)
            return AdapterResult.empty(f"{self.name} is currently unavailable")
        kept = tuple(p for p in result.properties if p is not None and p.address)
        logger.info("%s: %d record(s)", self.name, len(kept))
        return AdapterResult(properties=kept, message=result.message)

    @abstractmethod
    def fetch(self, request: AdapterRequest) -> AdapterResult:
        raise NotImplementedError


def collect(candidates: Iterable[Optional[PropertyData]], limit: Optional[int] = None) -> List[PropertyData]:
    out: List[PropertyData] = []
    for candidate in candidates:
        if candidate is None:
            continue
        out.append(candidate)
        if limit is not None and len(out) >= limit:
            break
    return out


def map_records(records: Iterable, convert: Callable, source_name: str = "") -> Iterable[Optional[PropertyData]]:
    """Yield converted records, skipping ones that blow up mid-conversion."""

    for record in records:
        try:
            yield convert(record)
        except (TypeError, ValueError, AttributeError, KeyError, ArithmeticError) as exc:
            logger.debug("%s: skipping unparseable record: %s", source_name, exc)
            continue


_ADAPTERS: Dict[str, type] = {}


def register_adapter(cls: type) -> type:
    key = (getattr(cls, "adapter_key", "") or "").strip().lower()
    if not key:
        raise ValueError("adapter_key is required")
    _ADAPTERS[key] = cls
    return cls


def get_adapter_class(adapter_key: str) -> type:
    key = (adapter_key or "").strip().lower()
    cls = _ADAPTERS.get(key)
    if cls is None:
        raise KeyError(f"Unknown adapter: {adapter_key}")
    return cls


def list_adapters() -> List[str]:
    return sorted(_ADAPTERS.keys())


AdapterFactory = Callable[[SourceConfig, Optional[requests.Session], Optional[Settings]], SourceAdapter]
