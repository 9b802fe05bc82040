from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

import requests

from free_data_integration.adapters import build_adapter, specialized_source
from free_data_integration.adapters.base import AdapterFactory
from free_data_integration.adapters.http import build_session
from free_data_integration.config import Settings, get_settings
from free_data_integration.extract import norm_ws
from free_data_integration.models import (
    AdapterRequest,
    AdapterResult,
    AggregationReport,
    PropertyData,
    SourceOutcome,
)
from free_data_integration.registry import (
    SourceConfig,
    canonicalize_source_name,
    get_source,
    lookup,
    normalize_location,
    resolve_jurisdiction,
    source_counts,
    supported_summary,
)


logger = logging.getLogger("fdi.aggregator")

COUNTY_RECORDS = "county_records"


def select_sources(
    configs: Sequence[SourceConfig],
    cap: int,
    preferred: Iterable[str] = (),
) -> List[SourceConfig]:
    """Order by preferred names, then priority, then registration order; keep ``cap``."""

    rank = {canonicalize_source_name(name): idx for idx, name in enumerate(preferred)}
    indexed = list(enumerate(configs))

    def sort_key(item: Tuple[int, SourceConfig]):
        idx, config = item
        preferred_rank = rank.get(canonicalize_source_name(config.name), rank.get(config.key, len(rank)))
        return (preferred_rank, config.priority, idx)

    ordered = [config for _, config in sorted(indexed, key=sort_key)]
    return ordered[: max(0, cap)]


def dedupe_properties(properties: Iterable[PropertyData]) -> List[PropertyData]:
    """Drop address-less records and exact ``address|city|state`` repeats; first one wins."""

    seen = set()
    out: List[PropertyData] = []
    for prop in properties:
        if prop is None or not norm_ws(prop.address):
            continue
        key = prop.dedupe_key()
        if key in seen:
            continue
        seen.add(key)
        out.append(prop)
    return out


def _sources_phrase(count: int) -> str:
    return f"{count} source" if count == 1 else f"{count} sources"


def summarize(
    properties: Sequence[PropertyData],
    outcomes: Sequence[SourceOutcome],
    *,
    state: str,
    stopped_reason: Optional[str] = None,
) -> str:
    succeeded = [o for o in outcomes if o.succeeded]
    failed = [o for o in outcomes if not o.succeeded]
    if properties:
        contributed = ", ".join(f"{o.name} ({o.access_method}: {o.found})" for o in succeeded)
        message = (
            f"Found {len(properties)} properties from {len(succeeded)} of "
            f"{_sources_phrase(len(outcomes))}: {contributed}."
        )
        if failed:
            message += f" {_sources_phrase(len(failed))} returned no data: {', '.join(o.name for o in failed)}."
    else:
        message = (
            f"No properties found for {state}. Attempted {_sources_phrase(len(outcomes))}; "
            "none returned usable data (access restrictions, authentication required "
            "or anti-scraping protection)."
        )
        reasons = "; ".join(o.message for o in failed if o.message)
        if reasons:
            message += f" Details: {reasons}"
    if stopped_reason:
        message += f" Stopped early: {stopped_reason}."
    return message


class Aggregator:
    """Run the sources for one request sequentially and merge what comes back.

    Sources are never dispatched concurrently: a politeness delay separates
    every pair of consecutive calls. A failing source is recorded and the run
    moves on.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        session_factory: Callable[[], requests.Session] = build_session,
        adapter_factory: AdapterFactory = build_adapter,
        lookup_fn: Callable[[str], Sequence[SourceConfig]] = lookup,
        sleep: Optional[Callable[[float], None]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.settings = settings or get_settings()
        self.session_factory = session_factory
        self.adapter_factory = adapter_factory
        self.lookup_fn = lookup_fn
        self._sleep = sleep
        self._clock = clock

    def _now(self) -> float:
        return self._clock() if self._clock is not None else time.monotonic()

    def _pause(self) -> None:
        delay = self.settings.delay_s
        if delay <= 0:
            return
        if self._sleep is not None:
            self._sleep(delay)
        else:
            time.sleep(delay)

    def dispatch(
        self,
        config: SourceConfig,
        request: AdapterRequest,
        session: Optional[requests.Session],
    ) -> Tuple[List[PropertyData], SourceOutcome]:
        try:
            adapter = self.adapter_factory(config, session, self.settings)
            result = adapter.adapt(request)
        except Exception as exc:
            logger.warning("%s raised past its adapter: %s", config.name, exc)
            result = AdapterResult.empty(f"{config.name} failed: {exc}")
        kept = [p for p in result.properties if p is not None and norm_ws(p.address)]
        outcome = SourceOutcome(
            name=config.name,
            access_method=config.access_method,
            found=len(kept),
            message=result.message,
            status="success" if kept else "failed",
        )
        logger.info("%s (%s): %s", config.name, outcome.status, result.message)
        return kept, outcome

    def plan(self, location: str, source: Optional[str] = None) -> Tuple[Optional[SourceConfig], List[SourceConfig]]:
        """Return (specialized source, generic sources) without any network access."""

        name = canonicalize_source_name(source or "")
        if name and name != COUNTY_RECORDS:
            config = get_source(name)
            return None, [config] if config is not None else []
        special = specialized_source(resolve_jurisdiction(location))
        configs = list(self.lookup_fn(location))
        return special, select_sources(configs, self.settings.max_sources, self.settings.priority_sources)

    def run(self, request, cancel_event: Optional[threading.Event] = None) -> AggregationReport:
        started = self._now()
        location = normalize_location(request.location)
        adapter_request = AdapterRequest(
            location=request.location,
            property_type=getattr(request, "property_type", None),
            radius=getattr(request, "radius", None),
        )
        source = canonicalize_source_name(getattr(request, "source", None) or "")
        single = bool(source) and source != COUNTY_RECORDS

        special = None
        if single:
            config = get_source(source)
            if config is None:
                return AggregationReport(
                    properties=[],
                    sources_attempted=0,
                    total_found=0,
                    message=f"Unknown data source: {source}",
                )
            configs: List[SourceConfig] = [config]
        else:
            special = specialized_source(location.state)
            configs = list(self.lookup_fn(request.location))
            if not configs and special is None:
                where = location.state if location.state != "Unknown" else norm_ws(request.location)
                return AggregationReport(
                    properties=[],
                    sources_attempted=0,
                    total_found=0,
                    message=(
                        f"County records not available for {where}. "
                        f"Currently supported: {supported_summary()}"
                    ),
                )

        session = self.session_factory()
        collected: List[PropertyData] = []
        outcomes: List[SourceOutcome] = []
        special_outcome: Optional[SourceOutcome] = None
        stopped_reason: Optional[str] = None
        try:
            if special is not None:
                found, special_outcome = self.dispatch(special, adapter_request, session)
                collected.extend(found)
                outcomes.append(special_outcome)

            if not single:
                cap = self.settings.max_sources
                if special_outcome is not None and special_outcome.succeeded:
                    cap = self.settings.max_sources_after_specialized
                configs = select_sources(configs, cap, self.settings.priority_sources)

            for config in configs:
                if cancel_event is not None and cancel_event.is_set():
                    stopped_reason = "request cancelled"
                    break
                if self._now() - started >= self.settings.request_budget_s:
                    stopped_reason = f"request budget of {self.settings.request_budget_s:g}s exhausted"
                    break
                if outcomes:
                    self._pause()
                found, outcome = self.dispatch(config, adapter_request, session)
                collected.extend(found)
                outcomes.append(outcome)
        finally:
            close = getattr(session, "close", None)
            if callable(close):
                close()

        if stopped_reason:
            logger.warning("Aggregation for %r stopped early: %s", request.location, stopped_reason)

        properties = dedupe_properties(collected)
        if single and outcomes:
            message = outcomes[0].message
        else:
            message = self._message(properties, outcomes, special_outcome, location.state, stopped_reason)
        logger.info(
            "Aggregated %d properties for %r from %d sources",
            len(properties),
            request.location,
            len(outcomes),
        )
        return AggregationReport(
            properties=properties,
            sources_attempted=len(outcomes),
            total_found=len(properties),
            message=message,
            outcomes=outcomes,
        )

    def _message(
        self,
        properties: Sequence[PropertyData],
        outcomes: Sequence[SourceOutcome],
        special_outcome: Optional[SourceOutcome],
        state: str,
        stopped_reason: Optional[str],
    ) -> str:
        message = summarize(properties, outcomes, state=state, stopped_reason=stopped_reason)
        if not properties:
            counts = source_counts(state)
            if counts["total"]:
                message += (
                    f" {state} has {counts['total']} configured sources "
                    f"({counts['public_api']} public APIs, {counts['web_scraping']} web scraping "
                    f"endpoints, {counts['data_download']} data downloads)."
                )
        if special_outcome is not None and special_outcome.message:
            message = f"{special_outcome.message}. {message}"
        return message
