import json
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from free_data_integration.aggregator import Aggregator
from free_data_integration.api.schemas import FreeDataRequest
from free_data_integration.config import get_settings
from free_data_integration.models import AggregationReport
from free_data_integration.storage import SQLiteSink


logger = logging.getLogger("fdi.api")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def get_aggregator() -> Aggregator:
    return Aggregator(get_settings())


def get_sink() -> Optional[SQLiteSink]:
    path = get_settings().sqlite_path
    if not path:
        return None
    return SQLiteSink(path)


def health():
    return {"status": "ok"}


def _error(error: str, details: str) -> JSONResponse:
    return JSONResponse({"error": error, "details": details}, status_code=500, headers=CORS_HEADERS)


def _validation_details(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "body"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def store_report(report: AggregationReport, source: str) -> None:
    if not report.properties:
        return
    try:
        sink = get_sink()
    except Exception as exc:
        logger.warning("Record sink unavailable: %s", exc)
        return
    if sink is None:
        return
    try:
        sink.save(report.properties, source)
    except Exception as exc:
        logger.warning("Failed to store %d properties: %s", len(report.properties), exc)
    finally:
        sink.close()


def parse_body(raw: bytes) -> FreeDataRequest:
    payload = json.loads(raw.decode("utf-8") if raw else "")
    if not isinstance(payload, dict):
        raise ValueError("request body must be a JSON object")
    return FreeDataRequest.model_validate(payload)


app = FastAPI(title="free-data-integration")


@app.get("/health")
def health_route():
    return health()


@app.options("/free-data-integration")
def free_data_preflight():
    return Response(status_code=204, headers=CORS_HEADERS)


@app.post("/free-data-integration")
async def free_data_integration(request: Request):
    raw = await request.body()
    try:
        body = parse_body(raw)
    except ValidationError as exc:
        logger.info("Rejected request body: %s", exc)
        return _error("Invalid request", _validation_details(exc))
    except (ValueError, UnicodeDecodeError) as exc:
        # json.JSONDecodeError is a ValueError
        logger.info("Unparseable request body: %s", exc)
        return _error("Invalid JSON body", str(exc))

    logger.info("free-data-integration: source=%s location=%r", body.source, body.location)
    try:
        report = await run_in_threadpool(lambda: get_aggregator().run(body))
    except Exception as exc:
        logger.exception("Aggregation for %r failed", body.location)
        return _error("Aggregation failed", str(exc))
    await run_in_threadpool(store_report, report, body.source or "county_records")

    payload = report.to_dict()
    payload["success"] = True
    payload["timestamp"] = datetime.now(timezone.utc).isoformat()
    try:
        return JSONResponse(payload, status_code=200, headers=CORS_HEADERS)
    except ValueError as exc:
        # non-finite floats are rejected by the JSON renderer
        logger.exception("Could not render report for %r", body.location)
        return _error("Aggregation failed", str(exc))
