from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, HTTPException, Query, Request

from supported_versions.application import (
    CascadeResult,
    ServerSupportReport,
    SupportedVersionsRuntime,
)
from supported_versions.domain import INBOUND_EVENTS, ServerRef

router = APIRouter(prefix="/servers", tags=["servers"])


def get_runtime(request: Request) -> SupportedVersionsRuntime:
    return request.app.state.runtime


def _server_payload(server: ServerRef) -> dict:
    source = server.supported_versions_source
    checked = server.last_successful_version_check
    return {
        "url": server.url,
        "title": server.title,
        "version": server.version,
        "uniqueId": server.unique_id,
        "fetchState": server.supported_versions_fetch_state,
        "source": source.value if source else None,
        "failureCount": server.version_check_failure_count,
        "lastSuccessfulVersionCheck": checked.isoformat() if checked else None,
        "supportedVersions": server.supported_versions.to_wire() if server.supported_versions else None,
    }


def _report_payload(report: ServerSupportReport) -> dict:
    status = report.status
    return {
        "url": report.url,
        "supported": status.supported,
        "expiration": status.expiration.isoformat() if status.expiration else None,
        "message": status.message.model_dump(mode="json", by_alias=True, exclude_none=True) if status.message else None,
        "translated": (
            {key: value for key, value in asdict(report.translated).items() if value is not None}
            if report.translated
            else None
        ),
    }


def _outcome_payload(result: CascadeResult) -> dict:
    return {
        "url": result.url,
        "source": result.source.value if result.source else None,
        "fresh": result.fresh,
        "supportedVersions": result.document.to_wire() if result.document else None,
    }


@router.get("")
async def list_servers(request: Request) -> dict:
    runtime = get_runtime(request)
    items = []
    for server in runtime.registry.list_servers():
        report = await runtime.service.get_support_status(server.url)
        payload = _server_payload(server)
        payload["supported"] = report.status.supported if report else True
        items.append(payload)
    return {"items": items}


@router.post("")
async def register_server(request: Request, payload: dict) -> dict:
    url = payload.get("url")
    if not url or not isinstance(url, str):
        raise HTTPException(status_code=400, detail="url is required")

    runtime = get_runtime(request)
    server = runtime.registry.add_server(url, title=payload.get("title"), version=payload.get("version"))
    return _server_payload(server)


@router.get("/status")
async def get_status(request: Request, url: str = Query(...), language: str = Query(default="en")) -> dict:
    runtime = get_runtime(request)
    report = await runtime.service.get_support_status(url, language=language)
    if report is None:
        raise HTTPException(status_code=404, detail="Server not found")
    return _report_payload(report)


@router.post("/events")
async def post_event(request: Request, payload: dict) -> dict:
    """Accept a host lifecycle event and route it to the scheduler bindings."""
    event_type = INBOUND_EVENTS.get(payload.get("type") or "")
    if event_type is None:
        raise HTTPException(
            status_code=400,
            detail=f"type must be one of: {', '.join(sorted(INBOUND_EVENTS))}",
        )
    url = payload.get("url")
    if not url or not isinstance(url, str):
        raise HTTPException(status_code=400, detail="url is required")

    runtime = get_runtime(request)
    if runtime.registry.get(url) is None:
        raise HTTPException(status_code=404, detail="Server not found")

    runtime.bus.dispatch(event_type(url=url))
    return {
        "type": event_type.type,
        "url": url,
        "pending": runtime.scheduler.has_pending_check(url),
    }


@router.post("/supported-versions/refresh")
async def refresh_supported_versions(request: Request, payload: dict) -> dict:
    server_url = payload.get("serverUrl")
    if not server_url or not isinstance(server_url, str):
        raise HTTPException(status_code=400, detail="serverUrl is required")

    runtime = get_runtime(request)
    result = await runtime.bindings.refresh(server_url)
    if result is None:
        raise HTTPException(status_code=404, detail="Server not found")
    return _outcome_payload(result)
