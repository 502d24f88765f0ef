from fastapi import FastAPI, HTTPException, Query, Depends
from fastapi.responses import PlainTextResponse
from typing import List, Optional
from pathlib import Path
import logging
import os
import threading

from .models import ScanRequest, ScanSummary, RequirementRow, CacheStatus
from .security import verify_token, get_security_config
from ..adapters.workspace import Workspace
from ..core.aggregate import apply_filters, filter_block_types, filter_text, describe_requirements
from ..core.errors import CodocError
from ..core.models import DocResult, count_items, result_to_dict
from ..core.render import render_json, render_markdown

SERVICE_VERSION = os.getenv("CODOC_VERSION", "0.1.0")

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title="codoc", version=SERVICE_VERSION)


class ServiceState:
    workspace: Optional[Workspace] = None
    # Serializes scans; reads work on whatever result is current.
    scan_lock = threading.Lock()


state = ServiceState()


def init_service(project_root: Path, token: Optional[str] = None, config_path: Optional[Path] = None) -> Workspace:
    state.workspace = Workspace.open(project_root, config_path)
    get_security_config().set_token(token)
    # Prime from cache so reports work before the first scan.
    state.workspace.load_cached()
    return state.workspace


def _workspace() -> Workspace:
    if state.workspace is None:
        raise HTTPException(status_code=400, detail="Project root not configured")
    return state.workspace


def _current_result() -> DocResult:
    ws = _workspace()
    if ws.result is None:
        raise HTTPException(status_code=404, detail="No scan result yet; POST /api/scan first")
    return ws.result


def _filtered(req: Optional[List[str]], types: Optional[List[str]], q: Optional[str]) -> DocResult:
    result = apply_filters(_current_result(), req)
    result = filter_block_types(result, types)
    return filter_text(result, q)


@app.get("/api/health")
def health():
    return {"status": "ok", "version": SERVICE_VERSION}


@app.post("/api/scan", response_model=ScanSummary, dependencies=[Depends(verify_token)])
def api_scan(request: ScanRequest):
    ws = _workspace()
    with state.scan_lock:
        try:
            result = ws.scan(paths=request.paths, since=request.since, use_cache=request.use_cache)
        except CodocError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception as e:
            logger.exception("Scan failed")
            raise HTTPException(status_code=500, detail=str(e))

    return ScanSummary(
        timestamp=ws.timestamp,
        requirements=len(result),
        items=count_items(result),
        stats=ws.stats.to_dict(),
        req_ids=list(result.keys()),
    )


@app.get("/api/result", dependencies=[Depends(verify_token)])
def api_result(
    req: Optional[List[str]] = Query(None),
    type: Optional[List[str]] = Query(None),
    q: Optional[str] = None,
):
    return result_to_dict(_filtered(req, type, q))


@app.get("/api/requirements", response_model=List[RequirementRow], dependencies=[Depends(verify_token)])
def api_requirements():
    return [RequirementRow(req_id=r, description=d) for r, d in describe_requirements(_current_result())]


@app.get("/api/report", response_class=PlainTextResponse, dependencies=[Depends(verify_token)])
def api_report(
    req: Optional[List[str]] = Query(None),
    type: Optional[List[str]] = Query(None),
    q: Optional[str] = None,
    format: str = "md",
):
    if format not in ("md", "json"):
        raise HTTPException(status_code=400, detail="format must be 'md' or 'json'")

    result = _filtered(req, type, q)
    if format == "json":
        return PlainTextResponse(render_json(result), media_type="application/json")
    return PlainTextResponse(render_markdown(result, _workspace().config.links), media_type="text/markdown")


@app.get("/api/cache", response_model=CacheStatus, dependencies=[Depends(verify_token)])
def api_cache_status():
    return CacheStatus(**_workspace().cache.status())


@app.delete("/api/cache", dependencies=[Depends(verify_token)])
def api_cache_clear():
    if not _workspace().cache.clear():
        raise HTTPException(status_code=500, detail="Could not remove cache file")
    return {"status": "cleared"}
