"""
Cue list endpoints.

GET /cues                 Detected cue types and cues (?type= filters)
GET /cues/export/{fmt}    csv | html | qlab rendering of the cue list
"""
from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel

from beatkit.api.deps import get_workspace
from beatkit.api.workspace import Workspace
from beatkit.cues.detect import ALL, Cue, filter_cues
from beatkit.cues.export import EXPORTERS, render_export

log = structlog.get_logger(__name__)
router = APIRouter()

MEDIA_TYPES = {
    "csv": "text/csv",
    "html": "text/html",
    "qlab": "text/plain",
}


class CueList(BaseModel):
    types: list[str]
    filter_type: str
    cues: list[Cue]


@router.get("", response_model=CueList)
def list_cues(type: str = ALL, workspace: Workspace = Depends(get_workspace)):
    detection = workspace.cues()
    return CueList(types=detection.types, filter_type=type, cues=filter_cues(detection.cues, type))


@router.get("/export/{fmt}")
def export(fmt: str, type: str = ALL, workspace: Workspace = Depends(get_workspace)):
    if fmt not in EXPORTERS:
        raise HTTPException(404, f"Unknown export format: {fmt}. Available: {sorted(EXPORTERS)}")
    cues = workspace.cues().cues
    if not filter_cues(cues, type):
        raise HTTPException(404, "No cues found to export")
    content = render_export(cues, fmt, type)
    log.info("api.cues_exported", fmt=fmt, filter_type=type)
    return Response(content, media_type=MEDIA_TYPES[fmt])
