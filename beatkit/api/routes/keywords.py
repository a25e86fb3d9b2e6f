"""
Keywords panel endpoints.

GET  /keywords           Panel HTML
GET  /keywords/state     Panel view model
POST /keywords/call      Call bridge: {"method": ..., "args": [...]}
POST /keywords/refresh   Rescan now, skipping the debounce
"""
from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from beatkit.api.deps import get_workspace
from beatkit.api.workspace import Workspace
from beatkit.tags.session import BRIDGE_METHODS
from beatkit.tags.view import KeywordsView, render_html

log = structlog.get_logger(__name__)
router = APIRouter()


class CallRequest(BaseModel):
    method: str
    args: list[Any] = []


class CallResponse(BaseModel):
    result: Any = None
    state: KeywordsView


class RefreshResponse(BaseModel):
    refreshed: bool
    state: KeywordsView


@router.get("", response_class=HTMLResponse)
def panel(workspace: Workspace = Depends(get_workspace)):
    return HTMLResponse(render_html(workspace.session.render_state()))


@router.get("/state", response_model=KeywordsView)
def state(workspace: Workspace = Depends(get_workspace)):
    return workspace.session.render_state()


@router.post("/call", response_model=CallResponse)
def call(req: CallRequest, workspace: Workspace = Depends(get_workspace)):
    """Invoke one whitelisted session method.  Anything else is a 400."""
    if req.method not in BRIDGE_METHODS:
        raise HTTPException(400, f"Unknown method: {req.method}")
    try:
        result = workspace.session.dispatch(req.method, req.args)
    except (TypeError, ValueError) as exc:
        log.warning("api.call_rejected", method=req.method, error=str(exc))
        raise HTTPException(400, str(exc))
    workspace.settle()
    return CallResponse(result=jsonable_encoder(result), state=workspace.session.render_state())


@router.post("/refresh", response_model=RefreshResponse)
def refresh(workspace: Workspace = Depends(get_workspace)):
    refreshed = workspace.session.refresh()
    return RefreshResponse(refreshed=refreshed, state=workspace.session.render_state())
