"""Request dependencies shared by the routers."""
from __future__ import annotations

from fastapi import HTTPException, Request

from beatkit.api.workspace import Workspace


def get_workspace(request: Request) -> Workspace:
    """The app's workspace, opened from config on first use."""
    workspace = getattr(request.app.state, "workspace", None)
    if workspace is None:
        try:
            workspace = Workspace.from_config()
        except LookupError as exc:
            raise HTTPException(503, str(exc))
        except OSError as exc:
            raise HTTPException(503, f"Cannot open document: {exc}")
        request.app.state.workspace = workspace
    return workspace
