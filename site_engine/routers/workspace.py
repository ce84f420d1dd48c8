"""
Workspace API router.

Backs the editor page: prompt, tabbed code editor, live preview and the
generate/deploy actions, each guarded by its own in-flight state.
"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
from typing import Optional, Dict, Any

from site_engine.dependencies import get_deployer, get_generator, get_workspace_manager
from site_engine.logging_config import logger
from site_engine.services.netlify_deployer import NetlifyDeployer
from site_engine.services.site_generator import SiteGenerator
from site_engine.services.workspace import EditorTab, WorkspaceManager, WorkspaceState

router = APIRouter()


class ActionStateResponse(BaseModel):
    status: str
    error: Optional[Dict[str, Any]] = None


class WorkspaceResponse(BaseModel):
    """Response model for workspace state"""
    workspace_id: str
    prompt: str
    active_tab: str
    html: str
    css: str
    js: str
    generation: ActionStateResponse
    deployment: ActionStateResponse
    deploy_url: Optional[str] = None


class PromptRequest(BaseModel):
    prompt: str


class TabRequest(BaseModel):
    tab: EditorTab


class EditRequest(BaseModel):
    content: str


class GenerateRequest(BaseModel):
    """Request model for generating into a workspace; omitting prompt reuses the stored one"""
    prompt: Optional[str] = None


def _get_state(workspace_id: str, manager: WorkspaceManager) -> WorkspaceState:
    state = manager.get_session(workspace_id)
    if state is None:
        raise HTTPException(status_code=404, detail=f"Workspace {workspace_id} not found")
    return state


@router.post("/workspaces", response_model=WorkspaceResponse)
async def create_workspace(manager: WorkspaceManager = Depends(get_workspace_manager)):
    """Start a workspace showing the placeholder site"""
    return manager.create_session().to_dict()


@router.get("/workspaces/{workspace_id}", response_model=WorkspaceResponse)
async def get_workspace(workspace_id: str, manager: WorkspaceManager = Depends(get_workspace_manager)):
    return _get_state(workspace_id, manager).to_dict()


@router.delete("/workspaces/{workspace_id}")
async def delete_workspace(workspace_id: str, manager: WorkspaceManager = Depends(get_workspace_manager)):
    if not manager.delete_session(workspace_id):
        raise HTTPException(status_code=404, detail=f"Workspace {workspace_id} not found")
    return {"success": True}


@router.get("/workspaces/{workspace_id}/preview", response_class=HTMLResponse)
async def get_preview(workspace_id: str, manager: WorkspaceManager = Depends(get_workspace_manager)):
    """Composed document for the preview iframe"""
    return HTMLResponse(_get_state(workspace_id, manager).preview)


@router.put("/workspaces/{workspace_id}/prompt", response_model=WorkspaceResponse)
async def set_prompt(
    workspace_id: str,
    data: PromptRequest,
    manager: WorkspaceManager = Depends(get_workspace_manager)
):
    state = _get_state(workspace_id, manager)
    state.prompt = data.prompt
    return state.to_dict()


@router.put("/workspaces/{workspace_id}/tab", response_model=WorkspaceResponse)
async def select_tab(
    workspace_id: str,
    data: TabRequest,
    manager: WorkspaceManager = Depends(get_workspace_manager)
):
    state = _get_state(workspace_id, manager)
    state.select_tab(data.tab)
    return state.to_dict()


@router.put("/workspaces/{workspace_id}/files/{tab}", response_model=WorkspaceResponse)
async def edit_file(
    workspace_id: str,
    tab: EditorTab,
    data: EditRequest,
    manager: WorkspaceManager = Depends(get_workspace_manager)
):
    """Replace one code field; the preview reflects it immediately"""
    state = _get_state(workspace_id, manager)
    state.edit(tab, data.content)
    return state.to_dict()


@router.post("/workspaces/{workspace_id}/generate", response_model=WorkspaceResponse)
async def generate_into_workspace(
    workspace_id: str,
    data: GenerateRequest,
    manager: WorkspaceManager = Depends(get_workspace_manager),
    generator: SiteGenerator = Depends(get_generator)
):
    """
    Generate a site from the workspace prompt.

    Generation failures are reported in ``generation.error`` and the preview
    switches to an error panel. A second call while one is running gets 409.
    """
    state = _get_state(workspace_id, manager)
    prompt = data.prompt if data.prompt is not None else state.prompt
    if not prompt.strip():
        raise HTTPException(status_code=422, detail="Prompt must not be empty")

    logger.info("Workspace generation requested", workspace_id=workspace_id)
    await manager.generate(state, generator, prompt)
    return state.to_dict()


@router.post("/workspaces/{workspace_id}/deploy", response_model=WorkspaceResponse)
async def deploy_workspace(
    workspace_id: str,
    manager: WorkspaceManager = Depends(get_workspace_manager),
    deployer: NetlifyDeployer = Depends(get_deployer)
):
    """
    Deploy the current site.

    On success ``deploy_url`` is set; failures land in ``deployment.error``,
    separate from generation errors.
    """
    state = _get_state(workspace_id, manager)
    logger.info("Workspace deploy requested", workspace_id=workspace_id)
    await manager.deploy(state, deployer)
    return state.to_dict()
