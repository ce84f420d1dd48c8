"""
Workspace state - the server-held model behind the editor UI.

A workspace tracks the prompt, the current SiteArtifact, which editor tab is
showing, and one state machine per long-running action (generate, deploy).
"""
from typing import Dict, Any, Optional
from enum import Enum
from dataclasses import dataclass, field
from html import escape
import time
import uuid

from site_engine.config import settings
from site_engine.logging_config import logger
from site_engine.services.errors import ActionInFlightError, ErrorKind, SiteEngineError
from site_engine.services.site_artifact import SiteArtifact
from site_engine.services.site_composer import build_deploy_files, compose


PLACEHOLDER_HTML = """
<div class="container">
  <div class="content">
    <div class="logo">&#9889;</div>
    <h1>Your Creation Awaits</h1>
    <p>Describe the website you want to build in the prompt above, and watch it appear here.</p>
  </div>
</div>
"""

PLACEHOLDER_CSS = """
body {
  margin: 0;
  font-family: 'Inter', sans-serif;
  display: flex;
  align-items: center;
  justify-content: center;
  min-height: 100vh;
  background: linear-gradient(135deg, #f0f4f8, #d9e2ec);
  color: #334155;
}
.container { text-align: center; padding: 2rem; }
.content { max-width: 500px; margin: auto; }
.logo { font-size: 4rem; line-height: 1; margin-bottom: 1rem; }
h1 { font-weight: 900; font-size: 2.5rem; color: #1e293b; margin-bottom: 0.5rem; }
p { font-size: 1rem; color: #475569; line-height: 1.6; }
"""

ERROR_PANEL_CSS = """
body { margin: 0; font-family: sans-serif; }
.error-container { padding: 2rem; text-align: center; color: #b91c1c; }
.error-container h2 { font-size: 1.5rem; font-weight: bold; margin-bottom: 0.5rem; }
.error-container pre { text-align: left; white-space: pre-wrap; color: #475569; }
"""


def placeholder_artifact() -> SiteArtifact:
    return SiteArtifact(html=PLACEHOLDER_HTML, css=PLACEHOLDER_CSS, js="")


class EditorTab(str, Enum):
    """Code editor tabs, one per artifact field"""
    HTML = "html"
    CSS = "css"
    JS = "js"


class ActionStatus(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ActionState:
    """idle -> in_flight -> done | failed; a new run may start from any state but in_flight"""
    name: str
    status: ActionStatus = ActionStatus.IDLE
    error: Optional[Dict[str, Any]] = None

    @property
    def busy(self) -> bool:
        return self.status == ActionStatus.IN_FLIGHT

    def begin(self) -> None:
        if self.busy:
            raise ActionInFlightError(f"{self.name.capitalize()} already in progress")
        self.status = ActionStatus.IN_FLIGHT
        self.error = None

    def succeed(self) -> None:
        self.status = ActionStatus.DONE
        self.error = None

    def fail(self, error: Dict[str, Any]) -> None:
        self.status = ActionStatus.FAILED
        self.error = error

    def reset(self) -> None:
        self.status = ActionStatus.IDLE
        self.error = None

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status.value, "error": self.error}


@dataclass
class WorkspaceState:
    """Everything the editor UI shows for one session"""
    workspace_id: str
    prompt: str = ""
    artifact: SiteArtifact = field(default_factory=placeholder_artifact)
    active_tab: EditorTab = EditorTab.HTML
    generation: ActionState = field(default_factory=lambda: ActionState("generation"))
    deployment: ActionState = field(default_factory=lambda: ActionState("deployment"))
    deploy_url: Optional[str] = None
    last_active: float = field(default_factory=time.monotonic)

    @property
    def busy(self) -> bool:
        return self.generation.busy or self.deployment.busy

    def touch(self) -> None:
        self.last_active = time.monotonic()

    @property
    def preview(self) -> str:
        """Preview document; an error panel replaces the site after a failed generation"""
        if self.generation.status == ActionStatus.FAILED and self.generation.error:
            return compose(error_panel(self.generation.error))
        return compose(self.artifact)

    def select_tab(self, tab: EditorTab) -> None:
        self.active_tab = tab

    def edit(self, tab: EditorTab, content: str) -> None:
        self.artifact = self.artifact.model_copy(update={tab.value: content})
        if self.generation.status == ActionStatus.FAILED:
            self.generation.reset()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workspace_id": self.workspace_id,
            "prompt": self.prompt,
            "active_tab": self.active_tab.value,
            "html": self.artifact.html,
            "css": self.artifact.css,
            "js": self.artifact.js,
            "generation": self.generation.to_dict(),
            "deployment": self.deployment.to_dict(),
            "deploy_url": self.deploy_url,
        }


def error_panel(error: Dict[str, Any]) -> SiteArtifact:
    """Inline error page shown in place of the preview"""
    message = escape(str(error.get("error", "Unknown error")))
    kind = escape(str(error.get("kind", "")))
    detail = error.get("raw") or error.get("details") or ""
    html = (
        '<div class="error-container">'
        '<h2>An error occurred</h2>'
        f'<p>{message} ({kind})</p>'
        f'<pre>{escape(str(detail))}</pre>'
        '</div>'
    )
    return SiteArtifact(html=html, css=ERROR_PANEL_CSS, js="")


class WorkspaceManager:
    """In-memory workspace store plus the generate/deploy flows"""

    def __init__(self, max_sessions: int = None, idle_ttl: float = None):
        self.sessions: Dict[str, WorkspaceState] = {}
        self.max_sessions = settings.WORKSPACE_MAX_SESSIONS if max_sessions is None else max_sessions
        self.idle_ttl = settings.WORKSPACE_IDLE_TTL if idle_ttl is None else idle_ttl

    def create_session(self) -> WorkspaceState:
        self.prune()

        # Evict least recently used idle workspaces to stay under the cap
        while len(self.sessions) >= self.max_sessions:
            idle = [s for s in self.sessions.values() if not s.busy]
            if not idle:
                break
            oldest = min(idle, key=lambda s: s.last_active)
            del self.sessions[oldest.workspace_id]
            logger.info("Workspace evicted", workspace_id=oldest.workspace_id)

        workspace_id = str(uuid.uuid4())
        state = WorkspaceState(workspace_id=workspace_id)
        self.sessions[workspace_id] = state
        logger.info("Workspace created", workspace_id=workspace_id)
        return state

    def get_session(self, workspace_id: str) -> Optional[WorkspaceState]:
        self.prune()
        state = self.sessions.get(workspace_id)
        if state is not None:
            state.touch()
        return state

    def prune(self) -> int:
        """Drop workspaces idle for longer than ``idle_ttl`` seconds"""
        cutoff = time.monotonic() - self.idle_ttl
        expired = [
            workspace_id
            for workspace_id, state in self.sessions.items()
            if not state.busy and state.last_active < cutoff
        ]
        for workspace_id in expired:
            del self.sessions[workspace_id]
        if expired:
            logger.info("Expired idle workspaces", count=len(expired))
        return len(expired)

    def delete_session(self, workspace_id: str) -> bool:
        return self.sessions.pop(workspace_id, None) is not None

    async def generate(self, state: WorkspaceState, generator, prompt: Optional[str] = None) -> WorkspaceState:
        """Replace the artifact with a freshly generated one"""
        state.generation.begin()
        if prompt is not None:
            state.prompt = prompt

        try:
            artifact = await generator.generate(state.prompt)
        except SiteEngineError as e:
            state.generation.fail(e.to_payload())
            logger.warning(
                "Workspace generation failed",
                workspace_id=state.workspace_id,
                kind=e.kind.value
            )
            return state
        except Exception:
            state.generation.fail({"error": "Generation failed unexpectedly", "kind": ErrorKind.INTERNAL.value})
            raise

        state.artifact = artifact
        state.active_tab = EditorTab.HTML
        state.generation.succeed()
        return state

    async def deploy(self, state: WorkspaceState, deployer) -> WorkspaceState:
        """Ship the current artifact; failures are kept on the deployment state"""
        state.deployment.begin()
        try:
            result = await deployer.deploy(build_deploy_files(state.artifact))
        except SiteEngineError as e:
            state.deployment.fail(e.to_payload())
            state.deploy_url = None
            logger.warning(
                "Workspace deploy failed",
                workspace_id=state.workspace_id,
                kind=e.kind.value
            )
            return state
        except Exception:
            state.deployment.fail({"error": "Deployment failed unexpectedly", "kind": ErrorKind.INTERNAL.value})
            raise

        state.deploy_url = result.url
        state.deployment.succeed()
        return state


# Global workspace manager instance
workspace_manager = WorkspaceManager()
