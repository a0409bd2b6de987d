"""
Onboarding API Routes

Render boundary for chat front ends:
- GET  /onboarding/state                   - Active context, session draft, apps, progress
- POST /onboarding/actions                 - Submit one user action
- GET  /onboarding/session/messages        - Transcript of the app being registered
- GET  /onboarding/apps                    - Registered apps with their steps
- GET  /onboarding/apps/{app_id}/messages  - One app's transcript
- GET  /onboarding/steps                   - Preview the steps for a platform/framework/environment
- GET  /onboarding/progress                - Per-app and overall progress
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel

from onboarding.flow.controller import FlowController, UserAction
from onboarding.steps.graph import build_steps

router = APIRouter()


def get_flow(request: Request) -> FlowController:
    return request.app.state.flow


# =============================================================================
# Request/Response Models
# =============================================================================


class ActionRequest(BaseModel):
    """One user action."""

    kind: str  # answer, text, skip, add-app, step-click, expand
    app_id: str | None = None
    prompt: str | None = None
    value: Any = None
    text: str | None = None
    step_id: str | None = None


class ActionResponse(BaseModel):
    success: bool
    context: str
    code: str | None = None
    error: str | None = None
    pending: str | None = None


class StepPreview(BaseModel):
    id: str
    phase: int
    title: str
    description: str
    category: str
    status: str


class ProgressResponse(BaseModel):
    overall: float
    apps: dict[str, float]


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/state")
async def get_state(flow: FlowController = Depends(get_flow)) -> dict[str, Any]:
    """Snapshot of the whole conversation state."""
    return flow.snapshot()


@router.post("/actions", response_model=ActionResponse)
async def post_action(request: ActionRequest, flow: FlowController = Depends(get_flow)):
    """Apply a user action; waits for the bot's reply when settle_actions is on."""
    result = await flow.dispatch(UserAction.from_dict(request.model_dump()))
    if flow.config.api.settle_actions:
        await flow.settle()

    context = result.get("context", "session")
    try:
        pending = flow.transcript(context).pending_kind
    except LookupError:
        pending = None

    return ActionResponse(
        success=result["success"],
        context=context,
        code=result.get("code"),
        error=result.get("error"),
        pending=pending,
    )


@router.get("/session/messages")
async def get_session_messages(flow: FlowController = Depends(get_flow)) -> list[dict[str, Any]]:
    return flow.session.transcript.to_list()


@router.get("/apps")
async def list_apps(flow: FlowController = Depends(get_flow)) -> list[dict[str, Any]]:
    return [
        {**app.to_dict(), "progress": flow.registry.progress(app.id)}
        for app in flow.registry
    ]


@router.get("/apps/{app_id}/messages")
async def get_app_messages(app_id: str, flow: FlowController = Depends(get_flow)) -> list[dict[str, Any]]:
    if app_id not in flow.registry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No app with id {app_id}")
    return flow.registry.get(app_id).transcript.to_list()


@router.get("/steps", response_model=list[StepPreview])
async def preview_steps(
    platforms: str = Query(..., description="Comma separated: ios,android,web"),
    environment: str = Query("production"),
    framework: str | None = Query(None),
):
    """Steps an app with these choices would get."""
    selected = [x.strip() for x in platforms.split(",") if x.strip()]
    try:
        steps = build_steps(selected, framework or None, environment)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return [StepPreview(**s.to_dict()) for s in steps]


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(flow: FlowController = Depends(get_flow)):
    return ProgressResponse(
        overall=flow.registry.overall_progress(),
        apps={app.id: flow.registry.progress(app.id) for app in flow.registry},
    )
