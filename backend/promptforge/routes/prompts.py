"""Prompts API routes."""
import uuid
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from pydantic import ValidationError

from promptforge.dependencies import get_clock, get_current_user_id, get_store
from promptforge.errors import ImportParseError
from promptforge.models.prompt import Prompt
from promptforge.schemas.common import DeleteResponse
from promptforge.schemas.prompt import (
    ConflictCheckResponse,
    ImportRequest,
    PromptCreate,
    PromptResponse,
    PromptUpdate,
    PublicPermissionUpdate,
    VisibilityToggle,
)
from promptforge.schemas.variable import (
    RenderRequest,
    RenderResponse,
    VariableResponse,
    VariableSetUpdate,
)
from promptforge.services.exporter import export_data, export_filename, export_media_type, generate_export
from promptforge.services.importer import parse_import_content
from promptforge.services.prompts import OWNER, PromptService
from promptforge.services.store import PromptStore
from promptforge.services.versioning import VersionService

router = APIRouter(prefix="/api/prompts", tags=["prompts"])


def _service(store: PromptStore = Depends(get_store), clock=Depends(get_clock)) -> PromptService:
    return PromptService(store, clock)


@router.get("", response_model=list[PromptResponse])
async def list_prompts(
    search: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    favorites: bool = Query(False),
    user_id: str = Depends(get_current_user_id),
    service: PromptService = Depends(_service),
):
    """Prompts owned by or shared with the caller, most recently updated first."""
    prompts = await service.list_prompts(user_id, search=search, tag=tag, favorites_only=favorites)
    results = []
    for prompt in prompts:
        results.append(_to_response(prompt, await service.effective_permission(prompt, user_id)))
    return results


@router.post("", response_model=PromptResponse, status_code=201)
async def create_prompt(
    body: PromptCreate,
    user_id: str = Depends(get_current_user_id),
    service: PromptService = Depends(_service),
):
    """Create a prompt together with its 1.0.0 (or given) initial version."""
    prompt = await service.create_prompt(user_id, body.model_dump())
    return _to_response(prompt, OWNER)


@router.post("/import", response_model=PromptResponse, status_code=201)
async def import_prompt(
    body: ImportRequest,
    user_id: str = Depends(get_current_user_id),
    service: PromptService = Depends(_service),
):
    """Create a prompt from JSON, Markdown or plain pasted text."""
    parsed = parse_import_content(body.content)
    try:
        data = PromptCreate.model_validate({**parsed["prompt"], "variables": parsed["variables"]})
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ImportParseError("INVALID_FORMAT", f"{field}: {first['msg']}", field=field)
    prompt = await service.create_prompt(user_id, data.model_dump())
    return _to_response(prompt, OWNER)


@router.get("/{prompt_id}", response_model=PromptResponse)
async def get_prompt(
    prompt_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    service: PromptService = Depends(_service),
):
    prompt, permission = await service.get_for_read(prompt_id, user_id)
    return _to_response(prompt, permission)


@router.put("/{prompt_id}", response_model=PromptResponse)
async def update_prompt(
    prompt_id: uuid.UUID,
    body: PromptUpdate,
    user_id: str = Depends(get_current_user_id),
    service: PromptService = Depends(_service),
):
    """Update a prompt. Only provided fields change.

    Send ``expectedUpdatedAt`` to get a 409 EDIT_CONFLICT when someone else
    saved in the meantime; ``force`` saves anyway.
    """
    prompt = await service.update_prompt(prompt_id, user_id, body.model_dump(exclude_unset=True))
    _, permission = await service.get_for_read(prompt_id, user_id)
    return _to_response(prompt, permission)


@router.delete("/{prompt_id}", response_model=DeleteResponse)
async def delete_prompt(
    prompt_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    service: PromptService = Depends(_service),
):
    """Delete a prompt with its variables, versions and shares. Owner only."""
    await service.delete_prompt(prompt_id, user_id)
    return {"deleted": True, "id": str(prompt_id)}


@router.get("/{prompt_id}/conflict-check", response_model=ConflictCheckResponse)
async def conflict_check(
    prompt_id: uuid.UUID,
    since: datetime = Query(...),
    user_id: str = Depends(get_current_user_id),
    service: PromptService = Depends(_service),
):
    """Has the prompt been saved after ``since``? Advisory only."""
    detector = await service.check_conflict(prompt_id, user_id, since)
    return {"has_conflict": detector.has_conflict, "server_updated_at": detector.server_updated_at}


@router.post("/{prompt_id}/duplicate", response_model=PromptResponse, status_code=201)
async def duplicate_prompt(
    prompt_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    service: PromptService = Depends(_service),
):
    prompt = await service.duplicate_prompt(prompt_id, user_id)
    return _to_response(prompt, OWNER)


@router.post("/{prompt_id}/favorite", response_model=PromptResponse)
async def toggle_favorite(
    prompt_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    service: PromptService = Depends(_service),
):
    prompt = await service.toggle_favorite(prompt_id, user_id)
    return _to_response(prompt, OWNER)


@router.post("/{prompt_id}/visibility", response_model=PromptResponse)
async def toggle_visibility(
    prompt_id: uuid.UUID,
    body: Optional[VisibilityToggle] = None,
    user_id: str = Depends(get_current_user_id),
    service: PromptService = Depends(_service),
):
    """Flip PRIVATE/SHARED. ``publicPermission`` applies when going SHARED."""
    public_permission = body.public_permission if body else None
    prompt = await service.toggle_visibility(prompt_id, user_id, public_permission)
    return _to_response(prompt, OWNER)


@router.put("/{prompt_id}/public-permission", response_model=PromptResponse)
async def update_public_permission(
    prompt_id: uuid.UUID,
    body: PublicPermissionUpdate,
    user_id: str = Depends(get_current_user_id),
    service: PromptService = Depends(_service),
):
    prompt = await service.update_public_permission(prompt_id, user_id, body.public_permission)
    return _to_response(prompt, OWNER)


@router.get("/{prompt_id}/variables", response_model=list[VariableResponse])
async def list_variables(
    prompt_id: uuid.UUID,
    user_id: str = Depends(get_current_user_id),
    service: PromptService = Depends(_service),
):
    prompt, _ = await service.get_for_read(prompt_id, user_id)
    return [_variable_to_response(v) for v in prompt.variables]


@router.put("/{prompt_id}/variables", response_model=list[VariableResponse])
async def replace_variables(
    prompt_id: uuid.UUID,
    body: VariableSetUpdate,
    user_id: str = Depends(get_current_user_id),
    service: PromptService = Depends(_service),
):
    """Replace the variable set. Variables are matched by name, so ids survive."""
    prompt = await service.replace_variables(prompt_id, user_id, [v.model_dump() for v in body.variables])
    return [_variable_to_response(v) for v in prompt.variables]


@router.post("/{prompt_id}/render", response_model=RenderResponse)
async def render_prompt(
    prompt_id: uuid.UUID,
    body: RenderRequest,
    user_id: str = Depends(get_current_user_id),
    service: PromptService = Depends(_service),
):
    return await service.render(prompt_id, user_id, body.values)


@router.get("/{prompt_id}/export")
async def export_prompt(
    prompt_id: uuid.UUID,
    fmt: Literal["json", "markdown", "toon"] = Query("json", alias="format"),
    include_versions: bool = Query(False, alias="includeVersions"),
    user_id: str = Depends(get_current_user_id),
    store: PromptStore = Depends(get_store),
    clock=Depends(get_clock),
):
    """Download a prompt as JSON, Markdown or TOON."""
    versions_service = VersionService(store, clock)
    prompt, _ = await versions_service.prompts.get_for_read(prompt_id, user_id)
    versions = await versions_service.list_versions(prompt_id, user_id) if include_versions else []
    body = generate_export(export_data(prompt, versions), fmt, include_versions)
    return Response(
        content=body,
        media_type=export_media_type(fmt),
        headers={"Content-Disposition": f'attachment; filename="{export_filename(prompt.title, fmt)}"'},
    )


def _variable_to_response(variable) -> dict:
    return {
        "id": variable.id,
        "name": variable.name,
        "type": variable.type,
        "required": variable.required,
        "default_value": variable.default_value,
        "help": variable.help,
        "pattern": variable.pattern,
        "options": variable.options,
        "order_index": variable.order_index,
    }


def _to_response(prompt: Prompt, permission: Optional[str] = None) -> dict:
    """Convert SQLAlchemy model to response dict."""
    return {
        "id": prompt.id,
        "title": prompt.title,
        "description": prompt.description,
        "content": prompt.content,
        "tags": list(prompt.tags or []),
        "visibility": prompt.visibility,
        "public_permission": prompt.public_permission,
        "version": prompt.version,
        "is_favorite": prompt.is_favorite,
        "owner_id": prompt.owner_id,
        "created_at": prompt.created_at,
        "updated_at": prompt.updated_at,
        "variables": [_variable_to_response(v) for v in prompt.variables],
        "permission": permission,
    }
