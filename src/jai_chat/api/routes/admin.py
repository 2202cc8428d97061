"""Admin endpoints for per-mode custom model configuration."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from jai_chat.api.deps import get_app, require_admin
from jai_chat.api.schemas import CustomModelConfigRequest
from jai_chat.app import JaiChatApp
from jai_chat.core.modes import resolve_mode
from jai_chat.errors import NotFoundError, ValidationError

router = APIRouter(
    prefix="/api/admin/custom-models",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


def _customizable_mode(mode_key: str) -> str:
    mode = resolve_mode(mode_key)
    if not mode.customizable:
        raise ValidationError(f"Mode '{mode_key}' does not support custom configuration")
    return mode.key


@router.get("")
async def list_configs(jai: JaiChatApp = Depends(get_app)) -> list[dict]:
    configs = await jai.custom_model_repo.list_configs()
    return [config.to_dict() for config in configs]


@router.get("/{mode_key}")
async def get_config(mode_key: str, jai: JaiChatApp = Depends(get_app)) -> dict:
    key = _customizable_mode(mode_key)
    config = await jai.custom_model_repo.get_config(key)
    if config is None:
        raise NotFoundError("Custom model config", key)
    return config.to_dict()


@router.put("/{mode_key}")
async def put_config(
    mode_key: str,
    body: CustomModelConfigRequest,
    jai: JaiChatApp = Depends(get_app),
) -> dict:
    key = _customizable_mode(mode_key)
    config = await jai.custom_model_repo.upsert_config(
        key,
        base_prompt=body.base_prompt,
        event_triggers=[t.model_dump() for t in body.event_triggers],
        random_injections=body.random_injections,
    )
    return config.to_dict()


@router.delete("/{mode_key}")
async def delete_config(mode_key: str, jai: JaiChatApp = Depends(get_app)) -> dict:
    key = _customizable_mode(mode_key)
    if not await jai.custom_model_repo.delete_config(key):
        raise NotFoundError("Custom model config", key)
    return {"success": True}
