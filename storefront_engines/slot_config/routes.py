from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from storefront_engines.common.error_envelope import error_response
from storefront_engines.common.identity import RequestContext, get_request_context
from storefront_engines.slot_config.defaults import default_page_types
from storefront_engines.slot_config.models import SaveDraftRequest
from storefront_engines.slot_config.service import get_slot_configuration_service
from storefront_engines.slot_config.tree import SlotTreeError

router = APIRouter(prefix="/slot-configurations", tags=["slot_configurations"])


def _invalid_tree(exc: SlotTreeError):
    return error_response(
        code=exc.code,
        message=str(exc),
        status_code=422,
        resource_kind="slot_configuration",
        details={"slot_id": exc.slot_id, "error": type(exc).__name__},
    )


@router.get("/page-types")
def list_default_page_types():
    return {"page_types": default_page_types()}


@router.get("/{page_type}/draft")
def get_draft(page_type: str, context: RequestContext = Depends(get_request_context)):
    return get_slot_configuration_service().get_draft(context, page_type).to_record()


@router.put("/{page_type}/draft")
def save_draft(
    page_type: str,
    payload: SaveDraftRequest,
    context: RequestContext = Depends(get_request_context),
):
    try:
        saved = get_slot_configuration_service().save_draft(
            context,
            page_type,
            payload.slots,
            feature_flags=payload.feature_flags,
            metadata=payload.metadata,
        )
    except SlotTreeError as exc:
        _invalid_tree(exc)
    return saved.to_record()


@router.post("/{page_type}/publish")
def publish(page_type: str, context: RequestContext = Depends(get_request_context)):
    try:
        published = get_slot_configuration_service().publish(context, page_type)
    except SlotTreeError as exc:
        _invalid_tree(exc)
    return published.to_record()


@router.get("/{page_type}/published")
def get_published(
    page_type: str,
    version: Optional[int] = None,
    context: RequestContext = Depends(get_request_context),
):
    return get_slot_configuration_service().get_published(context, page_type, version).to_record()


@router.get("/{page_type}/versions")
def list_versions(page_type: str, context: RequestContext = Depends(get_request_context)):
    return {"page_type": page_type, "versions": get_slot_configuration_service().list_versions(context, page_type)}
