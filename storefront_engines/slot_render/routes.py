from __future__ import annotations

from fastapi import APIRouter, Depends

from storefront_engines.common.error_envelope import error_response
from storefront_engines.common.identity import RequestContext, get_request_context
from storefront_engines.slot_config.tree import SlotTreeError
from storefront_engines.slot_render.models import RenderRequest, RenderResponse
from storefront_engines.slot_render.service import get_slot_render_service

router = APIRouter(prefix="/slot-render", tags=["slot_render"])


@router.post("/{page_type}", response_model=RenderResponse)
def render_page(
    page_type: str,
    payload: RenderRequest,
    context: RequestContext = Depends(get_request_context),
):
    try:
        return get_slot_render_service().render_page(
            context,
            page_type,
            context=payload.context,
            mode=payload.mode,
            viewport=payload.viewport,
            view_mode=payload.view_mode,
            use_demo_data=payload.use_demo_data,
        )
    except SlotTreeError as exc:
        error_response(
            code=exc.code,
            message=str(exc),
            status_code=422,
            resource_kind="slot_render",
            details={"slot_id": exc.slot_id, "page_type": page_type},
        )
