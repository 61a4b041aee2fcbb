# delivery/api/render.py
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from photoforge.config.settings import settings
from photoforge.domain.errors import RenderError
from photoforge.infrastructure.imaging.image_process import EMPTY_PNG

router = APIRouter()
logger = logging.getLogger("uvicorn.error")

DEFAULT_QR_TEMPLATE = "default"

_FRAME_ERRORS = {
    400: "bad request",
    404: "not found",
    503: "service unavailable",
}


def _upstream(source: str) -> str:
    base = settings.MEDIA_UPSTREAM_URL
    if not base.endswith("/"):
        base += "/"
    return base + source.lstrip("/")


def _int_or_none(value: Optional[str]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _empty_png(status_code: int) -> Response:
    return Response(content=EMPTY_PNG, status_code=status_code, media_type="image/png")


def _service(request: Request):
    return request.app.state.template_service


def _is_image_key(key: str) -> bool:
    return key == "source" or key.startswith("img_source")


def generic_values(request: Request, name: str, source: Optional[str]) -> Dict[str, str]:
    """Bind values for a generic template: the query string, lower-cased keys.

    Image keys always resolve under the media upstream, so a query value
    never picks its own scheme or host.
    """
    values = {}
    for k, v in request.query_params.items():
        k = k.lower()
        values[k] = _upstream(v) if _is_image_key(k) else v
    if source is not None:
        values["source"] = _upstream(source)
    values["template"] = name
    return values


async def _render_generic(request: Request, name: str, source: Optional[str]) -> Response:
    template = request.app.state.generic_templates.get(name)
    if template is None:
        logger.error(f"template {name} not found")
        return _empty_png(400)

    values = generic_values(request, name, source)
    try:
        out = await _service(request).render_template(template, values, _int_or_none(values.get("width")), "jpeg")
    except RenderError as e:
        return _empty_png(e.status_code)
    return Response(content=out, media_type="image/jpeg")


@router.get("/template/{name}")
async def render_generic(request: Request, name: str):
    return await _render_generic(request, name, None)


@router.get("/template/{name}/{source:path}")
async def render_generic_source(request: Request, name: str, source: str):
    return await _render_generic(request, name, source)


@router.get("/qr/{name}")
async def render_qr(request: Request, name: str, payload: str = "", size: Optional[int] = None):
    templates = request.app.state.qr_templates
    template = templates.get(name) or templates.get(DEFAULT_QR_TEMPLATE)
    if template is None:
        logger.error(f"qr template {name} not found and no {DEFAULT_QR_TEMPLATE} template")
        return _empty_png(400)

    try:
        out = await _service(request).render_template(template, {"qr_payload": payload}, size, "png")
    except RenderError as e:
        return _empty_png(e.status_code)
    return Response(content=out, media_type="image/png")


@router.get("/fb/{source:path}")
async def render_frame(request: Request, source: str, template: str = "",
                       price: Optional[str] = None, promotion_price: Optional[str] = None):
    tmpl = request.app.state.fb_templates.get(template)
    if tmpl is None:
        return PlainTextResponse("template not found", status_code=400)

    try:
        out = await _service(request).render_frame(tmpl, _upstream(source), _int_or_none(price),
                                                   _int_or_none(promotion_price))
    except RenderError as e:
        status_code = e.status_code
        return PlainTextResponse(_FRAME_ERRORS.get(status_code, "internal error"), status_code=status_code)
    return Response(content=out, media_type="image/jpeg")
