"""
API routes for the carousel editor.
"""

import asyncio
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel

from slidemint.config import get_settings
from slidemint.design_templates import list_aspect_ratios, list_cover_styles, list_templates
from slidemint.exceptions import (
    CarouselNotFound,
    ExportInProgressError,
    InvalidStyleError,
    PersistenceError,
    SlideMintError,
    StructuralInvariantViolation,
)
from slidemint.services.content_generator import DEFAULT_STYLE, STYLES
from slidemint.services.deck_editor import CarouselEditor
from slidemint.services.exporter import CarouselExporter, ExportResult
from slidemint.services.rasterizer import render_png
from slidemint.services.sessions import EditorRegistry
from slidemint.services.slide_renderer import DISPLAY, INTERACTIVE, build_render_params, get_renderer
from slidemint.services.text_direction import slide_direction

router = APIRouter()


# Request/Response Models

class CreateCarouselRequest(BaseModel):
    text: str
    style: str = DEFAULT_STYLE
    content_type: str = "full_post"
    user_id: Optional[str] = None


class RenameRequest(BaseModel):
    name: str


class StyleUpdate(BaseModel):
    template: Optional[str] = None
    cover_style: Optional[str] = None
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    accent_color: Optional[str] = None
    aspect_ratio: Optional[str] = None


class ContentUpdate(BaseModel):
    post_content: Optional[str] = None
    content_type: Optional[str] = None


class SlideUpdate(BaseModel):
    title: Optional[str] = None
    body: Optional[str] = None


class ReorderRequest(BaseModel):
    from_position: int
    to_position: int


class SelectRequest(BaseModel):
    position: int


class BeginEditRequest(BaseModel):
    position: int
    field: str


class CommitEditRequest(BaseModel):
    value: Optional[str] = None


# Dependencies

def get_registry(request: Request) -> EditorRegistry:
    return request.app.state.registry


def get_exporter(request: Request) -> CarouselExporter:
    return request.app.state.exporter


def to_http_error(e: SlideMintError) -> HTTPException:
    if isinstance(e, CarouselNotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InvalidStyleError):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, (StructuralInvariantViolation, ExportInProgressError, PersistenceError)):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


async def open_editor(carousel_id: str, registry: EditorRegistry) -> CarouselEditor:
    try:
        return await registry.open(carousel_id)
    except CarouselNotFound as e:
        raise to_http_error(e)


def deck_response(editor: CarouselEditor, registry: Optional[EditorRegistry] = None) -> dict:
    carousel = editor.carousel
    data = carousel.model_dump(mode="json")
    for slide in data["slides"]:
        slide["direction"] = slide_direction(slide["title"], slide["body"]).value
    data["selected_index"] = editor.selected_index
    data["editing"] = (
        {"position": editor.session.position, "field": editor.session.field}
        if editor.session else None
    )
    error = registry.pop_error(carousel.id) if registry else None
    data["save_error"] = str(error) if error else None
    return data


def download(result: ExportResult) -> Response:
    headers = {
        "Content-Disposition": f"attachment; filename*=UTF-8''{quote(result.filename)}",
        "X-Failed-Slides": str(result.failed_count),
        "X-Total-Slides": str(result.total_count),
    }
    return Response(content=result.content, media_type=result.media_type, headers=headers)


# Routes

@router.get("/catalog/templates")
async def get_templates():
    """Get all available templates."""
    return list_templates()


@router.get("/catalog/cover-styles")
async def get_cover_styles():
    """Get all available cover styles."""
    return list_cover_styles()


@router.get("/catalog/aspect-ratios")
async def get_aspect_ratios():
    """Get all available aspect ratios."""
    return list_aspect_ratios()


@router.get("/catalog/styles")
async def get_writing_styles():
    """Writing styles accepted by carousel generation."""
    return list(STYLES)


@router.post("/carousels", status_code=201)
async def create_carousel(request: CreateCarouselRequest, registry: EditorRegistry = Depends(get_registry)):
    """Generate slides from text and create a new deck."""
    if not request.text or not request.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")
    try:
        carousel = await registry.repository.create(
            request.text, request.style, user_id=request.user_id, content_type=request.content_type,
        )
    except SlideMintError as e:
        raise to_http_error(e)
    return deck_response(registry.attach(carousel))


@router.get("/carousels")
async def list_carousels(
    user_id: Optional[str] = None,
    q: Optional[str] = Query(default=None, description="Search names and slide text"),
    registry: EditorRegistry = Depends(get_registry),
):
    carousels = await registry.repository.list(user_id=user_id, query=q)
    return [
        {
            "id": c.id,
            "carousel_name": c.carousel_name,
            "slide_count": len(c.slides),
            "template": c.template.value,
            "cover_style": c.cover_style.value,
            "aspect_ratio": c.aspect_ratio.value,
            "read_only": c.read_only,
            "updated_at": c.updated_at.isoformat() if c.updated_at else None,
        }
        for c in carousels
    ]


@router.get("/carousels/{carousel_id}")
async def get_carousel(carousel_id: str, registry: EditorRegistry = Depends(get_registry)):
    editor = await open_editor(carousel_id, registry)
    return deck_response(editor, registry)


@router.delete("/carousels/{carousel_id}")
async def delete_carousel(carousel_id: str, registry: EditorRegistry = Depends(get_registry)):
    try:
        await registry.repository.delete(carousel_id)
    except SlideMintError as e:
        raise to_http_error(e)
    registry.forget(carousel_id)
    return {"status": "deleted", "id": carousel_id}


@router.post("/carousels/{carousel_id}/duplicate", status_code=201)
async def duplicate_carousel(carousel_id: str, registry: EditorRegistry = Depends(get_registry)):
    # Pending edits go into the copy
    await registry.saver.flush(carousel_id)
    try:
        carousel = await registry.repository.duplicate(carousel_id)
    except SlideMintError as e:
        raise to_http_error(e)
    return deck_response(registry.attach(carousel))


@router.patch("/carousels/{carousel_id}/name")
async def rename_carousel(carousel_id: str, request: RenameRequest, registry: EditorRegistry = Depends(get_registry)):
    if not request.name.strip():
        raise HTTPException(status_code=400, detail="Name is required")
    editor = await open_editor(carousel_id, registry)
    editor.rename(request.name)
    return deck_response(editor, registry)


@router.patch("/carousels/{carousel_id}/style")
async def update_style(carousel_id: str, request: StyleUpdate, registry: EditorRegistry = Depends(get_registry)):
    editor = await open_editor(carousel_id, registry)
    try:
        editor.apply_style(**request.model_dump(exclude_none=True))
    except SlideMintError as e:
        raise to_http_error(e)
    return deck_response(editor, registry)


@router.patch("/carousels/{carousel_id}/content")
async def update_content(carousel_id: str, request: ContentUpdate, registry: EditorRegistry = Depends(get_registry)):
    """Post text and content type live in the local override store."""
    editor = await open_editor(carousel_id, registry)
    fields = request.model_dump(exclude_none=True)
    await registry.repository.save(carousel_id, fields)
    for name, value in fields.items():
        setattr(editor.carousel, name, value)
    return deck_response(editor, registry)


@router.post("/carousels/{carousel_id}/save")
async def save_now(carousel_id: str, registry: EditorRegistry = Depends(get_registry)):
    """Flush pending edits instead of waiting for the autosave delay."""
    editor = await open_editor(carousel_id, registry)
    await registry.saver.flush(carousel_id)
    return deck_response(editor, registry)


# Slides

@router.post("/carousels/{carousel_id}/slides", status_code=201)
async def add_slide(carousel_id: str, registry: EditorRegistry = Depends(get_registry)):
    editor = await open_editor(carousel_id, registry)
    editor.add_slide()
    return deck_response(editor, registry)


@router.post("/carousels/{carousel_id}/slides/reorder")
async def reorder_slide(carousel_id: str, request: ReorderRequest, registry: EditorRegistry = Depends(get_registry)):
    editor = await open_editor(carousel_id, registry)
    try:
        editor.reorder_slide(request.from_position, request.to_position)
    except SlideMintError as e:
        raise to_http_error(e)
    return deck_response(editor, registry)


@router.post("/carousels/{carousel_id}/select")
async def select_slide(carousel_id: str, request: SelectRequest, registry: EditorRegistry = Depends(get_registry)):
    editor = await open_editor(carousel_id, registry)
    try:
        editor.select(request.position)
    except SlideMintError as e:
        raise to_http_error(e)
    return deck_response(editor, registry)


@router.patch("/carousels/{carousel_id}/slides/{position}")
async def update_slide(
    carousel_id: str, position: int, request: SlideUpdate, registry: EditorRegistry = Depends(get_registry)
):
    editor = await open_editor(carousel_id, registry)
    try:
        editor.update_slide(position, title=request.title, body=request.body)
    except SlideMintError as e:
        raise to_http_error(e)
    return deck_response(editor, registry)


@router.delete("/carousels/{carousel_id}/slides/{position}")
async def delete_slide(carousel_id: str, position: int, registry: EditorRegistry = Depends(get_registry)):
    editor = await open_editor(carousel_id, registry)
    try:
        editor.delete_slide(position)
    except SlideMintError as e:
        raise to_http_error(e)
    return deck_response(editor, registry)


@router.post("/carousels/{carousel_id}/slides/{position}/duplicate", status_code=201)
async def duplicate_slide(carousel_id: str, position: int, registry: EditorRegistry = Depends(get_registry)):
    editor = await open_editor(carousel_id, registry)
    try:
        editor.duplicate_slide(position)
    except SlideMintError as e:
        raise to_http_error(e)
    return deck_response(editor, registry)


# Inline editing

@router.post("/carousels/{carousel_id}/edit/begin")
async def begin_edit(carousel_id: str, request: BeginEditRequest, registry: EditorRegistry = Depends(get_registry)):
    editor = await open_editor(carousel_id, registry)
    try:
        editor.begin_edit(request.position, request.field)
    except SlideMintError as e:
        raise to_http_error(e)
    return deck_response(editor, registry)


@router.post("/carousels/{carousel_id}/edit/commit")
async def commit_edit(carousel_id: str, request: CommitEditRequest, registry: EditorRegistry = Depends(get_registry)):
    editor = await open_editor(carousel_id, registry)
    if editor.session is None:
        raise HTTPException(status_code=409, detail="No edit in progress")
    if request.value is not None:
        editor.set_draft(request.value)
    committed = editor.commit_edit()
    data = deck_response(editor, registry)
    data["committed"] = committed
    return data


@router.post("/carousels/{carousel_id}/edit/cancel")
async def cancel_edit(carousel_id: str, registry: EditorRegistry = Depends(get_registry)):
    editor = await open_editor(carousel_id, registry)
    editor.cancel_edit()
    return deck_response(editor, registry)


# Preview

@router.get("/carousels/{carousel_id}/slides/{position}/frame")
async def slide_frame(
    carousel_id: str,
    position: int,
    mode: str = Query(default=INTERACTIVE, pattern=f"^({INTERACTIVE}|{DISPLAY})$"),
    registry: EditorRegistry = Depends(get_registry),
):
    """Laid-out scene graph for the slide; interactive mode marks title/body editable."""
    editor = await open_editor(carousel_id, registry)
    if not 0 <= position < len(editor.slides):
        raise HTTPException(status_code=404, detail="Slide not found")
    params = build_render_params(editor.carousel, position, mode)
    frame = await asyncio.to_thread(get_renderer().render, params)
    return frame.to_dict()


@router.get("/carousels/{carousel_id}/slides/{position}/preview.png")
async def slide_preview(carousel_id: str, position: int, registry: EditorRegistry = Depends(get_registry)):
    """Preview image, painted from the same layout as the export."""
    editor = await open_editor(carousel_id, registry)
    if not 0 <= position < len(editor.slides):
        raise HTTPException(status_code=404, detail="Slide not found")
    params = build_render_params(editor.carousel, position, INTERACTIVE)
    frame = await asyncio.to_thread(get_renderer().render, params)
    png = await asyncio.to_thread(render_png, frame, get_settings().upscale_factor)
    return Response(content=png, media_type="image/png")


# Export

@router.get("/carousels/{carousel_id}/export")
async def export_carousel(
    carousel_id: str,
    registry: EditorRegistry = Depends(get_registry),
    exporter: CarouselExporter = Depends(get_exporter),
):
    """ZIP of every slide. X-Failed-Slides reports slides that could not be exported."""
    editor = await open_editor(carousel_id, registry)
    try:
        result = await exporter.export_deck(editor.carousel)
    except SlideMintError as e:
        raise to_http_error(e)
    return download(result)


@router.get("/carousels/{carousel_id}/slides/{position}/export")
async def export_slide(
    carousel_id: str,
    position: int,
    registry: EditorRegistry = Depends(get_registry),
    exporter: CarouselExporter = Depends(get_exporter),
):
    editor = await open_editor(carousel_id, registry)
    if not 0 <= position < len(editor.slides):
        raise HTTPException(status_code=404, detail="Slide not found")
    try:
        result = await exporter.export_single_slide(editor.carousel, position)
    except SlideMintError as e:
        raise to_http_error(e)
    return download(result)
