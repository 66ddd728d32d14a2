from typing import List

from fastapi import APIRouter, HTTPException

from markdowntailor.core.templates import Template, get_template, list_templates

router = APIRouter()


@router.get("/api/templates", response_model=List[Template])
async def templates_index():
    return list_templates()


@router.get("/api/templates/{slug}", response_model=Template)
async def template_detail(slug: str):
    template = get_template(slug)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Template {slug} not found")
    return template
