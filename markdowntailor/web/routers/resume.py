from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from markdowntailor.core.db import get_resumes, get_versions
from markdowntailor.core.models.resume import Resume, ResumeVersion
from markdowntailor.core.render import preview_context
from markdowntailor.core.repositories import ResumeRepository, ResumeVersionRepository
from markdowntailor.core.templates import get_template

router = APIRouter()

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


class ResumeIn(BaseModel):
    title: str
    markdown: str = ""
    css: str = ""
    styles: str = "{}"


class ResumePatch(BaseModel):
    title: Optional[str] = None
    markdown: Optional[str] = None
    css: Optional[str] = None
    styles: Optional[str] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


def _not_found(resume_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Resume {resume_id} not found")


@router.get("/api/resumes", response_model=List[Resume])
async def list_resumes(resumes: ResumeRepository = Depends(get_resumes)):
    return await resumes.find_all()


@router.post("/api/resumes", response_model=Resume, status_code=201)
async def create_resume(payload: ResumeIn, resumes: ResumeRepository = Depends(get_resumes)):
    return await resumes.create(**payload.model_dump())


@router.post("/api/resumes/from-template/{slug}", response_model=Resume, status_code=201)
async def create_resume_from_template(slug: str, resumes: ResumeRepository = Depends(get_resumes)):
    template = get_template(slug)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Template {slug} not found")
    return await resumes.create_from_template(template)


@router.get("/api/resumes/{resume_id}", response_model=Resume)
async def get_resume(resume_id: str, resumes: ResumeRepository = Depends(get_resumes)):
    resume = await resumes.find_by_id(resume_id)
    if resume is None:
        raise _not_found(resume_id)
    return resume


@router.patch("/api/resumes/{resume_id}", response_model=Resume)
async def update_resume(resume_id: str, payload: ResumePatch, resumes: ResumeRepository = Depends(get_resumes)):
    resume = await resumes.update(resume_id, **payload.changes())
    if resume is None:
        raise _not_found(resume_id)
    return resume


@router.delete("/api/resumes/{resume_id}", status_code=204)
async def delete_resume(resume_id: str, resumes: ResumeRepository = Depends(get_resumes)):
    await resumes.delete(resume_id)
    return Response(status_code=204)


@router.post("/api/resumes/{resume_id}/duplicate", response_model=Resume, status_code=201)
async def duplicate_resume(resume_id: str, resumes: ResumeRepository = Depends(get_resumes)):
    copy = await resumes.duplicate(resume_id)
    if copy is None:
        raise _not_found(resume_id)
    return copy


@router.post("/api/resumes/{resume_id}/save", response_model=Resume)
async def save_resume(resume_id: str, payload: ResumePatch, resumes: ResumeRepository = Depends(get_resumes)):
    resume = await resumes.save_and_version(resume_id, **payload.changes())
    if resume is None:
        raise _not_found(resume_id)
    return resume


@router.get("/api/resumes/{resume_id}/versions", response_model=List[ResumeVersion])
async def list_versions(
    resume_id: str,
    resumes: ResumeRepository = Depends(get_resumes),
    versions: ResumeVersionRepository = Depends(get_versions),
):
    if await resumes.find_by_id(resume_id) is None:
        raise _not_found(resume_id)
    return await versions.find_all_by_resume_id(resume_id)


@router.post("/api/versions/{version_id}/restore", response_model=Resume)
async def restore_version(version_id: str, resumes: ResumeRepository = Depends(get_resumes)):
    resume = await resumes.restore_from_version(version_id)
    if resume is None:
        raise HTTPException(status_code=404, detail=f"Version {version_id} not found")
    return resume


@router.get("/resumes/{resume_id}/preview", response_class=HTMLResponse)
async def resume_preview(request: Request, resume_id: str, resumes: ResumeRepository = Depends(get_resumes)):
    resume = await resumes.find_by_id(resume_id)
    if resume is None:
        raise _not_found(resume_id)
    ctx = {"request": request, "title": resume.title, **preview_context(resume.markdown, resume.css, resume.styles)}
    return templates.TemplateResponse(request, "resume_preview.html", ctx)


@router.get("/resumes/versions/{version_id}/preview", response_class=HTMLResponse)
async def version_preview(
    request: Request, version_id: str, versions: ResumeVersionRepository = Depends(get_versions)
):
    version = await versions.find_by_id(version_id)
    if version is None:
        raise HTTPException(status_code=404, detail=f"Version {version_id} not found")
    ctx = {
        "request": request,
        "title": f"{version.title} (v{version.version})",
        **preview_context(version.markdown, version.css, version.styles),
    }
    return templates.TemplateResponse(request, "resume_preview.html", ctx)
