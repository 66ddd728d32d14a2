"""Built-in resume templates and style settings."""
from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ResumeStyles(BaseModel):
    font_family: str = "Inter"
    font_size: float = 12  # px
    line_height: float = 1.5
    margin_v: float = 30  # px
    margin_h: float = 30  # px
    paper_size: Literal["A4", "Letter"] = "A4"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ResumeStyles":
        """Decode a stored ``styles`` string, falling back to defaults when blank."""
        if not raw or not raw.strip():
            return cls()
        return cls.model_validate_json(raw)


DEFAULT_STYLES = ResumeStyles()


class TemplateTag(str, Enum):
    CREATIVE = "Creative"
    MODERN = "Modern"
    MINIMALIST = "Minimalist"


class Template(BaseModel):
    slug: str
    name: str
    description: str
    tags: List[TemplateTag] = Field(default_factory=list)
    markdown: str
    css: str
    styles: ResumeStyles = Field(default_factory=ResumeStyles)


_AGILE_ARCHER_MD = """\
# Agile Archer

Seattle, WA | agile.archer@email.com | [github.com/agilearcher](https://github.com/agilearcher)

## Professional Summary
Senior Software Engineer with 10+ years of experience building and running scalable web applications.

## Technical Skills
- **Languages**: Python, TypeScript, Go
- **Backend**: FastAPI, PostgreSQL, Redis
- **Cloud**: AWS, Docker, Kubernetes

## Professional Experience
**Senior Software Engineer** | Tech Solutions Inc. <span class="right">2018 - Present</span>
- Led a team of 5 engineers on an application serving 100K+ daily users
- Moved a monolith to services, tripling deploy frequency

## Education
**B.S. Computer Science** | University of Washington <span class="right">2010 - 2014</span>
"""

_AGILE_ARCHER_CSS = """\
h1, h2, h3 { color: #2c3e50; }
h2 { border-bottom: 1px solid #3498db; margin-top: 12px; }
a { color: #3498db; text-decoration: none; }
ul { list-style: disc; list-style-position: inside; padding-left: 0; }
.right { float: right; }
"""

_STEADY_EDDY_MD = """\
# Steady Eddy

Chicago, IL | steady.eddy@email.com

## Summary
Operations lead focused on reliable delivery and calm incident handling.

## Experience
**Operations Manager** | Midwest Logistics <span class="right">2016 - Present</span>
- Cut order fulfilment time by 20% across three warehouses
- Built the on-call rotation and runbooks now used company-wide
"""

_STEADY_EDDY_CSS = """\
h1 { text-align: center; letter-spacing: 2px; }
h2 { text-transform: uppercase; font-size: 14px; border-bottom: 2px solid #333333; }
.right { float: right; }
"""

_STARK_STERLING_MD = """\
# Stark Sterling

stark.sterling@email.com

## Experience
**Designer** | Plain Studio <span class="right">2019 - Present</span>
- Shipped a design system used by 12 product teams
"""

_STARK_STERLING_CSS = """\
h1 { font-weight: 300; }
h2 { font-weight: 400; color: #555555; }
.right { float: right; }
"""

TEMPLATES: List[Template] = [
    Template(
        slug="agile-archer",
        name="Agile Archer",
        description="A professional resume template for tech engineers.",
        tags=[TemplateTag.CREATIVE],
        markdown=_AGILE_ARCHER_MD,
        css=_AGILE_ARCHER_CSS,
        styles=ResumeStyles(paper_size="Letter", line_height=1.4, font_size=11, margin_v=45, margin_h=45),
    ),
    Template(
        slug="modern-professional",
        name="Steady Eddy",
        description="A clean, modern layout for experienced professionals.",
        tags=[TemplateTag.MODERN],
        markdown=_STEADY_EDDY_MD,
        css=_STEADY_EDDY_CSS,
        styles=ResumeStyles(font_family="Georgia"),
    ),
    Template(
        slug="stark-sterling",
        name="Stark Sterling",
        description="Minimal typography with plenty of whitespace.",
        tags=[TemplateTag.MINIMALIST],
        markdown=_STARK_STERLING_MD,
        css=_STARK_STERLING_CSS,
        styles=ResumeStyles(font_family="Arial", margin_v=40, margin_h=50),
    ),
]


def list_templates() -> List[Template]:
    return list(TEMPLATES)


def get_template(slug: str) -> Optional[Template]:
    for template in TEMPLATES:
        if template.slug == slug:
            return template
    return None
