from fastapi import APIRouter, Depends, HTTPException

from deckshare.catalog import TemplateCatalog, get_catalog
from deckshare.schemas.api import TemplateListResponse, TemplateSummary
from deckshare.schemas.template import Template

router = APIRouter(tags=["templates"])


@router.get("/", response_model=TemplateListResponse, summary="사용 가능한 템플릿 목록")
def list_templates(catalog: TemplateCatalog = Depends(get_catalog)) -> TemplateListResponse:
    """카탈로그에 등록된 모든 템플릿 요약"""
    return TemplateListResponse(
        templates=[
            TemplateSummary(
                id=template.id,
                name=template.name,
                description=template.description,
                slide_count=len(template.slides),
            )
            for template in catalog.list()
        ]
    )


@router.get("/{template_id}", response_model=Template, summary="템플릿 상세 조회")
def get_template(template_id: str, catalog: TemplateCatalog = Depends(get_catalog)) -> Template:
    template = catalog.get(template_id)
    if template is None:
        raise HTTPException(status_code=404, detail=f"Template not found: {template_id}")
    return template
