import logging

from fastapi import APIRouter, Depends, HTTPException

from deckshare.errors import NotFound, UnknownBranch
from deckshare.schemas.api import (
    CompleteResponse,
    NextSlideRequest,
    NextSlideResponse,
    ViewResponse,
)
from deckshare.services.presentation import PresentationService, get_presentation_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["view"])


@router.get("/{token}", response_model=ViewResponse, summary="공유 링크로 덱 열람")
async def open_presentation(
    token: str,
    service: PresentationService = Depends(get_presentation_service),
) -> ViewResponse:
    """토큰에 해당하는 커스터마이즈된 덱과 첫 슬라이드"""
    try:
        session = await service.open_by_token(token)
    except NotFound:
        # 잘못된/없는 토큰은 구분하지 않고 "이용 불가"
        raise HTTPException(status_code=404, detail="Presentation not available")
    except UnknownBranch as e:
        logger.error(f"Cannot open presentation: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    record = session.record
    return ViewResponse(
        instance_id=record.instance_id,
        template_id=record.presentation_id,
        status=record.status,
        first_slide_id=session.first_slide_id,
        forward_only=session.forward_only,
        presentation=record.template,
    )


@router.post("/{token}/next", response_model=NextSlideResponse, summary="다음 슬라이드 계산")
async def next_slide(
    token: str,
    body: NextSlideRequest,
    service: PresentationService = Depends(get_presentation_service),
) -> NextSlideResponse:
    try:
        navigation = await service.navigate(token, body.current_slide_id, body.answer, body.question_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Presentation not available")
    except UnknownBranch as e:
        raise HTTPException(status_code=422, detail=str(e))

    return NextSlideResponse(
        next_slide_id=navigation.next_slide_id,
        terminal=navigation.terminal,
        requires_input=navigation.requires_input,
    )


@router.post("/{token}/complete", response_model=CompleteResponse, summary="열람 완료 처리")
async def complete_presentation(
    token: str,
    service: PresentationService = Depends(get_presentation_service),
) -> CompleteResponse:
    """필수 질문이 남아 있으면 409 와 함께 질문 텍스트 목록을 돌려준다"""
    try:
        check = await service.complete(token)
    except NotFound:
        raise HTTPException(status_code=404, detail="Presentation not available")

    if not check.valid:
        raise HTTPException(
            status_code=409,
            detail={"message": "required questions are unanswered", "missing": check.missing},
        )
    return CompleteResponse(completed=True, missing=[])
