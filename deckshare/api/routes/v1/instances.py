import logging

from fastapi import APIRouter, Depends, HTTPException

from deckshare.errors import ExhaustedRetries, NotFound, ValidationFailed
from deckshare.schemas.api import CreateInstanceRequest, CreateInstanceResponse
from deckshare.services.presentation import PresentationService, get_presentation_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["instances"])


@router.post(
    "/",
    response_model=CreateInstanceResponse,
    status_code=201,
    summary="커스터마이즈된 공유 인스턴스 생성",
    description="템플릿을 커스터마이즈해서 저장하고 공유 링크를 발급합니다.",
)
async def create_instance(
    body: CreateInstanceRequest,
    service: PresentationService = Depends(get_presentation_service),
) -> CreateInstanceResponse:
    logger.info(f"Create instance request: template={body.template_id}")
    try:
        issued = await service.create_instance(body.template_id, body.customization, body.origin)
    except NotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationFailed as e:
        raise HTTPException(status_code=422, detail={"message": e.message, "errors": e.errors})
    except ExhaustedRetries as e:
        logger.error(f"Token issuance failed: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    return CreateInstanceResponse(instance_id=issued.instance_id, token=issued.token, link=issued.link)
