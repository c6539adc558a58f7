from fastapi import APIRouter, Depends
from flowsmith.api.deps import get_generation_service
from flowsmith.core.security import CurrentUser, get_current_user
from flowsmith.schemas.generation import GenerateRequest, GenerateResponse
from flowsmith.services.generation_service import GenerationContext, GenerationService

router = APIRouter()

@router.post("/generate", response_model=GenerateResponse)
async def generate_workflow(
    request: GenerateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: GenerationService = Depends(get_generation_service),
):
    context = GenerationContext(
        session_id=request.session_id or f"user:{current_user.id}",
        history=[m.model_dump() for m in request.messages],
        owner_id=current_user.id,
    )
    result = await service.generate(context)
    return GenerateResponse(
        content=result.raw_text,
        workflow=result.graph.to_payload() if result.graph else None,
        isValid=result.is_valid,
        explanation=result.explanation,
        errors=result.errors,
    )
