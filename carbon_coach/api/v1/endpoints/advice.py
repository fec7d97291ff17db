# carbon_coach/api/v1/endpoints/advice.py
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from carbon_coach.api.deps import get_advice_gateway
from carbon_coach.api.v1.schemas.advice import ChatRequest, SuggestionsRequest
from carbon_coach.services.advice_gateway import AdviceGateway
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/ai/chat",
    summary="Conversational carbon coach",
    description="Answers a question about the user's footprint. Returns `{reply}`; failures carry a friendly `reply` and a distinguishing status code.",
)
async def chat(
    chat_request: ChatRequest = Body(...),
    gateway: AdviceGateway = Depends(get_advice_gateway),
) -> JSONResponse:
    logger.info("Received AI chat request.")
    result = await gateway.chat(chat_request)
    return JSONResponse(status_code=result.status_code, content=result.payload)


@router.post(
    "/suggestions",
    summary="Generate exactly 3 personalized reduction suggestions",
    description="All four category values and the total are required. Unparseable model output is replaced by generic suggestions.",
)
async def suggestions(
    suggestions_request: SuggestionsRequest = Body(...),
    gateway: AdviceGateway = Depends(get_advice_gateway),
) -> JSONResponse:
    logger.info("Received suggestions request.")
    result = await gateway.suggest(suggestions_request)
    return JSONResponse(status_code=result.status_code, content=result.payload)
