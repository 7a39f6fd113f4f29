"""Consultation endpoint: one message in, one assistant reply out."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from factory import ServiceFactory
from domain.exceptions import InferenceUnavailable, MissingMessage
from domain.models import ConversationTurn
from adapters.rest.dependencies import get_factory, get_optional_user, CurrentUser
from adapters.rest.schemas import ConsultBody, ConsultOut, ErrorOut

router = APIRouter(tags=["consultation"])
logger = logging.getLogger(__name__)


@router.post(
    "/consult",
    response_model=ConsultOut,
    responses={400: {"model": ErrorOut}, 503: {"model": ErrorOut}},
)
async def consult(
    body: ConsultBody,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    factory: ServiceFactory = Depends(get_factory),
):
    """Answer a medication question.

    Works without a session too; the reply is then not personalized.
    """
    history = [
        ConversationTurn(role=turn.role, content=turn.content)
        for turn in body.history or []
    ]
    try:
        if not body.message.strip():
            raise MissingMessage("Message is required.")
        block = await factory.create_personalization_service().assemble(
            user.user_id if user else None,
        )
        reply = await factory.create_consultation_service().consult(
            body.message, history, block,
        )
    except MissingMessage as exc:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorOut(error="Message is required", details=str(exc)).model_dump(),
        )
    except InferenceUnavailable as exc:
        logger.error("Consultation failed: %s", exc.detail)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=ErrorOut(error="Failed to process chat", details=exc.detail).model_dump(),
        )
    return ConsultOut(reply=reply)
