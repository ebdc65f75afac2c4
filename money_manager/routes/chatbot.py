# money_manager/routes/chatbot.py

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from money_manager.auth import get_user_by_id, oauth2_scheme, user_id_from_token
from money_manager.schemas import ChatRequest, ModelCheck
from money_manager.services import llm
from money_manager.services.assistant import generate_reply
from money_manager.services.context_builder import build_financial_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chatbot", tags=["chatbot"])


@router.get("/status")
def model_host_status():
    return {"ollama_online": llm.check_status()}


@router.get("/models")
def installed_models():
    try:
        models = llm.list_models()
    except llm.LLMOfflineError:
        models = []
    return {"models": models}


@router.post("/check-model")
def check_model(payload: ModelCheck):
    try:
        available = payload.model in llm.list_models()
    except llm.LLMOfflineError:
        available = False
    return {"available": available, "model": payload.model}


@router.post("/message")
def chat_message(payload: ChatRequest, header_token: Optional[str] = Depends(oauth2_scheme)):
    # Accepts the token from the Authorization header or from the body.
    if not payload.message:
        raise HTTPException(status_code=400, detail="Message is required")

    token = header_token or payload.token
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")

    user_id = user_id_from_token(token)
    user = get_user_by_id(user_id) if user_id is not None else None
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token is not valid")

    snapshot = build_financial_context(user["id"])
    reply, source = generate_reply(payload.message, snapshot, payload.model)

    return {
        "message": reply,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": source,
    }
