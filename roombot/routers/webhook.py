import logging
import secrets
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from roombot import config
from roombot.core.handler import FAILURE_COLOR, CommandHandler, CommandRequest
from roombot.dependencies import get_command_handler
from roombot.schemas.webhook import DevCommand, JandiOutgoingWebhook, JandiWebhookResponse


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/jandi",
    tags=["jandi"],
)


def _rejection(status_code: int, message: str) -> JSONResponse:
    reply = JandiWebhookResponse(body=f"❌ {message}", connect_color=FAILURE_COLOR)
    return JSONResponse(status_code=status_code, content=reply.model_dump(by_alias=True))


def verify_token(payload: JandiOutgoingWebhook, ip: str) -> Optional[JSONResponse]:
    """Return a JANDI-shaped rejection for a missing or wrong token, else None."""
    if not payload.token:
        logger.warning(f"Webhook request without token from {ip}")
        return _rejection(status.HTTP_401_UNAUTHORIZED, "Unauthenticated request.")
    if not config.JANDI_OUTGOING_TOKEN or not secrets.compare_digest(payload.token, config.JANDI_OUTGOING_TOKEN):
        logger.warning(f"Webhook request with invalid token {payload.token[:8]}... from {ip}")
        return _rejection(status.HTTP_403_FORBIDDEN, "Invalid token.")
    return None


def client_ip(request: Request, payload: JandiOutgoingWebhook) -> str:
    """Prefer the proxy-forwarded address, then the peer, then what JANDI reported."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return payload.ip


def _respond(handler: CommandHandler, payload: JandiOutgoingWebhook, ip: str) -> JandiWebhookResponse:
    result = handler.handle(CommandRequest(
        requester_name=payload.writer_name,
        requester_id=payload.writer_email,
        text=payload.data,
        full_text=payload.text,
        source_ip=ip,
        channel=payload.room_name,
    ))
    return JandiWebhookResponse(body=result.message, connect_color=result.color)


@router.post(
    "/command",
    response_model=JandiWebhookResponse,
    summary="Handle a JANDI outgoing webhook",
)
def receive_command(
    payload: JandiOutgoingWebhook,
    request: Request,
    handler: CommandHandler = Depends(get_command_handler),
):
    """
    Run the command carried in ``data`` and answer in JANDI's response format.
    """
    ip = client_ip(request, payload)
    logger.debug(f"Webhook request from {payload.writer_email} ({ip}): {payload.text!r}")
    rejection = verify_token(payload, ip)
    if rejection is not None:
        return rejection
    return _respond(handler, payload, ip)


@router.get("/health")
def health():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "jandi-room-booking-bot",
    }


@router.post("/test", response_model=JandiWebhookResponse)
def test_command(
    body: DevCommand,
    request: Request,
    handler: CommandHandler = Depends(get_command_handler),
):
    """
    Run a command as a fixed test user. Only available in development.
    """
    if config.ENVIRONMENT != "development":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    payload = JandiOutgoingWebhook(
        token=config.JANDI_OUTGOING_TOKEN,
        team_name="TestTeam",
        room_name="TestRoom",
        writer_name="Test User",
        writer_email="test@example.com",
        text=body.text or "room help",
        data=body.data or "help",
        keyword="room",
        ip=request.client.host if request.client else "127.0.0.1",
    )
    return _respond(handler, payload, payload.ip)
