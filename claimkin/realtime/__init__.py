import logging
import os
from flask import request
from flask_jwt_extended import decode_token
from flask_socketio import SocketIO, emit, join_room, leave_room

from claimkin.utils.cache import is_jti_revoked

logger = logging.getLogger(__name__)

_raw = os.getenv("SOCKETIO_CORS_ORIGINS", "*").strip()
CORS_ORIGINS = "*" if _raw == "*" else [o.strip() for o in _raw.split(",") if o.strip()]

socketio = SocketIO(
    cors_allowed_origins=CORS_ORIGINS,
    async_mode=os.getenv("SOCKETIO_ASYNC_MODE") or None,
    logger=False,
    engineio_logger=False,
)


def campaign_room(campaign_id) -> str:
    return f"campaign:{campaign_id}"


def broadcast_claim_created(campaign_id, payload: dict) -> None:
    """Push a new-claim event to admins watching the campaign."""
    try:
        socketio.emit("claim_created", payload, to=campaign_room(campaign_id))
    except Exception:
        logger.exception("[socket] broadcast failed for campaign %s", campaign_id)


def init_socketio(app):
    socketio.init_app(app)

    @socketio.on("connect")
    def handle_connect(auth=None):
        token = (auth or {}).get("token")
        if not token:
            return False
        try:
            claims = decode_token(token)
        except Exception as e:
            logger.info("[socket] rejected connection: %s", e)
            return False
        if is_jti_revoked(claims["jti"]):
            logger.info("[socket] rejected connection: token revoked")
            return False
        logger.debug(
            "[socket] connect origin=%s ua=%s",
            request.headers.get("Origin"),
            request.headers.get("User-Agent"),
        )
        emit("connected", {"ok": True})

    @socketio.on("disconnect")
    def handle_disconnect(reason=None):
        logger.debug("[socket] disconnect")

    @socketio.on("join_campaign")
    def on_join(data):
        cid = (data or {}).get("campaign_id")
        if not cid:
            emit("error", {"error": "campaign_id required"})
            return
        room = campaign_room(cid)
        join_room(room)
        emit("joined", {"room": room})

    @socketio.on("leave_campaign")
    def on_leave(data):
        cid = (data or {}).get("campaign_id")
        if not cid:
            return
        room = campaign_room(cid)
        leave_room(room)
        emit("left", {"room": room})
