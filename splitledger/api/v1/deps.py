import logging
from typing import Any, Dict
from fastapi import Header, HTTPException, Request
from splitledger.services.auth.jwt_handler import get_current_user

logger = logging.getLogger(__name__)


def get_current_user_id(
    request: Request,
    access_token: str = Header(..., description="Access token (without Bearer)")
):
    """Extract current user ID from JWT token"""
    if access_token.startswith("Bearer "):
        access_token = access_token.replace("Bearer ", "")
    settings = request.app.state.settings
    user_id = get_current_user(access_token, settings.secret_key, settings.jwt_algorithm)
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")
    return user_id


def publish_event(request: Request, routing_key: str, payload: Dict[str, Any]) -> None:
    """Publish a ledger event when event publishing is enabled"""
    publisher = getattr(request.app.state, "publisher", None)
    if publisher is None:
        return
    if not publisher.publish(routing_key, payload):
        logger.warning(f"Ledger event {routing_key} was not delivered")
