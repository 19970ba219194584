from google.oauth2 import id_token
from google.auth.transport import requests
from pydantic import BaseModel
from storefront.config import settings
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class FederatedAssertion(BaseModel):
    """Verified identity handed over by the provider."""
    external_id: str
    email: Optional[str] = None
    name: str = "Google User"


def verify_google_token(token: str) -> Optional[FederatedAssertion]:
    try:
        id_info = id_token.verify_oauth2_token(
            token,
            requests.Request(),
            settings.google_client_id
        )
    except ValueError as e:
        logger.warning(f"Google token verification failed: {e}")
        return None

    if id_info.get("aud") != settings.google_client_id:
        logger.warning("Google token audience mismatch")
        return None

    return FederatedAssertion(
        external_id=id_info["sub"],
        email=id_info.get("email"),
        name=id_info.get("name") or "Google User",
    )
