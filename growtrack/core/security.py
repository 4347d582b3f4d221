import logging
from functools import lru_cache
from typing import Dict, Any

from fastapi import HTTPException, status
from jose import JWTError, jwt
from keycloak import KeycloakOpenID
from keycloak.exceptions import KeycloakError

from growtrack.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Öffentlicher Client: Signaturprüfung über den Public Key des Realms
keycloak_openid = KeycloakOpenID(
    server_url=settings.keycloak_url,
    client_id=settings.keycloak_client_id,
    realm_name=settings.keycloak_realm,
    verify=True
)


@lru_cache
def get_public_key() -> str:
    """
    Holt den Public Key des Realms im PEM-Format.
    keycloak_openid.public_key() liefert nur den Base64-Teil.
    """
    return "-----BEGIN PUBLIC KEY-----\n" + keycloak_openid.public_key() + "\n-----END PUBLIC KEY-----"


def verify_token(token: str) -> Dict[str, Any]:
    """
    Prüft das JWT lokal gegen den Public Key von Keycloak.
    Liefert die Claims, sonst HTTPException 401.
    """
    options = {
        "verify_signature": True,
        "verify_aud": True,
        "verify_exp": True
    }

    try:
        return jwt.decode(
            token,
            get_public_key(),
            algorithms=["RS256"],
            audience=settings.keycloak_client_id,
            options=options,
        )
    except (JWTError, KeycloakError, ValueError) as e:
        logger.warning(f"Token-Prüfung fehlgeschlagen: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


def actor_name(user: Dict[str, Any]) -> str:
    """Name, der als Ersteller/Bearbeiter in Trays eingetragen wird"""
    return user.get("username") or user.get("id") or "unknown"
