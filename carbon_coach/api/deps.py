# carbon_coach/api/deps.py
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt as jose_jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from typing import Optional
from carbon_coach.db.database import FootprintStore
from carbon_coach.services.advice_gateway import AdviceGateway
import logging

logger = logging.getLogger(__name__)

# auto_error=False: sin token no falla aquí, lo decide cada endpoint
oauth2_scheme_optional = HTTPBearer(auto_error=False)


def get_advice_gateway(request: Request) -> AdviceGateway:
    return request.app.state.advice_gateway


def get_footprint_store(request: Request) -> FootprintStore:
    return request.app.state.footprint_store


# El proveedor de identidad es externo: solo se lee el claim 'sub' (SIN VALIDACIÓN DE FIRMA)
def decode_jwt_payload_insecure(token: str) -> dict:
    try:
        return jose_jwt.decode(
            token,
            key="",
            algorithms=["HS256", "RS256"],
            options={
                "verify_signature": False, "verify_aud": False, "verify_iat": False,
                "verify_exp": False, "verify_nbf": False, "verify_iss": False,
                "verify_sub": False, "require_exp": False, "require_iat": False,
                "require_nbf": False,
            },
        )
    except ExpiredSignatureError:
        logger.warning("Token ha expirado.")
        return {"error": "token_expired"}
    except JWTError as e:
        logger.warning(f"Error al decodificar token JWT con python-jose: {e}")
        return {"error": "jwt_decode_error", "detail": str(e)}


def get_owner_id(
    token_credentials: Optional[HTTPAuthorizationCredentials] = Depends(oauth2_scheme_optional),
) -> str:
    if not token_credentials or not token_credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="You must be logged in to access your footprints.")

    payload = decode_jwt_payload_insecure(token_credentials.credentials)
    if "error" in payload:
        logger.error(f"Error al procesar el token proporcionado: {payload.get('detail', payload['error'])}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {payload.get('detail', payload['error'])}",
        )

    owner_id = payload.get("sub") or payload.get("user_id") or payload.get("email")
    if not owner_id:
        logger.warning("Token presente pero sin claim 'sub' (user_id).")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has no subject claim.")
    return str(owner_id)
