from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.core.security import decode_jwt
from app.core.exceptions import UnauthorizedException
from app.models.actor import Actor
from app.models.role import ActorRole

security = HTTPBearer()


def actor_from_claims(payload: dict) -> Actor:
    """
    Build the Actor from trusted session claims.

    Claims:
        sub: user identifier
        role: one of ActorRole values
        tenant_id: agency id, required for every role except administrator

    Raises:
        UnauthorizedException: If the role is unknown or tenant_id is missing
    """
    try:
        role = ActorRole(payload["role"])
    except ValueError:
        raise UnauthorizedException(f"Unknown role: {payload['role']}")

    if role == ActorRole.ADMINISTRATOR:
        return Actor(user_id=str(payload["sub"]), role=role, tenant_id=None)

    tenant_id = payload.get("tenant_id")
    if tenant_id is None:
        raise UnauthorizedException("Token missing tenant identifier")
    try:
        tenant_id = int(tenant_id)
    except (TypeError, ValueError):
        raise UnauthorizedException("Token has invalid tenant identifier")

    return Actor(user_id=str(payload["sub"]), role=role, tenant_id=tenant_id)


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Actor:
    """
    FastAPI dependency to validate the JWT and build the requesting Actor.

    Flow:
    1. Extract token from Authorization: Bearer <token>
    2. Validate JWT using shared SECRET_KEY
    3. Read 'sub', 'role' and 'tenant_id' claims
    4. Return Actor, passed explicitly to every service call

    Raises:
        HTTPException 401: If token invalid, expired or missing claims
    """
    try:
        payload = decode_jwt(credentials.credentials)
        return actor_from_claims(payload)

    except UnauthorizedException as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
