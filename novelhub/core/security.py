from __future__ import annotations

from typing import Annotated, Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.concurrency import run_in_threadpool

from novelhub.core.firebase import verify_id_token

security_scheme = HTTPBearer()


async def get_current_claims(token: Annotated[HTTPAuthorizationCredentials, Depends(security_scheme)]) -> dict[str, Any]:
  """Verify the Firebase ID token and return its decoded claims."""
  decoded_claims = await run_in_threadpool(verify_id_token, token.credentials)

  if not decoded_claims:
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication credentials", headers={"WWW-Authenticate": "Bearer"})

  if not decoded_claims.get("uid"):
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token claims")

  return decoded_claims


async def require_admin(claims: Annotated[dict[str, Any], Depends(get_current_claims)]) -> dict[str, Any]:
  """Allow only tokens carrying the ``admin`` custom claim."""
  if claims.get("admin") is not True:
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
  return claims
