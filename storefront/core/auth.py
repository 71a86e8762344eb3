from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from storefront.domain import Identity

security = HTTPBearer(auto_error=False)

def get_current_identity(request: Request, creds: HTTPAuthorizationCredentials = Depends(security)) -> Identity:
    if not creds:
        raise HTTPException(status_code=401, detail="Not authenticated")
    settings = request.app.state.settings
    try:
        payload = jwt.decode(creds.credentials, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if payload.get("type") != "access" or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid access token")
    return Identity(subject=str(payload["sub"]), role=payload.get("role", "customer"))

def require_seller(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not (identity.is_seller or identity.is_admin):
        raise HTTPException(status_code=403, detail="Only sellers can access this endpoint")
    return identity
