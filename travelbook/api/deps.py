from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session
from travelbook.db.session import get_db
from travelbook.core.errors import Forbidden
from travelbook.core.identity import Caller
from travelbook.core.security import decode_token
from travelbook.models.user import User

bearer = HTTPBearer(auto_error=False)

def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if not creds:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = decode_token(creds.credentials)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid token")
    user_id = payload.get("sub")
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    # role changed since the token was issued; force a fresh login
    if payload.get("role") != user.role:
        raise HTTPException(status_code=401, detail="Token role is stale")
    return user

def get_caller(user: User = Depends(get_current_user)) -> Caller:
    return Caller.from_user(user)

def require_roles(*roles: str):
    def _guard(user: User = Depends(get_current_user)) -> Caller:
        if user.role not in roles:
            raise Forbidden("Akses ditolak. Hanya admin yang dapat melakukan aksi ini.")
        return Caller.from_user(user)
    return _guard
