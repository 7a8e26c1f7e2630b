from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from socialgraph.core.exceptions import UnauthenticatedError
from socialgraph.core.security import verify_access_token
from socialgraph.db.session import get_db
from socialgraph.modules.user_management.models.user import User
from socialgraph.modules.user_management.services.user import get_user_or_404

bearer_scheme = HTTPBearer(auto_error=False)

def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> str:
    """
    Dependency returning the acting user id from the bearer token
    """
    if credentials is None:
        raise UnauthenticatedError("Missing bearer token")
    user_id = verify_access_token(credentials.credentials)
    if not user_id:
        raise UnauthenticatedError("Could not validate credentials")
    return user_id

def get_current_user(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> User:
    """
    Dependency for getting current authenticated user
    """
    return get_user_or_404(db, user_id)
