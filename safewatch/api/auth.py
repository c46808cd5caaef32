import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from ..db import get_db, unit_of_work
from ..models.user import User, UserRole
from ..schemas.auth import (
    RegisterResponse,
    UserRegister,
    UserLogin,
    Token,
    TokenRefresh,
    UserResponse,
)
from ..core.security import verify_password, get_password_hash, create_access_token, create_refresh_token, verify_token
from ..core.errors import StorageError

logger = logging.getLogger(__name__)

router = APIRouter()
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

VERIFIER_ROLES = (UserRole.ADMIN, UserRole.SAFETY_OFFICER, UserRole.HSE)


def _user_from_token(token: str, db: Session) -> User:
    payload = verify_token(token, "access")
    user_id = payload.get("sub")

    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials"
        )

    try:
        user_pk = int(user_id)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials"
        )

    user = db.query(User).filter(User.id == user_pk).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    return _user_from_token(credentials.credentials, db)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Resolve the caller when a valid token is sent; anonymous otherwise."""
    if credentials is None:
        return None
    try:
        return _user_from_token(credentials.credentials, db)
    except HTTPException:
        return None


def require_roles(*roles: UserRole):
    """Dependency factory: the caller must hold one of ``roles``."""
    allowed = set(roles)

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Operation requires one of the roles: " + ", ".join(r.value for r in roles)
            )
        return current_user
    return role_checker


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Require admin role"""
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


require_verifier = require_roles(*VERIFIER_ROLES)


def _issue_tokens(user: User) -> dict:
    access_token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    refresh_token = create_refresh_token(data={"sub": str(user.id)})
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "user": user,
    }


def _find_by_employee_id(db: Session, employee_id: str) -> Optional[User]:
    return db.query(User).filter(User.employee_id == employee_id.strip()).first()


@router.post("/register", response_model=RegisterResponse)
def register_user(user_data: UserRegister, db: Session = Depends(get_db)):
    """Self-registration; the account stays pending until an admin approves it"""
    employee_id = user_data.employee_id.strip()
    if _find_by_employee_id(db, employee_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Employee ID already exists"
        )

    db_user = User(
        employee_id=employee_id,
        name=user_data.name.strip(),
        email=user_data.email,
        role=UserRole.USER,
        password_hash=get_password_hash(user_data.password),
        approved=False,
        points=0,
        level="Bronze",
    )
    try:
        with unit_of_work(db):
            db.add(db_user)
    except StorageError as exc:
        # Lost a race with a concurrent registration for the same id
        if isinstance(exc.__cause__, IntegrityError):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Employee ID already exists"
            ) from exc
        raise
    db.refresh(db_user)
    logger.info("Registered user %s (pending approval)", db_user.employee_id)

    return {
        "user": db_user,
        "pending": True,
        "message": "Registration successful! Please wait for admin approval before logging in.",
    }


@router.post("/login", response_model=Token)
def login(user_data: UserLogin, db: Session = Depends(get_db)):
    """Login and get access/refresh tokens"""
    user = _find_by_employee_id(db, user_data.employee_id)

    if not user or not verify_password(user_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    if not user.approved and user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account is pending approval. Please wait for an admin to approve your registration."
        )

    return _issue_tokens(user)


@router.post("/refresh", response_model=Token)
def refresh_token(token_data: TokenRefresh, db: Session = Depends(get_db)):
    """Refresh access token using refresh token"""
    payload = verify_token(token_data.refresh_token, "refresh")
    user_id = payload.get("sub")

    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials"
        )

    user = db.query(User).filter(User.id == int(user_id)).first()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    return _issue_tokens(user)


@router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information"""
    return current_user
