from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from blocknotes.errors import DuplicateEmail, InvalidCredentials, PersistenceFailure
from blocknotes.models.auth import LoginRequest, LoginResponse, RegisterRequest, UserEnvelope, UserOut
from blocknotes.services.users_service import UsersService, get_users_service
from blocknotes.storage.audit_log import AuditEntry, AuditLog, get_audit_log
from blocknotes.utils.jwt_auth import create_access_token, tokens_enabled

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
def register(
    req: RegisterRequest,
    users: UsersService = Depends(get_users_service),
    audit: AuditLog = Depends(get_audit_log),
) -> UserEnvelope:
    if not req.email or not req.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email and password are required")

    try:
        user = users.register(req.email, req.password, req.name or "")
    except DuplicateEmail:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User exists")
    except PersistenceFailure as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))

    audit.record(AuditEntry(action="USER_REGISTERED", user_id=user.id))
    return UserEnvelope(user=UserOut(**user.to_dict()))


@router.post("/login", response_model=LoginResponse)
def login(req: LoginRequest, users: UsersService = Depends(get_users_service)) -> LoginResponse:
    if not req.email or not req.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email and password are required")

    try:
        user = users.login(req.email, req.password)
    except InvalidCredentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    except PersistenceFailure as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))

    token = create_access_token(subject=user.id) if tokens_enabled() else None
    return LoginResponse(user=UserOut(**user.to_dict()), access_token=token)
