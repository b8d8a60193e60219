from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from app.core.errors import ValidationError
from app.shared.utils.logger import get_logger
from app.shared.utils.security import create_access_token, decode_token, get_password_hash, verify_password

from .repository import create_user, get_user_by_email, get_user_by_id
from .schemas import LoginRequest, RegisterRequest, TokenResponse, UserOut

logger = get_logger(__name__)


def _token_response(user) -> TokenResponse:
    access_token = create_access_token(data={"sub": user.id})
    return TokenResponse(token=access_token, user=UserOut.model_validate(user))


async def register(request: RegisterRequest) -> TokenResponse:
    """Create an email/password account and return a bearer token"""
    if await get_user_by_email(request.email):
        raise ValidationError("Email is already registered")

    data = request.model_dump(exclude={"password"})
    data["email"] = request.email.lower()
    data["password_hash"] = get_password_hash(request.password)
    try:
        user = await create_user(data)
    except IntegrityError:
        raise ValidationError("Email is already registered")

    logger.info(f"User registered: {user.id}")
    return _token_response(user)


async def login(request: LoginRequest) -> TokenResponse:
    user = await get_user_by_email(request.email)
    if not user or not verify_password(request.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _token_response(user)


async def validate_token(token: str):
    """Validate a JWT and load its user"""
    payload = decode_token(token)
    user_id = payload.get("sub") if payload else None
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token")

    user = await get_user_by_id(str(user_id))
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user
