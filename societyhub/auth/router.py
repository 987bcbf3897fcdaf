from fastapi import APIRouter, Depends, Request
import structlog

from ..config import Settings
from ..deps import get_settings, get_storage
from ..errors import AuthenticationError, SocietyHubError
from ..schemas.auth import LoginRequest, LoginResponse, OtpRequest, OtpResponse
from ..schemas.users import UserCreate, UserResponse
from ..storage.provider import Storage
from .otp import OtpService
from .security import create_access_token, get_current_user


router = APIRouter(prefix="/api/auth", tags=["auth"])

logger = structlog.get_logger(__name__)


def get_otp_service(request: Request) -> OtpService:
    return request.app.state.otp


@router.post("/otp", response_model=OtpResponse)
def request_otp(req: OtpRequest, otp: OtpService = Depends(get_otp_service)):
    otp.issue(req.phone_number.strip())
    return OtpResponse(sent=True, expires_in=otp.ttl_seconds)


@router.post("/login", response_model=LoginResponse)
def login(
    req: LoginRequest,
    otp: OtpService = Depends(get_otp_service),
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    phone = req.phone_number.strip()
    if not otp.verify(phone, req.otp.strip()):
        logger.info("login_failed", phone_number=phone)
        raise AuthenticationError("Invalid or expired OTP")

    registered = False
    user = storage.get_user_by_phone(phone)
    if user is None:
        if not req.name or not req.flat_number:
            raise SocietyHubError("Name and flat number are required to register")
        user = storage.create_user(UserCreate(
            phone_number=phone,
            name=req.name,
            flat_number=req.flat_number,
            tower=req.tower or "A",
            role="resident",
        ))
        registered = True
        logger.info("user_registered", user_id=user.id, flat_number=user.flat_number)
    elif not user.is_active:
        raise AuthenticationError("User not active")

    token = create_access_token(user.id, user.role, settings)
    logger.info("login_succeeded", user_id=user.id)
    return LoginResponse(user=user, access_token=token, registered=registered)


@router.get("/me", response_model=UserResponse)
def me(user: UserResponse = Depends(get_current_user)):
    return user
