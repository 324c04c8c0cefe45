"""
Account endpoints:
  POST /auth/signup                     — register, email a verification code
  POST /auth/login                      — exchange credentials for a JWT
  POST /auth/verify-email               — confirm the emailed code
  POST /auth/resend-verification-email  — send the pending code again
  POST /auth/forgot-password            — email a password-reset token
  POST /auth/reset-password             — set a new password with that token
"""
import logging

from fastapi import APIRouter, Depends
from opentelemetry import trace

from postboard.clients.mailer import Mailer, get_mailer
from postboard.deps import get_user_store
from postboard.schemas import (
    EmailRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    StatusResponse,
    UserPublic,
    VerifyEmailRequest,
)
from postboard.security import create_access_token
from postboard.stores.users import UserStore
from postboard.telemetry import SIGNUPS_TOTAL

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post("/signup", response_model=StatusResponse)
async def signup(
    body: SignupRequest,
    users: UserStore = Depends(get_user_store),
    mailer: Mailer = Depends(get_mailer),
):
    """
    Create an unverified account and email its verification code.

    A failed email send aborts the request, which rolls the new account back,
    so the address stays free for another attempt.
    """
    with tracer.start_as_current_span("signup"):
        user = await users.create(body)
        await mailer.send_verify_account_email(
            user.email, user.user_id, user.email_verification_otp
        )
        SIGNUPS_TOTAL.inc()
        return StatusResponse()


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, users: UserStore = Depends(get_user_store)):
    user = await users.authenticate(body.email, body.password)
    token = create_access_token(user.user_id)
    logger.info("User %s logged in", user.user_id)
    return LoginResponse(token=token, user=UserPublic.model_validate(user))


@router.post("/verify-email", response_model=MessageResponse)
async def verify_email(body: VerifyEmailRequest, users: UserStore = Depends(get_user_store)):
    await users.verify_email(body.email, body.otp)
    return MessageResponse(message="Account verified successfully")


@router.post("/resend-verification-email", response_model=MessageResponse)
async def resend_verification_email(
    body: EmailRequest,
    users: UserStore = Depends(get_user_store),
    mailer: Mailer = Depends(get_mailer),
):
    user, otp = await users.ensure_verification_otp(body.email)
    await mailer.send_verify_account_email(user.email, user.user_id, otp)
    return MessageResponse(message="Verification Email sent successfully")


@router.post("/forgot-password", response_model=StatusResponse)
async def forgot_password(
    body: EmailRequest,
    users: UserStore = Depends(get_user_store),
    mailer: Mailer = Depends(get_mailer),
):
    user, token = await users.set_reset_token(body.email)
    await mailer.send_reset_password_email(user.email, token)
    return StatusResponse()


@router.post("/reset-password", response_model=StatusResponse)
async def reset_password(body: ResetPasswordRequest, users: UserStore = Depends(get_user_store)):
    await users.reset_password(body.token, body.password)
    return StatusResponse()
