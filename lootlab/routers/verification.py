from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lootlab.db import get_session_factory
from lootlab.exceptions import LootLabError
from lootlab.models.dc_models import (
    VerificationRequestModel,
    VerificationSentModel,
    VerifyCodeRequestModel,
    VerifyCodeResultModel,
)
from lootlab.services.email_dispatch import Mailer, get_mailer
from lootlab.services.verification_service import issue_code, validate_code

verification_router = APIRouter(tags=["Verification"])


def get_origin_identifier(request: Request) -> str:
    """Client network origin: proxy headers first, then the socket peer."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client is not None and request.client.host:
        return request.client.host
    return "unknown"


class VerificationAPI:
    @staticmethod
    @verification_router.post("/send-verification-code", response_model=VerificationSentModel)
    async def send_verification_code(
        body: VerificationRequestModel,
        origin_identifier: str = Depends(get_origin_identifier),
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
        mailer: Mailer = Depends(get_mailer),
    ):
        """Email a 6-digit code that expires in 10 minutes

        Errors are returned as ``{"error": ...}`` with 400, 429, 500 or 502.
        """
        result = await issue_code(session_factory, body.email, origin_identifier, mailer)
        return VerificationSentModel(expires_in_minutes=result.expires_in_minutes)

    @staticmethod
    @verification_router.post(
        "/verify-code",
        response_model=VerifyCodeResultModel,
        response_model_exclude_none=True,
    )
    async def verify_code(
        body: VerifyCodeRequestModel,
        session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    ):
        """Consume a code. ``valid: true`` is single-use permission to create the account."""
        try:
            result = await validate_code(session_factory, body.email, body.code)
        except LootLabError as e:
            return JSONResponse(
                status_code=e.status_code,
                content={"valid": False, "error": e.message},
            )
        if not result.valid:
            return JSONResponse(
                status_code=400,
                content={"valid": False, "error": result.reason},
            )
        return VerifyCodeResultModel(valid=True)
