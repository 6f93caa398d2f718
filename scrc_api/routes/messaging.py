"""
Public forms and push registration: contact email, membership application
email with attachments, and push token registration.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile
import logging

from scrc_api.context import AppContext
from scrc_api.dependencies import get_context, get_db
from scrc_api.models import PushToken
from scrc_api.schemas import ContactRequest, OkResponse, PushTokenRegistration
from scrc_api.services.mailer import MailDeliveryError

logger = logging.getLogger(__name__)

router = APIRouter()

MEMBERSHIP_ATTACHMENTS = ("photo", "citizenship")


@router.post("/contact", response_model=OkResponse)
async def send_contact_message(
    payload: ContactRequest,
    context: AppContext = Depends(get_context)
):
    body = (
        f"Name: {payload.name}\n"
        f"Email: {payload.email}\n"
        f"Phone: {payload.phone or '-'}\n\n"
        f"{payload.message}\n"
    )
    try:
        await context.mailer.send(
            subject=f"Contact form: {payload.name}",
            body=body,
            reply_to=payload.email,
        )
    except MailDeliveryError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to send message")

    return OkResponse()


@router.post("/membership", response_model=OkResponse)
async def send_membership_application(
    request: Request,
    context: AppContext = Depends(get_context)
):
    """
    Forward a membership application (multipart form) by email.
    Files in the "photo" and "citizenship" fields are attached.
    """
    form = await request.form()

    name = form.get("name")
    if not isinstance(name, str) or not name.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")

    lines = []
    for key, value in form.multi_items():
        if isinstance(value, str) and value.strip():
            lines.append(f"{key}: {value.strip()}")

    attachments = []
    for field_name in MEMBERSHIP_ATTACHMENTS:
        upload = form.get(field_name)
        if isinstance(upload, UploadFile) and upload.filename:
            data = await upload.read()
            attachments.append((
                f"{field_name}_{upload.filename}",
                upload.content_type or "application/octet-stream",
                data,
            ))

    email = form.get("email")
    try:
        await context.mailer.send(
            subject=f"Membership application: {name.strip()}",
            body="\n".join(lines) + "\n",
            reply_to=email if isinstance(email, str) and email.strip() else None,
            attachments=attachments,
        )
    except MailDeliveryError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to send application")

    logger.info(f"Membership application from {name.strip()} sent with {len(attachments)} attachment(s)")
    return OkResponse()


@router.post("/notifications/register", response_model=OkResponse, status_code=status.HTTP_201_CREATED)
async def register_push_token(
    payload: PushTokenRegistration,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a push token or web-push subscription.
    Already known tokens are accepted again without creating a duplicate (200).
    """
    token = (payload.token or "").strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Token required")

    existing = await db.execute(select(PushToken.id).where(PushToken.token == token))
    if existing.scalar_one_or_none() is not None:
        response.status_code = status.HTTP_200_OK
        return OkResponse()

    db.add(PushToken(token=token))
    try:
        await db.commit()
    except IntegrityError:
        # Registered concurrently by another request
        await db.rollback()
        response.status_code = status.HTTP_200_OK
        return OkResponse()

    logger.info("Registered push token")
    return OkResponse()
