"""
Account API endpoints for self-service account deletion.

Provides the deletion preview (which groups need a decision) and the
deletion itself. Both act on the signed-in user only.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from backend.src.db.database import get_db
from backend.src.middleware.auth import require_user, UserContext
from backend.src.services.account_service import AccountDeletionService
from backend.src.services.exceptions import NotFoundError, ValidationError
from backend.src.schemas.account import (
    AccountDeletedResponse,
    AccountDeletionPreviewResponse,
    DeleteAccountRequest,
    preview_to_response,
)
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(prefix="/account", tags=["Account"])


@router.get(
    "/deletion-preview",
    response_model=AccountDeletionPreviewResponse,
    response_model_by_alias=True,
)
async def get_deletion_preview(
    ctx: UserContext = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Preview what deleting the signed-in account would affect.

    Groups where the user is the only admin are listed under
    **soleAdminGroups**; each of them needs a transfer or delete decision.
    """
    service = AccountDeletionService(db)

    try:
        preview = service.compute_deletion_preview(ctx.user_id)
        return preview_to_response(preview)

    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/delete", response_model=AccountDeletedResponse)
async def delete_account(
    body: DeleteAccountRequest,
    request: Request,
    ctx: UserContext = Depends(require_user),
    db: Session = Depends(get_db),
):
    """
    Delete the signed-in account.

    - **confirmEmail**: must match the account email (case-insensitive)
    - **decisions**: one `transfer` or `delete` decision per sole-admin group

    A 409 means the groups changed since the preview was fetched; fetch a
    new preview and retry.
    """
    if body.confirm_email.strip().lower() != ctx.user_email.lower():
        raise HTTPException(
            status_code=400,
            detail="Email does not match your account email",
        )

    service = AccountDeletionService(db)

    try:
        service.delete_account(
            ctx.user_id,
            [decision.to_wire() for decision in body.decisions],
        )

    except ValidationError as e:
        logger.warning(f"Rejected account deletion for {ctx.user_guid}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        logger.warning(f"Stale account deletion for {ctx.user_guid}: {e}")
        raise HTTPException(
            status_code=409,
            detail=f"{e}. Your groups changed; please review and try again.",
        )

    if "session" in request.scope:
        request.session.clear()

    logger.info(f"Account deleted: {ctx.user_guid}")
    return AccountDeletedResponse(deleted=True)
