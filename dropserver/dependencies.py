"""FastAPI dependencies resolving the components wired into the application."""

import logging

from fastapi import Depends, Request
from pydantic import ValidationError

from dropserver.auth import require_caller
from dropserver.exceptions import BadRequestError
from dropserver.schemas.archives import UpdateArchiveRequest
from dropserver.services.transfer_service import TransferService

logger = logging.getLogger(__name__)


def get_transfer_service(request: Request) -> TransferService:
    """Get the transfer service attached to the running application."""
    return request.app.state.transfer_service


async def read_upload(request: Request, caller: str = Depends(require_caller)):
    """
    Parse the multipart body and yield its 'upload' file part.

    The body is only read once the caller has been authorized, and the
    parsed form is closed when the request finishes.

    Raises:
        UnauthorizedError: If the caller is not authorized
        BadRequestError: If the body is not a form or has no 'upload' file part
    """
    try:
        form = await request.form()
    except Exception as e:
        logger.warning(f"Could not parse upload form: {e}")
        raise BadRequestError("Malformed multipart body") from e

    try:
        upload = form.get("upload")
        if upload is None or isinstance(upload, str):
            raise BadRequestError("Form field 'upload' is required")
        yield upload
    finally:
        await form.close()


async def read_update_request(
    request: Request,
    caller: str = Depends(require_caller)
) -> UpdateArchiveRequest:
    """
    Parse the JSON body of an update once the caller has been authorized.

    Raises:
        UnauthorizedError: If the caller is not authorized
        BadRequestError: If the body is not a valid update document
    """
    body = await request.body()
    try:
        return UpdateArchiveRequest.model_validate_json(body)
    except ValidationError as e:
        raise BadRequestError("Invalid update body") from e
