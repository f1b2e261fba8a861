"""Archive API routes."""

from fastapi import APIRouter, BackgroundTasks, Depends, UploadFile, status
from fastapi.responses import StreamingResponse

from dropserver.auth import require_caller
from dropserver.dependencies import get_transfer_service, read_update_request, read_upload
from dropserver.schemas.archives import (
    ArchiveResponse,
    ListArchivesResponse,
    UpdateArchiveRequest
)
from dropserver.schemas.common import ErrorResponse, StatusResponse
from dropserver.services.transfer_service import TransferService
from dropserver.utils import content_disposition

router = APIRouter(
    prefix="/archives",
    tags=["Archives"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }
)


@router.post("", response_model=ArchiveResponse, status_code=status.HTTP_201_CREATED)
def upload_archive(
    upload: UploadFile = Depends(read_upload),
    caller: str = Depends(require_caller),
    service: TransferService = Depends(get_transfer_service)
):
    """
    Upload a file and receive its retrieval key.

    Parameters:
        - upload: File to store (multipart/form-data)
        - Authorization header: Bearer <api_key> (required)

    Returns:
        - Name: Original filename
        - Key: Retrieval key for the download link
        - Expire: Unix time after which the archive is gone

    Raises:
        - 400: No file part in the form
        - 401: Invalid or missing API Key
        - 500: Storage failure
    """
    summary = service.ingest(upload.file, upload.filename)
    return ArchiveResponse.from_summary(summary)


@router.get("", response_model=ListArchivesResponse)
def list_archives(
    caller: str = Depends(require_caller),
    service: TransferService = Depends(get_transfer_service)
):
    """
    List every archive that has not expired.

    Parameters:
        - Authorization header: Bearer <api_key> (required)

    Raises:
        - 401: Invalid or missing API Key
    """
    archives = [ArchiveResponse.from_summary(summary) for summary in service.enumerate()]
    return ListArchivesResponse(archives=archives)


@router.get("/{archive_key}")
def download_archive(
    archive_key: str,
    background_tasks: BackgroundTasks,
    service: TransferService = Depends(get_transfer_service)
):
    """
    Download an archive. The key itself is the credential.

    Raises:
        - 404: Archive unknown or expired
        - 500: Storage failure
    """
    summary, reader = service.fetch(archive_key)
    background_tasks.add_task(reader.close)

    return StreamingResponse(
        reader,
        media_type="application/octet-stream",
        headers={"Content-Disposition": content_disposition(summary.display_name)}
    )


@router.api_route("/{archive_key}", methods=["PATCH", "PUT"], response_model=StatusResponse)
def update_archive(
    archive_key: str,
    request: UpdateArchiveRequest = Depends(read_update_request),
    caller: str = Depends(require_caller),
    service: TransferService = Depends(get_transfer_service)
):
    """
    Change the name and/or expiry of an archive.

    Parameters:
        - Name: New display name (optional)
        - Expire: New expiry in Unix seconds (optional)
        - Authorization header: Bearer <api_key> (required)

    Raises:
        - 400: Empty name or invalid body
        - 401: Invalid or missing API Key
        - 404: Archive unknown or expired
    """
    service.revise(archive_key, display_name=request.Name, expires_at=request.Expire)
    return StatusResponse(status="updated")


@router.delete("/{archive_key}", response_model=StatusResponse)
def delete_archive(
    archive_key: str,
    caller: str = Depends(require_caller),
    service: TransferService = Depends(get_transfer_service)
):
    """
    Delete an archive and its stored bytes.

    Raises:
        - 401: Invalid or missing API Key
        - 404: Archive not found
    """
    service.evict(archive_key)
    return StatusResponse(status="deleted")
