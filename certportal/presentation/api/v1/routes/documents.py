from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from certportal.application.use_cases.documents.document_operations import \
    DocumentService
from certportal.domain.entities.actor import Actor
from certportal.presentation.api.dependencies import (get_current_actor,
                                                      get_document_service)

router = APIRouter()


@router.get("/{document_id}/download")
async def download_document(
    document_id: str,
    actor: Annotated[Actor, Depends(get_current_actor)],
    doc_service: Annotated[DocumentService, Depends(get_document_service)],
):
    """
    Download a supporting document.

    Only the applicant and role holders can read documents. The file is
    streamed from storage with its original name and MIME type.
    """
    document, file_stream = await doc_service.open_download(document_id, actor)
    return StreamingResponse(
        file_stream,
        media_type=document.mime_type,
        headers={
            "Content-Disposition": f'attachment; filename="{document.document_name}"',
            "Content-Length": str(document.file_size),
        },
    )
