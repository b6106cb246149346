"""API Endpoints for uploading, browsing, publishing and downloading files."""

import base64
import binascii
import mimetypes
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Response, status
from pydantic import Field

from filevault.api.auth import authenticated_user, get_services, optional_user
from filevault.errors import BadRequest
from filevault.models import FILE_TYPES, ROOT, CamelModel, FileNode, User
from filevault.services import Services

app_files = APIRouter(tags=["files"])

FileId = Annotated[str, Path(description="Id of the file or folder")]


class UploadBody(CamelModel):
    """Body for uploading a folder, file or image."""

    name: str | None = Field(None, description="Display name")
    type: str | None = Field(None, description="One of folder, file or image")
    parent_id: str | int = Field(ROOT, description="Id of the parent folder (0 or omitted for the top level)")
    is_public: bool = Field(False, description="Can other users see and download this file?")
    data: str | None = Field(None, description="Base64 encoded content (required unless type is folder)")

    def check(self) -> None:
        if not self.name:
            raise BadRequest("Missing name")
        if self.type not in FILE_TYPES:
            raise BadRequest("Missing type")
        if self.type != "folder" and not self.data:
            raise BadRequest("Missing data")

    def content(self) -> bytes:
        try:
            return base64.b64decode(self.data or "")
        except (binascii.Error, ValueError):
            raise BadRequest("Invalid data")


@app_files.post("/files", status_code=status.HTTP_201_CREATED)
async def upload_file(
    body: UploadBody, user: User = Depends(authenticated_user), services: Services = Depends(get_services)
) -> FileNode:
    """
    Upload a new folder, file or image.

    The content of images is processed in the background: thumbnails of 500, 250 and 100 pixels wide
    become available through the size parameter of the download endpoint once they are generated.
    """
    body.check()
    parent_id = str(body.parent_id or ROOT)
    if body.type == "folder":
        return await services.files.create_folder(user.id, body.name, parent_id=parent_id, is_public=body.is_public)
    return await services.files.create_content(
        user.id, body.name, body.type, body.content(), parent_id=parent_id, is_public=body.is_public
    )


@app_files.get("/files/{id}")
async def get_file(id: FileId, user: User = Depends(authenticated_user), services: Services = Depends(get_services)) -> FileNode:
    """Get a file or folder that is yours or public."""
    return await services.files.get(id, user.id)


@app_files.get("/files")
async def list_files(
    parent_id: str = Query(ROOT, alias="parentId", description="Id of the folder to list (0 for the top level)"),
    page: int = Query(0, ge=0, description="Page number (20 files per page)"),
    user: User = Depends(authenticated_user),
    services: Services = Depends(get_services),
) -> list[FileNode]:
    """List your files and folders in a folder."""
    return await services.files.list(user.id, parent_id=parent_id, page=page)


@app_files.put("/files/{id}/publish")
async def publish_file(id: FileId, user: User = Depends(authenticated_user), services: Services = Depends(get_services)) -> FileNode:
    """Make one of your files public."""
    return await services.files.set_visibility(id, user.id, True)


@app_files.put("/files/{id}/unpublish")
async def unpublish_file(
    id: FileId, user: User = Depends(authenticated_user), services: Services = Depends(get_services)
) -> FileNode:
    """Make one of your files private."""
    return await services.files.set_visibility(id, user.id, False)


@app_files.get("/files/{id}/data", response_class=Response)
async def get_file_data(
    id: FileId,
    size: str | None = Query(None, description="Width of the image thumbnail to get (500, 250 or 100)"),
    user: User | None = Depends(optional_user),
    services: Services = Depends(get_services),
):
    """Download the content of a file. Public files can be downloaded without logging in."""
    node, data = await services.files.read_content(id, user.id if user else None, size=size)
    media_type = mimetypes.guess_type(node.name)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type)
