import time

from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from docstore.core.errors import ValidationFailure
from docstore.core.security import get_current_username, get_optional_username
from docstore.models.file import UploadStore

router = APIRouter(tags=["uploads"])


def get_uploads(request: Request) -> UploadStore:
    return request.app.state.uploads


# --- upload a new file, remaining form fields become its metadata ---
@router.post("/upload", status_code=201, dependencies=[Depends(get_optional_username)])
async def upload_file(request: Request, uploads: UploadStore = Depends(get_uploads)):
    started_at = time.time()

    async with request.form() as form:
        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            raise ValidationFailure("No file provided", detail="multipart field 'file' is required")

        # a repeated field keeps every value, as a list
        metadata = {}
        for key in form.keys():
            if key == "file":
                continue
            values = [value for value in form.getlist(key) if isinstance(value, str)]
            if values:
                metadata[key] = values if len(values) > 1 else values[0]
        record = await uploads.create(metadata, upload.filename, upload.file, started_at)

    return {"message": "Upload and metadata stored successfully", "data": record}


# --- delete a file together with its metadata entry ---
@router.delete("/upload/{filename}", dependencies=[Depends(get_optional_username)])
async def delete_upload(filename: str, uploads: UploadStore = Depends(get_uploads)):
    await uploads.delete(filename)
    return {"message": "Upload and metadata deleted successfully"}


@router.get("/listalluploads", dependencies=[Depends(get_current_username)])
async def list_uploads(uploads: UploadStore = Depends(get_uploads)):
    return await uploads.list_all()
