import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from knowbase.config import Settings
from knowbase.dependencies import get_settings, get_store, limiter, require_session
from knowbase.errors import DecodeError
from knowbase.models.upload_response import SkippedEntry, UploadResponse
from knowbase.services.archive import decode_markdown, iter_markdown_entries
from knowbase.services.assembler import assemble
from knowbase.services.store import PageStore, normalize_path_key

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Upload"], dependencies=[Depends(require_session)])


@router.post(
    "/upload",
    response_model=UploadResponse,
    summary="Upload a zip archive of markdown pages",
    description=(
        "Every `.md` file in the archive is rendered and stored under its path "
        "inside the archive, replacing any page already stored there.  Files "
        "that are not valid UTF-8 are skipped and listed in `skipped`; the "
        "remaining files are still processed."
    ),
)
@limiter.limit("10/minute")
async def upload_archive(
    request: Request,
    zip_file: UploadFile = File(...),
    settings: Settings = Depends(get_settings),
    store: PageStore = Depends(get_store),
) -> UploadResponse:
    data = await zip_file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="The uploaded archive is too large.")

    logger.info("Upload received", extra={"upload": zip_file.filename, "size": len(data)})

    pages = []
    skipped = []
    try:
        for entry in iter_markdown_entries(data, settings.max_entry_bytes):
            path = normalize_path_key(entry.path)
            if entry.skip_reason:
                logger.warning("Skipping archive entry %s: %s", path, entry.skip_reason)
                skipped.append(SkippedEntry(path=path, reason=entry.skip_reason))
                continue

            try:
                source = decode_markdown(entry)
            except DecodeError as exc:
                logger.warning("Skipping archive entry %s: %s", path, exc)
                skipped.append(SkippedEntry(path=path, reason=f"not valid UTF-8 ({exc.reason})"))
                continue

            await assemble(store, path, source, settings)
            pages.append(path)
    except ValueError as exc:
        logger.warning("Rejected upload %s: %s", zip_file.filename, exc)
        raise HTTPException(status_code=415, detail=str(exc))

    return UploadResponse(message="Upload successful!", pages=pages, skipped=skipped)
