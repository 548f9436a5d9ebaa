# Upload storage: multipart files land in the upload dir under their own name.
# Created: 2026-10-19

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import UploadFile

logger = logging.getLogger(__name__)


async def save_upload(upload: UploadFile, upload_dir: Path) -> Path:
    """Write *upload* to ``upload_dir/<filename>`` and return the path.

    Only the base name of the client-supplied filename is used. An existing
    file with the same name is overwritten.
    """
    name = Path(upload.filename or "").name
    if name in ("", ".", ".."):
        name = "attachment"

    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / name
    path.write_bytes(await upload.read())
    logger.debug("Stored upload %s (%d bytes)", path, path.stat().st_size)
    return path
