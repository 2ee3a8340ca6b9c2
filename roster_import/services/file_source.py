"""
Upload File Source
Stores uploaded roster files so an import session can reference them by path.
"""
import logging
import os
import shutil
import uuid
from typing import Optional, Sequence

from fastapi import UploadFile

from roster_import.config import settings

logger = logging.getLogger(__name__)


class UploadFileSource:
    """Service saving uploaded files under the upload directory."""

    def __init__(self, upload_dir: Optional[str] = None):
        self.upload_dir = upload_dir or settings.upload_dir

    def pick(
        self,
        upload: Optional[UploadFile],
        extension_filter: Optional[Sequence[str]] = None,
    ) -> Optional[str]:
        """
        Save an uploaded file and return its path.

        Returns None when nothing was uploaded or the file name does not
        match the extension filter.
        """
        if upload is None or not upload.filename:
            return None

        extensions = [ext.lower() for ext in (extension_filter or settings.allowed_extensions_list)]
        if not upload.filename.lower().endswith(tuple(extensions)):
            logger.info("Rejected upload %s: extension not in %s", upload.filename, extensions)
            return None

        os.makedirs(self.upload_dir, exist_ok=True)
        safe_name = os.path.basename(upload.filename)
        upload_path = os.path.join(self.upload_dir, f"{uuid.uuid4().hex}_{safe_name}")
        with open(upload_path, "wb") as buffer:
            shutil.copyfileobj(upload.file, buffer)

        logger.info("Stored upload %s at %s", upload.filename, upload_path)
        return upload_path

    def discard(self, path: Optional[str]) -> None:
        """Remove a previously stored upload; paths outside the upload dir are left alone."""
        if not path or not self.owns(path):
            return
        try:
            os.remove(path)
        except FileNotFoundError:
            pass

    def owns(self, path: str) -> bool:
        """Whether path resolves to a file inside the upload directory."""
        upload_root = os.path.realpath(self.upload_dir)
        return os.path.commonpath([upload_root, os.path.realpath(path)]) == upload_root
