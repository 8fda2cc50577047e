"""Client for the ``/files`` endpoints.

See https://platform.openai.com/docs/api-reference/files
"""

from __future__ import annotations

import mimetypes
from contextlib import aclosing
from pathlib import Path
from typing import List, Optional

from ..models import FileObject
from .core import ClientCore

UPLOAD_PURPOSE = "assistants"
DEFAULT_MIME_TYPE = "application/octet-stream"


class FileClient(ClientCore):
    @staticmethod
    def get_file_name(file_path: str, new_file_name: Optional[str] = None) -> str:
        name = new_file_name or Path(file_path).name
        if not name:
            raise ValueError("File name is required")
        return name

    @staticmethod
    def get_file_type(file_path: str) -> str:
        mime_type, _ = mimetypes.guess_type(file_path)
        return mime_type or DEFAULT_MIME_TYPE

    async def get(self, file_id: str) -> FileObject:
        self.log("Getting file %s", file_id)
        resp = self.ensure_ok(await self.request("GET", f"/files/{file_id}", use_v2=False))
        return FileObject.model_validate(resp.data)

    async def upload(self, local_path: str, file_name: str) -> FileObject:
        self.log("Uploading file %s as %s", local_path, file_name)
        content = Path(local_path).read_bytes()
        resp = self.ensure_ok(
            await self.request(
                "POST",
                "/files",
                files={"file": (file_name, content, self.get_file_type(local_path))},
                data={"purpose": UPLOAD_PURPOSE},
                use_v2=False,
            )
        )
        return FileObject.model_validate(resp.data)

    async def delete(self, file_id: str) -> None:
        self.log("Deleting file %s", file_id)
        self.ensure_ok(await self.request("DELETE", f"/files/{file_id}", use_v2=False))
        self.log("File %s deleted", file_id)

    async def search(self, filename: str) -> Optional[FileObject]:
        """Return the first remote file named exactly ``filename``."""
        async with aclosing(self.paginate("/files", FileObject, use_v2=False)) as items:
            async for item in items:
                if item.filename == filename:
                    return item
        return None

    async def list(self) -> List[FileObject]:
        return await self.collect("/files", FileObject, use_v2=False)

    async def download(self, file_id: str) -> bytes:
        return await self.request_bytes(f"/files/{file_id}/content")
