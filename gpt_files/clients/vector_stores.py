"""Client for the ``/vector_stores`` endpoints.

See https://platform.openai.com/docs/api-reference/vector-stores
"""

from __future__ import annotations

from typing import List

from ..models import FileObject, VectorStore, VectorStoreFile
from .core import ClientCore


class VectorStoreClient(ClientCore):
    async def get(self, store_id: str) -> VectorStore:
        self.log("Getting vector store info: %s", store_id)
        resp = self.ensure_ok(await self.request("GET", f"/vector_stores/{store_id}"))
        return VectorStore.model_validate(resp.data)

    async def create(self, name: str) -> VectorStore:
        """Create a store; callers name it after the assistant that owns it."""
        self.log("Creating vector store: %s", name)
        resp = self.ensure_ok(
            await self.request("POST", "/vector_stores", json_body={"name": name})
        )
        return VectorStore.model_validate(resp.data)

    async def delete(self, store_id: str) -> None:
        self.log("Deleting vector store %s", store_id)
        self.ensure_ok(await self.request("DELETE", f"/vector_stores/{store_id}"))
        self.log("Vector store %s deleted", store_id)

    async def list(self) -> List[VectorStore]:
        return await self.collect("/vector_stores", VectorStore)

    async def attach_file(self, file: FileObject, store_id: str) -> VectorStoreFile:
        """Register an uploaded file with a store. Indexing continues remotely."""
        self.log("Attaching file %s to vector store %s", file.id, store_id)
        resp = self.ensure_ok(
            await self.request(
                "POST",
                f"/vector_stores/{store_id}/files",
                json_body={"file_id": file.id},
            )
        )
        return VectorStoreFile.model_validate(resp.data)

    async def detach_file(self, file_id: str, store_id: str) -> None:
        """Remove the attachment record only; the file itself survives."""
        self.log("Detaching file %s from vector store %s", file_id, store_id)
        self.ensure_ok(
            await self.request("DELETE", f"/vector_stores/{store_id}/files/{file_id}")
        )
        self.log("File %s detached from vector store %s", file_id, store_id)

    async def list_files(self, store_id: str) -> List[VectorStoreFile]:
        return await self.collect(f"/vector_stores/{store_id}/files", VectorStoreFile)
