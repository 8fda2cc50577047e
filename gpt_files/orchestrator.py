"""Compound operations that keep assistants, files and vector stores consistent."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import httpx

from .clients import AssistantClient, FileClient, RequestOptions, VectorStoreClient
from .clients.core import build_http_client
from .errors import ApiError, DirectoryNotFoundError, FileNameConflictError
from .models import Assistant, FileDestination, FileObject, VectorStore, VectorStoreFile
from .rollback import CompensationLog

logger = logging.getLogger(__name__)


@dataclass
class DetachResult:
    """Outcome of a best-effort detach from every destination."""

    file_id: str
    detached: List[FileDestination] = field(default_factory=list)
    failed: Dict[FileDestination, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


def list_local_files(directory: Path) -> List[Path]:
    """Regular, non-hidden files directly inside ``directory``, sorted by name."""
    return sorted(
        (path for path in directory.iterdir() if path.is_file() and not path.name.startswith(".")),
        key=lambda path: path.name,
    )


def file_destinations(
    assistant: Assistant, store_files: List[VectorStoreFile], file_id: str
) -> List[FileDestination]:
    """Every place that currently references ``file_id``; there may be two."""
    destinations: List[FileDestination] = []
    if any(item.id == file_id for item in store_files):
        destinations.append(FileDestination.FILE)
    if file_id in AssistantClient.code_file_ids(assistant):
        destinations.append(FileDestination.CODE)
    return destinations


class Orchestrator:
    """Facade over the three resource clients sharing one HTTP connection pool."""

    def __init__(
        self,
        options: RequestOptions,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.options = options
        self._owns_client = client is None
        self._client = client or build_http_client(options)
        self.assistants = AssistantClient(options, client=self._client)
        self.files = FileClient(options, client=self._client)
        self.vector_stores = VectorStoreClient(options, client=self._client)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "Orchestrator":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ assistants

    async def create_assistant(
        self,
        name: str,
        model: str,
        description: Optional[str] = None,
        instructions: Optional[str] = None,
        *,
        vector_store: bool = True,
    ) -> Assistant:
        assistant = await self.assistants.create(name, model, description, instructions)
        if not vector_store:
            logger.info("Skipping vector store creation")
        else:
            logger.info("Creating vector store for the assistant")
            store = await self.vector_stores.create(name)
            await self.assistants.update(assistant.id, vector_store_id=store.id)
            logger.info("Vector store created: %s", store.id)
        return await self.assistants.get(assistant.id)

    async def update_assistant(self, assistant_id: str, **fields) -> Assistant:
        return await self.assistants.update(assistant_id, **fields)

    async def delete_assistant(self, assistant_id: str, include_files: bool) -> None:
        assistant = await self.assistants.get(assistant_id)
        store_id = AssistantClient.vector_store_id(assistant)
        if store_id and include_files:
            logger.info("Deleting all the files attached to vector store %s", store_id)
            for store_file in await self.vector_stores.list_files(store_id):
                logger.info("Deleting file %s", store_file.id)
                await self.files.delete(store_file.id)
            logger.info("Deleting vector store %s", store_id)
            await self.vector_stores.delete(store_id)
        elif include_files:
            logger.info("Vector store not found for assistant %s. Skipping deletion.", assistant_id)
        await self.assistants.delete(assistant_id)

    async def get_assistant(self, assistant_id: str) -> Assistant:
        return await self.assistants.get(assistant_id)

    async def list_assistants(self) -> List[Assistant]:
        return await self.assistants.list()

    async def ensure_vector_store(self, assistant: Assistant) -> Tuple[str, Assistant]:
        """Return the assistant's store id, creating and linking one if needed."""
        store_id = AssistantClient.vector_store_id(assistant)
        if store_id:
            return store_id, assistant
        logger.info("Vector store not found for assistant %s. Creating a new one.", assistant.id)
        store = await self.vector_stores.create(assistant.name or assistant.id)
        logger.info("Created vector store %s", store.id)
        logger.info("Updating assistant %s with vector store %s", assistant.id, store.id)
        assistant = await self.assistants.update(assistant.id, vector_store_id=store.id)
        return store.id, assistant

    # --------------------------------------------------------------- vector stores

    async def create_vector_store(self, name: str) -> VectorStore:
        return await self.vector_stores.create(name)

    async def delete_vector_store(self, store_id: str) -> None:
        await self.vector_stores.delete(store_id)

    async def get_vector_store(self, store_id: str) -> VectorStore:
        return await self.vector_stores.get(store_id)

    async def list_vector_stores(self) -> List[VectorStore]:
        return await self.vector_stores.list()

    async def list_vector_store_files(self, assistant_id: str) -> List[VectorStoreFile]:
        """Attachments of every store linked to the assistant, store by store.

        Read-only, so an assistant linked to several stores is listed rather
        than rejected.
        """
        assistant = await self.assistants.get(assistant_id)
        store_ids = AssistantClient.vector_store_ids(assistant)
        if not store_ids:
            logger.info("Vector store not found for assistant %s. Skipping listing files.", assistant_id)
            return []
        store_files: List[VectorStoreFile] = []
        for store_id in store_ids:
            store_files.extend(await self.vector_stores.list_files(store_id))
        return store_files

    # ----------------------------------------------------------------------- files

    async def get_file(self, file_id: str) -> FileObject:
        return await self.files.get(file_id)

    async def list_files(self) -> List[FileObject]:
        return await self.files.list()

    async def _attach(
        self, assistant: Assistant, file: FileObject, destination: FileDestination
    ) -> Assistant:
        if destination is FileDestination.CODE:
            return await self.assistants.attach_code_file(assistant, file.id)
        store_id, assistant = await self.ensure_vector_store(assistant)
        await self.vector_stores.attach_file(file, store_id)
        return assistant

    async def upload_file(
        self,
        file_path: str,
        assistant_id: str,
        *,
        overwrite: bool = False,
        destination: FileDestination = FileDestination.FILE,
        new_file_name: Optional[str] = None,
    ) -> FileObject:
        """Upload one file and attach it to ``destination``.

        A remote file with the same name is an error unless ``overwrite`` is
        set, in which case it is detached and deleted before the upload.
        Failures propagate without cleanup.
        """
        if not Path(file_path).is_file():
            raise FileNotFoundError(f"File not found: {file_path}")
        assistant = await self.assistants.get(assistant_id)
        file_name = FileClient.get_file_name(file_path, new_file_name)

        existing = await self.files.search(file_name)
        if existing:
            logger.info("File name '%s' already exists with file id '%s'", file_name, existing.id)
            if not overwrite:
                raise FileNameConflictError([file_name])
            logger.info("Overwriting file %s", existing.id)
            await self.delete_file(existing.id, assistant_id)
            assistant = await self.assistants.get(assistant_id)

        uploaded = await self.files.upload(file_path, file_name)
        await self._attach(assistant, uploaded, destination)
        return uploaded

    async def _detach_code(self, assistant_id: str, file_id: str) -> None:
        assistant = await self.assistants.get(assistant_id)
        await self.assistants.detach_code_file(assistant, file_id)

    async def upload_dir(
        self,
        dir_path: str,
        assistant_id: str,
        *,
        overwrite: bool = False,
        destination: FileDestination = FileDestination.FILE,
    ) -> List[FileObject]:
        """Upload every regular, non-hidden file of ``dir_path``.

        Either all files end up uploaded and attached, or none do: a failure
        midway deletes and detaches what this run created and restores the
        assistant's code interpreter file list before re-raising.
        """
        directory = Path(dir_path)
        if not directory.is_dir():
            raise DirectoryNotFoundError(str(dir_path))

        assistant = await self.assistants.get(assistant_id)
        original_code_ids = AssistantClient.code_file_ids(assistant)

        remote_by_name: Dict[str, List[FileObject]] = {}
        for remote in await self.files.list():
            remote_by_name.setdefault(remote.filename, []).append(remote)

        local_files = list_local_files(directory)
        collisions = [path.name for path in local_files if path.name in remote_by_name]
        if collisions and not overwrite:
            raise FileNameConflictError(collisions)
        if not local_files:
            logger.info("No files to upload in %s", directory)
            return []

        store_id: Optional[str] = None
        if destination is FileDestination.FILE:
            store_id, assistant = await self.ensure_vector_store(assistant)

        undo = CompensationLog()
        if destination is FileDestination.CODE:
            undo.record(
                f"restore code interpreter files of {assistant_id}",
                partial(self.assistants.update, assistant_id, code_file_ids=original_code_ids),
            )

        uploaded: List[FileObject] = []
        try:
            for path in local_files:
                logger.info("Uploading %s", path.name)
                file = await self.files.upload(str(path), path.name)
                uploaded.append(file)
                undo.record(f"delete file {file.id}", partial(self.files.delete, file.id))

                if destination is FileDestination.CODE:
                    assistant = await self.assistants.attach_code_file(assistant, file.id)
                    undo.record(
                        f"detach file {file.id} from code interpreter",
                        partial(self._detach_code, assistant_id, file.id),
                    )
                else:
                    await self.vector_stores.attach_file(file, store_id)
                    undo.record(
                        f"detach file {file.id} from vector store {store_id}",
                        partial(self.vector_stores.detach_file, file.id, store_id),
                    )
                logger.info("Uploaded %s as %s", path.name, file.id)
        except Exception as exc:
            logger.error(
                "Upload of %s failed after %d file(s); rolling back", directory, len(uploaded)
            )
            for description, failure in await undo.unwind():
                exc.add_note(f"rollback step failed: {description}: {failure}")
            raise

        if overwrite:
            for path in local_files:
                for stale in remote_by_name.get(path.name, []):
                    logger.info("Removing previous upload of %s (%s)", path.name, stale.id)
                    await self.delete_file(stale.id, assistant_id)
        return uploaded

    async def detach_file(self, file_id: str, assistant_id: str) -> DetachResult:
        """Detach ``file_id`` from the vector store and the code interpreter list.

        Each destination is attempted independently; a failure on one is
        logged and recorded without blocking the other.
        """
        assistant = await self.assistants.get(assistant_id)
        store_id = AssistantClient.vector_store_id(assistant)
        store_files = await self.vector_stores.list_files(store_id) if store_id else []

        result = DetachResult(file_id)
        for destination in file_destinations(assistant, store_files, file_id):
            try:
                logger.info("Detaching file %s from %s", file_id, destination.label)
                if destination is FileDestination.FILE:
                    await self.vector_stores.detach_file(file_id, store_id)
                else:
                    assistant = await self.assistants.detach_code_file(assistant, file_id)
                result.detached.append(destination)
                logger.info("Detached file %s from %s", file_id, destination.label)
            except (ApiError, httpx.HTTPError) as exc:
                logger.error(
                    "Failed to detach file %s from %s: %s", file_id, destination.label, exc
                )
                result.failed[destination] = exc
        return result

    async def delete_file(self, file_id: str, assistant_id: str) -> DetachResult:
        """Detach a file from the assistant, then delete it permanently."""
        result = await self.detach_file(file_id, assistant_id)
        await self.files.delete(file_id)
        return result

    async def download_file(
        self,
        file_id: str,
        new_filename: Optional[str] = None,
        dest_dir: str = ".",
    ) -> Path:
        meta = await self.files.get(file_id)
        content = await self.files.download(file_id)
        target = Path(dest_dir) / (new_filename or meta.filename)
        target.write_bytes(content)
        logger.info("Saved %s (%d bytes) to %s", file_id, len(content), target)
        return target
