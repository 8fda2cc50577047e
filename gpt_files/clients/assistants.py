"""Client for the ``/assistants`` endpoints.

See https://platform.openai.com/docs/api-reference/assistants
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..errors import MultipleVectorStoresError
from ..models import Assistant
from .core import ClientCore

DEFAULT_TOOLS = [{"type": "code_interpreter"}, {"type": "file_search"}]


class AssistantClient(ClientCore):
    @staticmethod
    def vector_store_ids(assistant: Assistant) -> List[str]:
        """Every vector store linked to the assistant, for display.

        An assistant with file search disabled has no usable store even when
        ``tool_resources`` still lists one.
        """
        if not assistant.has_tool("file_search"):
            return []
        file_search = assistant.tool_resources.file_search
        return list(file_search.vector_store_ids) if file_search else []

    @staticmethod
    def vector_store_id(assistant: Assistant) -> Optional[str]:
        """Return the assistant's single vector store id, or None if it has none."""
        store_ids = AssistantClient.vector_store_ids(assistant)
        if len(store_ids) > 1:
            raise MultipleVectorStoresError(assistant.id, store_ids)
        return store_ids[0] if store_ids else None

    @staticmethod
    def code_file_ids(assistant: Assistant) -> List[str]:
        code = assistant.tool_resources.code_interpreter
        return list(code.file_ids) if code else []

    async def create(
        self,
        name: str,
        model: str,
        description: Optional[str] = None,
        instructions: Optional[str] = None,
    ) -> Assistant:
        self.log("Creating assistant %s with model %s", name, model)
        body: Dict[str, Any] = {"name": name, "model": model, "tools": DEFAULT_TOOLS}
        if description is not None:
            body["description"] = description
        if instructions is not None:
            body["instructions"] = instructions
        resp = self.ensure_ok(await self.request("POST", "/assistants", json_body=body))
        return Assistant.model_validate(resp.data)

    async def update(
        self,
        assistant_id: str,
        *,
        name: Optional[str] = None,
        model: Optional[str] = None,
        description: Optional[str] = None,
        instructions: Optional[str] = None,
        vector_store_id: Optional[str] = None,
        code_file_ids: Optional[List[str]] = None,
    ) -> Assistant:
        """Patch only the provided fields.

        ``tool_resources`` carries just the tools being changed, so updating
        the code interpreter file list never clears the vector store link and
        vice versa.
        """
        body: Dict[str, Any] = {
            key: value
            for key, value in (
                ("name", name),
                ("model", model),
                ("description", description),
                ("instructions", instructions),
            )
            if value is not None
        }
        tool_resources: Dict[str, Any] = {}
        if vector_store_id is not None:
            tool_resources["file_search"] = {"vector_store_ids": [vector_store_id]}
        if code_file_ids is not None:
            tool_resources["code_interpreter"] = {"file_ids": list(code_file_ids)}
        if tool_resources:
            body["tool_resources"] = tool_resources

        self.log("Updating assistant %s with fields %s", assistant_id, sorted(body))
        resp = self.ensure_ok(
            await self.request("POST", f"/assistants/{assistant_id}", json_body=body)
        )
        return Assistant.model_validate(resp.data)

    async def delete(self, assistant_id: str) -> None:
        self.log("Deleting assistant %s", assistant_id)
        self.ensure_ok(await self.request("DELETE", f"/assistants/{assistant_id}"))

    async def get(self, assistant_id: str) -> Assistant:
        self.log("Getting assistant %s", assistant_id)
        resp = self.ensure_ok(await self.request("GET", f"/assistants/{assistant_id}"))
        return Assistant.model_validate(resp.data)

    async def list(self) -> List[Assistant]:
        self.log("Listing assistants")
        return await self.collect("/assistants", Assistant)

    async def attach_code_file(self, assistant: Assistant, file_id: str) -> Assistant:
        file_ids = self.code_file_ids(assistant)
        if file_id in file_ids:
            self.log("File %s already attached to code interpreter of %s", file_id, assistant.id)
            return assistant
        return await self.update(assistant.id, code_file_ids=[*file_ids, file_id])

    async def detach_code_file(self, assistant: Assistant, file_id: str) -> Assistant:
        file_ids = self.code_file_ids(assistant)
        if file_id not in file_ids:
            self.log("File %s not attached to code interpreter of %s", file_id, assistant.id)
            return assistant
        return await self.update(
            assistant.id, code_file_ids=[fid for fid in file_ids if fid != file_id]
        )
