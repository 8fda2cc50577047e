"""Shared fixtures: an in-memory stand-in for the OpenAI Assistants v2 API."""

from __future__ import annotations

import itertools
import json
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from gpt_files.clients import RequestOptions
from gpt_files.orchestrator import Orchestrator

API_ROOT = "/v1"


@dataclass
class InjectedFailure:
    method: str
    pattern: re.Pattern
    skip: int = 0
    times: int = 1
    status: int = 500


def _error(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": {"message": message, "type": "invalid_request_error"}})


def _parse_multipart(request: httpx.Request) -> Dict[str, Tuple[Optional[str], bytes]]:
    content_type = request.headers["content-type"]
    boundary = content_type.split("boundary=", 1)[1].encode()
    fields: Dict[str, Tuple[Optional[str], bytes]] = {}
    for part in request.content.split(b"--" + boundary):
        head, sep, payload = part.partition(b"\r\n\r\n")
        if not sep:
            continue
        name = re.search(rb'name="([^"]+)"', head)
        filename = re.search(rb'filename="([^"]+)"', head)
        if not name:
            continue
        fields[name.group(1).decode()] = (
            filename.group(1).decode() if filename else None,
            payload[:-2] if payload.endswith(b"\r\n") else payload,
        )
    return fields


class FakeOpenAI:
    """Stateful fake of the assistants, files and vector store endpoints."""

    def __init__(self) -> None:
        self.assistants: Dict[str, Dict[str, Any]] = {}
        self.files: Dict[str, Dict[str, Any]] = {}
        self.contents: Dict[str, bytes] = {}
        self.stores: Dict[str, Dict[str, Any]] = {}
        self.store_files: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.failures: List[InjectedFailure] = []
        self._seq = itertools.count(1)

    # -------------------------------------------------------------- test helpers

    def fail(self, method: str, pattern: str, *, skip: int = 0, times: int = 1, status: int = 500) -> None:
        """Make the (skip+1)-th matching call fail ``times`` times."""
        self.failures.append(
            InjectedFailure(method.upper(), re.compile(pattern), skip=skip, times=times, status=status)
        )

    def calls_to(self, method: str, pattern: str) -> List[str]:
        regex = re.compile(pattern)
        return [path for m, path in self.calls if m == method and regex.search(path)]

    def add_file(self, filename: str, content: bytes = b"old") -> Dict[str, Any]:
        return self._create_file(filename, content)

    def add_assistant(self, name: str = "demo", **fields: Any) -> Dict[str, Any]:
        return self._create_assistant({"name": name, "model": "x", **fields})

    def add_store(self, name: str = "store") -> Dict[str, Any]:
        return self._create_store(name)

    def attach(self, store_id: str, file_id: str) -> None:
        self._attach(store_id, file_id)

    def code_ids(self, assistant_id: str) -> List[str]:
        return self.assistants[assistant_id]["tool_resources"].get("code_interpreter", {}).get("file_ids", [])

    # ------------------------------------------------------------------ internals

    def _id(self, prefix: str) -> str:
        return f"{prefix}_{next(self._seq):04d}"

    def _create_assistant(self, body: Dict[str, Any]) -> Dict[str, Any]:
        assistant = {
            "id": self._id("asst"),
            "object": "assistant",
            "created_at": int(time.time()),
            "name": body.get("name"),
            "description": body.get("description"),
            "instructions": body.get("instructions"),
            "model": body["model"],
            "tools": body.get("tools", [{"type": "code_interpreter"}, {"type": "file_search"}]),
            "tool_resources": body.get("tool_resources", {}),
        }
        self.assistants[assistant["id"]] = assistant
        return assistant

    def _update_assistant(self, assistant: Dict[str, Any], body: Dict[str, Any]) -> Dict[str, Any]:
        for key in ("name", "model", "description", "instructions", "tools"):
            if key in body:
                assistant[key] = body[key]
        for tool, resources in (body.get("tool_resources") or {}).items():
            assistant["tool_resources"][tool] = resources
        return assistant

    def _create_file(self, filename: str, content: bytes, purpose: str = "assistants") -> Dict[str, Any]:
        record = {
            "id": self._id("file"),
            "object": "file",
            "filename": filename,
            "bytes": len(content),
            "created_at": int(time.time()),
            "purpose": purpose,
        }
        self.files[record["id"]] = record
        self.contents[record["id"]] = content
        return record

    def _create_store(self, name: str) -> Dict[str, Any]:
        store = {
            "id": self._id("vs"),
            "object": "vector_store",
            "name": name,
            "created_at": int(time.time()),
            "usage_bytes": 0,
            "status": "completed",
            "file_counts": {"in_progress": 0, "completed": 0, "failed": 0, "cancelled": 0, "total": 0},
        }
        self.stores[store["id"]] = store
        self.store_files[store["id"]] = {}
        return store

    def _attach(self, store_id: str, file_id: str) -> Dict[str, Any]:
        record = {
            "id": file_id,
            "object": "vector_store.file",
            "vector_store_id": store_id,
            "usage_bytes": self.files[file_id]["bytes"],
            "created_at": int(time.time()),
            "status": "in_progress",
        }
        self.store_files[store_id][file_id] = record
        self.stores[store_id]["file_counts"]["total"] = len(self.store_files[store_id])
        return record

    @staticmethod
    def _page(items: List[Dict[str, Any]], request: httpx.Request) -> httpx.Response:
        limit = int(request.url.params.get("limit", 20))
        after = request.url.params.get("after")
        start = 0
        if after:
            ids = [item["id"] for item in items]
            start = ids.index(after) + 1 if after in ids else len(items)
        chunk = items[start : start + limit]
        return httpx.Response(
            200,
            json={
                "object": "list",
                "data": chunk,
                "first_id": chunk[0]["id"] if chunk else None,
                "last_id": chunk[-1]["id"] if chunk else None,
                "has_more": start + limit < len(items),
            },
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        assert path.startswith(API_ROOT), path
        path = path[len(API_ROOT) :]
        self.calls.append((method, path))

        for failure in self.failures:
            if failure.method == method and failure.pattern.search(path) and failure.times > 0:
                if failure.skip > 0:
                    failure.skip -= 1
                    continue
                failure.times -= 1
                return _error(failure.status, f"injected failure for {method} {path}")

        body = json.loads(request.content) if request.content and method == "POST" and path != "/files" else {}
        parts = path.strip("/").split("/")
        return self._route(method, parts, body, request)

    def _route(self, method: str, parts: List[str], body: Dict[str, Any], request: httpx.Request) -> httpx.Response:
        resource = parts[0]

        if resource == "assistants":
            if len(parts) == 1:
                if method == "GET":
                    return self._page(list(self.assistants.values()), request)
                return httpx.Response(200, json=self._create_assistant(body))
            assistant = self.assistants.get(parts[1])
            if assistant is None:
                return _error(404, f"No assistant found with id '{parts[1]}'.")
            if method == "GET":
                return httpx.Response(200, json=assistant)
            if method == "POST":
                return httpx.Response(200, json=self._update_assistant(assistant, body))
            del self.assistants[parts[1]]
            return httpx.Response(200, json={"id": parts[1], "object": "assistant.deleted", "deleted": True})

        if resource == "files":
            if len(parts) == 1:
                if method == "GET":
                    return self._page(list(self.files.values()), request)
                fields = _parse_multipart(request)
                filename, content = fields["file"]
                purpose = fields["purpose"][1].decode()
                return httpx.Response(200, json=self._create_file(filename, content, purpose))
            record = self.files.get(parts[1])
            if record is None:
                return _error(404, f"No such File object: {parts[1]}")
            if len(parts) == 3 and parts[2] == "content":
                return httpx.Response(200, content=self.contents[parts[1]])
            if method == "GET":
                return httpx.Response(200, json=record)
            del self.files[parts[1]]
            return httpx.Response(200, json={"id": parts[1], "object": "file", "deleted": True})

        if resource == "vector_stores":
            if len(parts) == 1:
                if method == "GET":
                    return self._page(list(self.stores.values()), request)
                return httpx.Response(200, json=self._create_store(body.get("name")))
            store = self.stores.get(parts[1])
            if store is None:
                return _error(404, f"No vector store found with id '{parts[1]}'.")
            if len(parts) == 2:
                if method == "GET":
                    return httpx.Response(200, json=store)
                del self.stores[parts[1]]
                del self.store_files[parts[1]]
                return httpx.Response(200, json={"id": parts[1], "object": "vector_store.deleted", "deleted": True})
            attached = self.store_files[parts[1]]
            if len(parts) == 3:
                if method == "GET":
                    return self._page(list(attached.values()), request)
                if body["file_id"] not in self.files:
                    return _error(404, f"No file found with id '{body['file_id']}'.")
                return httpx.Response(200, json=self._attach(parts[1], body["file_id"]))
            if parts[3] not in attached:
                return _error(404, f"No file found with id '{parts[3]}' in vector store '{parts[1]}'.")
            del attached[parts[3]]
            store["file_counts"]["total"] = len(attached)
            return httpx.Response(200, json={"id": parts[3], "object": "vector_store.file.deleted", "deleted": True})

        return _error(404, f"Unknown endpoint {method} /{'/'.join(parts)}")


@pytest.fixture
def fake_api(httpx_mock) -> FakeOpenAI:
    api = FakeOpenAI()
    httpx_mock.add_callback(api, is_reusable=True, is_optional=True)
    return api


@pytest.fixture
def options() -> RequestOptions:
    return RequestOptions(api_key="sk-test")


@pytest.fixture
def orchestrator(fake_api, options) -> Orchestrator:
    return Orchestrator(options)
