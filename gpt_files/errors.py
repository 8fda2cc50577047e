"""Exception hierarchy shared by the clients, the orchestrator and the CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Optional

if TYPE_CHECKING:
    from .clients.core import ApiResponse


class GptFilesError(Exception):
    """Base class for every error surfaced by gpt-files."""


class ConfigurationError(GptFilesError):
    """Raised when a required setting (e.g. the API key) is missing."""


class ApiError(GptFilesError):
    """Raised when the remote API answers with a non-success status."""

    def __init__(
        self,
        status: int,
        status_text: Optional[str] = None,
        data: Any = None,
        raw_text: str = "",
    ) -> None:
        self.status = status
        self.status_text = status_text
        self.data = data
        self.raw_text = raw_text
        super().__init__(self._format())

    @classmethod
    def from_response(cls, resp: "ApiResponse") -> "ApiError":
        return cls(
            status=resp.status,
            status_text=resp.status_text,
            data=resp.data,
            raw_text=resp.raw_text,
        )

    @property
    def remote_message(self) -> Optional[str]:
        if isinstance(self.data, dict):
            error = self.data.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return None

    def _format(self) -> str:
        parts = [f"HTTP {self.status}"]
        if self.status_text:
            parts.append(self.status_text)
        detail = self.remote_message
        if detail:
            parts.append(detail)
        elif self.raw_text and self.data is None:
            parts.append(self.raw_text[:200])
        return ": ".join(parts)


class OrchestrationError(GptFilesError):
    """Precondition failure of a compound operation."""


class FileNameConflictError(OrchestrationError):
    def __init__(self, names: Iterable[str]) -> None:
        self.names = sorted(set(names))
        joined = ", ".join(f"'{name}'" for name in self.names)
        super().__init__(
            f"File name(s) {joined} already exist. Use --overwrite to replace them if needed."
        )


class DirectoryNotFoundError(OrchestrationError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Directory not found: {path}")


class MissingAssistantIdError(OrchestrationError):
    def __init__(self) -> None:
        super().__init__(
            "Assistant ID is required. Provide it via the OPENAI_ASSISTANT_ID "
            "environment variable or the --assistant-id option."
        )


class MultipleVectorStoresError(OrchestrationError):
    """An assistant reports more than one vector store; only one is supported."""

    def __init__(self, assistant_id: str, store_ids: list[str]) -> None:
        self.assistant_id = assistant_id
        self.store_ids = list(store_ids)
        super().__init__(
            f"Assistant {assistant_id} has {len(store_ids)} vector stores "
            f"({', '.join(store_ids)}); exactly one is supported."
        )
