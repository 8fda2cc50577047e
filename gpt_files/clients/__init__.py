from .assistants import AssistantClient
from .core import ApiResponse, ClientCore, RequestOptions
from .files import FileClient
from .vector_stores import VectorStoreClient

__all__ = [
    "ApiResponse",
    "AssistantClient",
    "ClientCore",
    "FileClient",
    "RequestOptions",
    "VectorStoreClient",
]
