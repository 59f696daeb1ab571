from app.client.mirror import NotebookMirror
from app.client.api_client import NotebookClient

__all__ = [
    "NotebookMirror",
    "NotebookClient"
]
