"""Helpers for slash-separated document and collection paths."""

from __future__ import annotations


def _segments(path: str) -> list[str]:
    segments = path.strip("/").split("/")
    if not path or any(not s for s in segments):
        raise ValueError(f"Invalid path: {path!r}")
    return segments


def split_path(document_path: str) -> tuple[str, str]:
    """Split a document path into (collection path, document id).

    Raises:
        ValueError: If the path does not name a document
            (an even number of segments).
    """
    segments = _segments(document_path)
    if len(segments) % 2:
        raise ValueError(f"Not a document path: {document_path!r}")
    return "/".join(segments[:-1]), segments[-1]


def collection_id_of(collection_path: str) -> str:
    """Last segment of a collection path (`users/u1/notifications` -> `notifications`)."""
    return _segments(collection_path)[-1]


def parent_of(collection_path: str) -> str | None:
    """Document owning a sub-collection, or None for a root collection."""
    segments = _segments(collection_path)
    return "/".join(segments[:-1]) or None


def document_path(*segments: str) -> str:
    """Join segments into a document path, validating the shape."""
    path = "/".join(segments)
    split_path(path)
    return path
