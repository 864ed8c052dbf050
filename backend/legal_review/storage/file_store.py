"""Local directory acting as the object store for uploaded files."""

from __future__ import annotations

from pathlib import Path

from legal_review.core.errors import FileMissingError

DEFAULT_SUFFIXES = (".pdf",)


class FileStore:
    """Download-by-name over a flat directory of uploaded documents."""

    def __init__(self, root: Path, suffixes: tuple[str, ...] = DEFAULT_SUFFIXES) -> None:
        self.root = root.expanduser()
        self.suffixes = suffixes

    def _resolve(self, name: str) -> Path:
        path = (self.root / name).resolve()
        # names must stay inside the store
        if self.root.resolve() not in path.parents:
            raise FileMissingError(name)
        return path

    def download(self, name: str) -> bytes:
        path = self._resolve(name)
        if not path.is_file():
            raise FileMissingError(name)
        return path.read_bytes()

    def list_names(self) -> list[str]:
        if not self.root.exists():
            return []
        return sorted(
            path.name
            for path in self.root.iterdir()
            if path.is_file() and path.suffix.lower() in self.suffixes
        )

    def upload(self, name: str, data: bytes) -> None:
        """Store ``data`` under a bare file name with one of the accepted suffixes."""
        if not name or Path(name).name != name:
            raise ValueError(f"invalid file name: {name!r}")
        if Path(name).suffix.lower() not in self.suffixes:
            raise ValueError(f"unsupported file type: {name}")
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._resolve(name)
        path.write_bytes(data)


__all__ = ["FileStore"]
