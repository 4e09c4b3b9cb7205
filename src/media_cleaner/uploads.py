"""Resolution of attachment files against the uploads directory."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from urllib.parse import urlparse


@dataclass(frozen=True, slots=True)
class UploadPaths:
    """Map stored attachment paths to files on disk and public URLs.

    ``base_dir`` is the uploads root on disk, ``base_url`` the public URL that
    serves it. Attachment records store their file relative to the root.
    """

    base_dir: Path
    base_url: str

    def resolve(self, stored_path: str | None) -> Path | None:
        """Return the absolute file path for a stored relative path."""
        if not stored_path:
            return None
        candidate = Path(stored_path)
        if candidate.is_absolute():
            return candidate
        return self.base_dir / candidate

    def url_for(self, stored_path: str | None) -> str:
        if not stored_path or Path(stored_path).is_absolute():
            return ""
        return f"{self.base_url.rstrip('/')}/{stored_path.lstrip('/')}"

    def upload_folder(self, path: Path | None) -> str:
        """Return the folder of ``path`` relative to the uploads root."""
        if path is None:
            return ""
        try:
            relative = path.relative_to(self.base_dir)
        except ValueError:
            return path.parent.as_posix().lstrip("/")
        folder = relative.parent.as_posix()
        return "" if folder == "." else folder

    def url_path_fragment(self, url: str) -> str:
        """Return the URL path of ``url`` without the uploads URL prefix.

        ``https://site/wp-content/uploads/2024/01/logo.png`` becomes
        ``2024/01/logo.png``. URLs served from elsewhere keep their whole path.
        """
        if not url:
            return ""
        path = PurePosixPath(urlparse(url).path or "/")
        root = PurePosixPath(urlparse(self.base_url).path or "/")
        try:
            fragment = path.relative_to(root).as_posix()
        except ValueError:
            fragment = path.as_posix()
        return "" if fragment == "." else fragment.lstrip("/")


__all__ = ["UploadPaths"]
