"""Retrieval of documentation Markdown from a URL root or a local directory."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urljoin, urlparse
from urllib.request import Request, urlopen

from .errors import SourceUnavailable
from .logging import get_logger
from .models import DocumentRef

_USER_AGENT = "modelgen (documentation model generator)"
_RAW_GITHUB_HOST = "raw.githubusercontent.com"


def is_url(value: str) -> bool:
    return urlparse(value).scheme in {"http", "https"}


class DocSource:
    """Reads one document per call; a failed read raises ``SourceUnavailable``."""

    def __init__(
        self,
        root: str | Path,
        *,
        cache_dir: Path | None = None,
        timeout: Optional[float] = 30.0,
    ) -> None:
        self.root = str(root)
        self.cache_dir = cache_dir
        self.timeout = timeout
        self.logger = get_logger("sources")

    def locate(self, ref: DocumentRef) -> str:
        """Return the URL or filesystem path a document ref points at."""
        if is_url(ref.path) or Path(ref.path).is_absolute():
            return ref.path
        if is_url(self.root):
            return urljoin(self.root.rstrip("/") + "/", ref.path.lstrip("/"))
        return str(Path(self.root) / ref.path)

    def fetch(self, ref: DocumentRef) -> str:
        location = self.locate(ref)
        self.logger.debug("Fetching %s from %s", ref, location)
        if is_url(location):
            text = self._fetch_url(ref, location)
        else:
            text = self._read_file(ref, Path(location))
        self._write_cache(ref, text)
        return text

    def _fetch_url(self, ref: DocumentRef, url: str) -> str:
        request = Request(url, headers={"User-Agent": _USER_AGENT})
        try:
            with urlopen(request, timeout=self.timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            raise SourceUnavailable(ref.path, f"HTTP {exc.code} fetching {url}") from exc
        except URLError as exc:
            raise SourceUnavailable(ref.path, f"failed to fetch {url}: {exc.reason}") from exc
        except TimeoutError as exc:
            raise SourceUnavailable(ref.path, f"timed out fetching {url}") from exc
        return self._decode(ref, raw)

    def _read_file(self, ref: DocumentRef, path: Path) -> str:
        try:
            raw = path.read_bytes()
        except OSError as exc:
            reason = exc.strerror or exc.__class__.__name__
            raise SourceUnavailable(ref.path, f"cannot read {path}: {reason}") from exc
        return self._decode(ref, raw)

    @staticmethod
    def _decode(ref: DocumentRef, raw: bytes) -> str:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SourceUnavailable(ref.path, "document is not valid UTF-8") from exc

    def _write_cache(self, ref: DocumentRef, text: str) -> None:
        if self.cache_dir is None:
            return
        target = self.cache_dir / _cache_name(ref)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        except OSError as exc:
            self.logger.warning("Could not cache %s at %s: %s", ref, target, exc)


def _cache_name(ref: DocumentRef) -> PurePosixPath:
    if is_url(ref.path):
        parsed = urlparse(ref.path)
        return PurePosixPath(parsed.netloc, parsed.path.lstrip("/"))
    parts = [part for part in PurePosixPath(ref.path.replace("\\", "/")).parts if part not in {"/", "..", "."}]
    return PurePosixPath(*parts) if parts else PurePosixPath("document.md")


def docs_page_url(site: str, document: str, anchor: str = "") -> Optional[str]:
    """Link to the rendered page: `resources/Audit_Log.md` -> `.../resources/audit-log`."""
    if not site or is_url(document) or PurePosixPath(document).is_absolute():
        return None
    page = PurePosixPath(document).with_suffix("")
    path = "/".join(part.lower().replace("_", "-") for part in page.parts)
    return _with_anchor(f"{site.rstrip('/')}/{path}", anchor)


def source_page_url(docs_root: str, document: str, anchor: str = "") -> Optional[str]:
    """Browsable link to the Markdown source, or None for local documents."""
    if is_url(document):
        return _with_anchor(document, anchor)
    if not is_url(docs_root):
        return None
    parsed = urlparse(docs_root)
    root = docs_root.rstrip("/")
    if parsed.netloc == _RAW_GITHUB_HOST:
        owner, repo, ref, *rest = parsed.path.strip("/").split("/") + ["", "", ""]
        prefix = "/".join(part for part in rest if part)
        root = f"https://github.com/{owner}/{repo}/blob/{ref}"
        if prefix:
            root = f"{root}/{prefix}"
    return _with_anchor(f"{root}/{document.lstrip('/')}", anchor)


def _with_anchor(url: str, anchor: str) -> str:
    return f"{url}#{anchor}" if anchor else url


__all__ = ["DocSource", "docs_page_url", "is_url", "source_page_url"]
