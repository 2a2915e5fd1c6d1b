"""Best-practices and client context stores.

Both stores are read-only collaborators of the validation pipeline.
Absence is a normal state: loaders return ``None`` instead of raising,
and the ``load_*`` helpers turn that into a result that records which
source was actually used.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Protocol

from pydantic import ValidationError as PydanticValidationError

from src.core.cache import Cache
from src.models.campaign import BestPracticeGuide, ClientContext

logger = logging.getLogger(__name__)

GuideSource = Literal["file", "defaults"]
ContextSource = Literal["file", "none"]

DEFAULT_GUIDES: tuple[BestPracticeGuide, ...] = (
    BestPracticeGuide(
        id="default-email-copy",
        title="Email Copy Basics",
        category="copy",
        content=(
            "Keep subject lines between 30 and 50 characters and personalise them "
            "where possible. Lead with the prospect's problem, not the product. "
            "Keep each email short, plain-text friendly and focused on one clear "
            "call to action. Avoid spam trigger words, ALL CAPS and repeated "
            "punctuation. Follow-ups should add new value instead of repeating "
            "the first email."
        ),
    ),
    BestPracticeGuide(
        id="default-lead-list",
        title="Lead List Basics",
        category="leads",
        content=(
            "Every lead needs a valid, deliverable work email. Remove disposable "
            "and role-based addresses and de-duplicate the list. Titles, "
            "industries and company sizes should match the ICP; decision makers "
            "and direct influencers are preferred over junior roles. Fill first "
            "name and company for every lead so merge fields render."
        ),
    ),
)

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Lowercase ``value`` and collapse every non-alphanumeric run to ``-``."""
    return _SLUG_PATTERN.sub("-", value.lower()).strip("-")


class BestPracticesStore(Protocol):
    """Source of the best-practice guide set."""

    async def load_guides(self) -> list[BestPracticeGuide] | None:
        """Return the guide set, or None when the store is unavailable."""
        ...


class ClientContextStore(Protocol):
    """Source of per-client context records."""

    async def load_context(self, client_id: str) -> ClientContext | None:
        """Return the record for ``client_id``, or None when there is none."""
        ...


def _read_json(path: Path) -> Any | None:
    """Read and decode a JSON file, returning None when it cannot be used."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info("Store file not found: %s", path)
        return None
    except OSError as e:
        logger.warning("Could not read store file %s: %s", path, e)
        return None

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Store file %s is not valid JSON: %s", path, e)
        return None


class FileBestPracticesStore:
    """Best-practices guides from a ``{"guides": [...]}`` JSON file.

    An optional ``Cache`` keeps the parsed guide set for its TTL. A change
    in the file's modification time drops the cached set before the TTL
    runs out. Missing files are not cached, so a file added later is
    picked up on the next request.
    """

    def __init__(self, path: str | Path, cache: Cache | None = None) -> None:
        self._path = Path(path)
        self._cache = cache
        self._loaded_mtime_ns: int | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def cache_key(self) -> str:
        return f"best_practices:{self._path}"

    async def load_guides(self) -> list[BestPracticeGuide] | None:
        if self._cache is None:
            return await asyncio.to_thread(self._read_guides)
        mtime_ns = await asyncio.to_thread(self._modified_ns)
        if mtime_ns != self._loaded_mtime_ns:
            self.invalidate()
            self._loaded_mtime_ns = mtime_ns
        return await self._cache.get_or_compute(
            self.cache_key, lambda: asyncio.to_thread(self._read_guides)
        )

    def invalidate(self) -> None:
        """Drop the cached guide set, if any."""
        if self._cache is not None:
            self._cache.invalidate(self.cache_key)

    def _modified_ns(self) -> int | None:
        try:
            return self._path.stat().st_mtime_ns
        except OSError:
            return None

    def _read_guides(self) -> list[BestPracticeGuide] | None:
        data = _read_json(self._path)
        if data is None:
            return None
        if not isinstance(data, dict) or not isinstance(data.get("guides"), list):
            logger.warning("Best-practices file %s has no guides list", self._path)
            return None

        guides: list[BestPracticeGuide] = []
        for raw in data["guides"]:
            try:
                guides.append(BestPracticeGuide.model_validate(raw))
            except PydanticValidationError as e:
                logger.warning(
                    "Skipping malformed guide in %s: %s", self._path, e.error_count()
                )
        return guides


class FileClientContextStore:
    """Client context records stored as ``<directory>/<client-slug>.json``."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    def path_for(self, client_id: str) -> Path | None:
        slug = slugify(client_id)
        if not slug:
            return None
        return self._directory / f"{slug}.json"

    async def load_context(self, client_id: str) -> ClientContext | None:
        return await asyncio.to_thread(self._read_context, client_id)

    def _read_context(self, client_id: str) -> ClientContext | None:
        path = self.path_for(client_id)
        if path is None:
            return None
        data = _read_json(path)
        if not isinstance(data, dict):
            return None

        data.setdefault("clientId", client_id)
        try:
            return ClientContext.model_validate(data)
        except PydanticValidationError as e:
            logger.warning("Client context file %s is malformed: %s", path, e.error_count())
            return None


@dataclass
class GuideSet:
    """The guides used for one validation and where they came from."""

    guides: list[BestPracticeGuide]
    source: GuideSource

    @property
    def ids(self) -> list[str]:
        return [guide.id for guide in self.guides]


@dataclass
class ClientContextLoad:
    context: ClientContext | None = None
    source: ContextSource = "none"

    @property
    def used(self) -> bool:
        return self.context is not None


async def load_guide_set(store: BestPracticesStore | None) -> GuideSet:
    """Load guides, falling back to ``DEFAULT_GUIDES`` when none are available.

    An empty guide list counts as unavailable.
    """
    guides = await store.load_guides() if store is not None else None
    if guides:
        return GuideSet(guides=list(guides), source="file")

    logger.info("Best-practices store unavailable, using default guides")
    return GuideSet(guides=list(DEFAULT_GUIDES), source="defaults")


async def load_client_context(
    store: ClientContextStore | None, client_id: str | None
) -> ClientContextLoad:
    """Load the client context record, if a client id and record exist."""
    if not client_id or store is None:
        return ClientContextLoad()

    context = await store.load_context(client_id)
    if context is None:
        logger.info("No client context found", extra={"client_id": client_id})
        return ClientContextLoad()
    return ClientContextLoad(context=context, source="file")
