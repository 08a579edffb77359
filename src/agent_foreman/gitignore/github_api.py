"""GitHub gitignore template API with a local file cache.

Lookup order for a template: fresh cache, GitHub, stale cache, bundled
copy. Cache entries are JSON files ``{name, source, cachedAt}`` where
``cachedAt`` is epoch milliseconds.
"""

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from github import Auth, Github, GithubException, UnknownObjectException

from ..core.config import GitignoreConfig
from ..utils.atomic_io import atomic_write_json
from .bundled import get_bundled_template

logger = logging.getLogger(__name__)

TEMPLATE_LIST_CACHE = "templates.json"


class GitignoreTemplateError(Exception):
    """Raised when a template is unavailable from every source."""


@dataclass
class FetchResult:
    source: str
    from_cache: bool = False
    fallback: bool = False


def _now_ms() -> int:
    return int(time.time() * 1000)


class GitignoreTemplateClient:
    """Fetches gitignore templates, caching them under ``cache_dir``."""

    def __init__(self, config: Optional[GitignoreConfig] = None, github: Optional[Github] = None):
        self.config = config or GitignoreConfig()
        self._github = github

    @property
    def cache_dir(self) -> Path:
        return Path(self.config.cache_dir).expanduser()

    @property
    def ttl_ms(self) -> int:
        return self.config.cache_ttl_days * 24 * 60 * 60 * 1000

    @property
    def github(self) -> Github:
        if self._github is None:
            auth = Auth.Token(self.config.github_token) if self.config.github_token else None
            self._github = Github(auth=auth, timeout=self.config.request_timeout)
        return self._github

    def _read_cache(self, filename: str) -> Optional[dict]:
        path = self.cache_dir / filename
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.debug(f"Ignoring unreadable cache entry {path}: {e}")
            return None
        return data if isinstance(data, dict) else None

    def _write_cache(self, filename: str, data: dict) -> None:
        try:
            atomic_write_json(self.cache_dir / filename, {**data, "cachedAt": _now_ms()})
        except OSError as e:
            logger.warning(f"Could not write gitignore cache {filename}: {e}")

    def _is_stale(self, entry: dict) -> bool:
        return _now_ms() - int(entry.get("cachedAt", 0)) > self.ttl_ms

    def fetch_template(self, name: str) -> FetchResult:
        """Return the template source for ``name``.

        Raises:
            GitignoreTemplateError: If GitHub, the cache and the bundled
                templates all lack it
        """
        cached = self._read_cache(f"{name}.json")
        if cached and "source" in cached and not self._is_stale(cached):
            return FetchResult(source=cached["source"], from_cache=True)

        try:
            template = self.github.get_gitignore_template(name)
        except UnknownObjectException as e:
            bundled = get_bundled_template(name)
            if bundled is not None:
                return FetchResult(source=bundled, fallback=True)
            raise GitignoreTemplateError(f"Template '{name}' not found") from e
        except (GithubException, OSError) as e:
            logger.warning(f"GitHub gitignore API unavailable for {name}: {e}")
            if cached and "source" in cached:
                return FetchResult(source=cached["source"], from_cache=True)
            bundled = get_bundled_template(name)
            if bundled is not None:
                return FetchResult(source=bundled, fallback=True)
            raise GitignoreTemplateError(f"Template '{name}' unavailable: {e}") from e

        self._write_cache(f"{name}.json", {"name": name, "source": template.source})
        return FetchResult(source=template.source)

    def list_templates(self) -> List[str]:
        """Template names known to GitHub; empty when nothing is reachable or cached."""
        cached = self._read_cache(TEMPLATE_LIST_CACHE)
        if cached and not self._is_stale(cached):
            return list(cached.get("templates", []))

        try:
            templates = list(self.github.get_gitignore_templates())
        except (GithubException, OSError) as e:
            logger.warning(f"Could not list gitignore templates: {e}")
            return list(cached.get("templates", [])) if cached else []

        self._write_cache(TEMPLATE_LIST_CACHE, {"templates": templates})
        return templates

    def clear_cache(self) -> int:
        """Delete cached entries. Returns how many were removed."""
        if not self.cache_dir.is_dir():
            return 0
        removed = 0
        for path in self.cache_dir.glob("*.json"):
            path.unlink()
            removed += 1
        logger.info(f"Cleared {removed} gitignore cache entries")
        return removed
