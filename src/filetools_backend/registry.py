"""
Tool catalog and localization.

The catalog is static data: ``catalog/tools.yaml`` is validated into frozen
``ToolDescriptor`` objects once, at start-up, and never changes afterwards.
Display text for other languages comes from ``catalog/translations.yaml``
and is layered over a descriptor on request; ids, option names, choices and
limits are never translated.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from omegaconf import OmegaConf

from .models import OptionSpec, ToolDescriptor, ToolSummary

logger = logging.getLogger(__name__)

CATALOG_DIR = Path(__file__).resolve().parent / "catalog"
CATALOG_PATH = CATALOG_DIR / "tools.yaml"
TRANSLATIONS_PATH = CATALOG_DIR / "translations.yaml"

Translations = Dict[str, Dict[str, Dict[str, Any]]]


class ToolRegistry:
    """
    Read-only lookup of tool descriptors by id.

    Attributes:
        default_language: Language served when a request names none
    """

    def __init__(
        self,
        descriptors: Iterable[ToolDescriptor],
        translations: Optional[Translations] = None,
        default_language: str = "en",
    ) -> None:
        self._tools: Dict[str, ToolDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.id in self._tools:
                raise ValueError(f"Duplicate tool id in catalog: {descriptor.id}")
            self._tools[descriptor.id] = descriptor
        self._translations: Translations = translations or {}
        self.default_language = default_language

        unknown = set(self._translations) - set(self._tools)
        if unknown:
            raise ValueError(f"Translations reference unknown tools: {sorted(unknown)}")

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def ids(self) -> List[str]:
        return list(self._tools)

    def describe(self, tool_id: str) -> Optional[ToolDescriptor]:
        return self._tools.get(tool_id)

    def list_all(self) -> list[ToolSummary]:
        return [descriptor.to_summary() for descriptor in self._tools.values()]

    def languages(self, tool_id: str) -> List[str]:
        return sorted(self._translations.get(tool_id, {}))

    def localize(self, tool_id: str, language: Optional[str] = None) -> Optional[ToolDescriptor]:
        """
        Return the descriptor for ``tool_id`` with display text in ``language``.

        Only ``name``, ``description`` and per-option ``label``,
        ``placeholder`` and ``choice_labels`` are replaced. A tool with no
        translations, or a language without an entry, yields the
        descriptor unchanged.

        Args:
            tool_id: Catalog id of the tool
            language: Two-letter language code; ``None`` means the default

        Returns:
            The (possibly translated) descriptor, or None for an unknown id
        """
        descriptor = self.describe(tool_id)
        if descriptor is None:
            return None

        language = (language or self.default_language).lower()
        entry = self._translations.get(tool_id, {}).get(language)
        if not entry:
            return descriptor

        option_text: Dict[str, Dict[str, Any]] = entry.get("options") or {}
        options: list[OptionSpec] = []
        for spec in descriptor.options:
            text = option_text.get(spec.name)
            if not text:
                options.append(spec)
                continue
            update: Dict[str, Any] = {}
            for key in ("label", "placeholder", "choice_labels"):
                if text.get(key) is not None:
                    update[key] = text[key]
            options.append(spec.model_copy(update=update))

        return descriptor.model_copy(
            update={
                "name": entry.get("name", descriptor.name),
                "description": entry.get("description", descriptor.description),
                "options": options,
            }
        )


def resolve_language(query_language: Optional[str], accept_language: Optional[str], default: str) -> str:
    """
    Pick the language for a descriptor request.

    An explicit ``?lang=`` wins. Otherwise the first Accept-Language entry
    is reduced to its primary subtag, so ``zh-CN,zh;q=0.9`` becomes ``zh``.

    Example:
        >>> resolve_language(None, "es-ES,es;q=0.9", "en")
        "es"
    """
    if query_language and query_language.strip():
        return query_language.strip().lower()
    if accept_language:
        first = accept_language.split(",")[0].split(";")[0].strip()
        primary = first.split("-")[0].strip().lower()
        if primary and primary != "*":
            return primary
    return default


def _load_yaml(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found at {path}")
    return OmegaConf.to_container(OmegaConf.load(path), resolve=False)


def load_descriptors(path: Path = CATALOG_PATH) -> list[ToolDescriptor]:
    data = _load_yaml(path) or {}
    return [ToolDescriptor.model_validate(item) for item in data.get("tools", [])]


def load_translations(path: Path = TRANSLATIONS_PATH) -> Translations:
    return _load_yaml(path) or {}


@lru_cache(maxsize=1)
def _packaged_catalog() -> tuple[ToolDescriptor, ...]:
    descriptors = tuple(load_descriptors())
    logger.info(f"Loaded {len(descriptors)} tools from {CATALOG_PATH.name}")
    return descriptors


def build_registry(default_language: str = "en") -> ToolRegistry:
    """Build a registry from the packaged catalog and translation files."""
    return ToolRegistry(_packaged_catalog(), load_translations(), default_language=default_language)
