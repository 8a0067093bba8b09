# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

r"""Template catalog: canonical license texts keyed by SPDX identifier.

The catalog is read-only data loaded once per process and handed to the
matcher and locator as a value.  Each entry carries:

- the canonical text, whitespace-collapsed per line with case preserved;
- file-name synonyms used by the locator (``apache`` matches
  ``LICENSE-APACHE``);
- a coarse category (``permissive``, ``weak-copyleft``, ...) for
  callers that group or filter by license family.

Built-in entries live in ``data/catalog.toml`` and ``data/templates/``.
Adding an identifier is a data change: drop a template file next to the
others and add a table to the index, or register it at runtime::

    from licensebundle.catalog import TemplateCatalog

    catalog = TemplateCatalog.load()
    catalog = catalog.extend({'LicenseRef-Acme': acme_text})
    catalog.lookup('MIT')  # 'MIT License\n\nCopyright (c) <year> ...'
"""

from __future__ import annotations

import functools
import re
import sys
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from types import MappingProxyType

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from licensebundle.errors import CatalogDataError

__all__ = [
    'TemplateCatalog',
    'TemplateInfo',
    'default_catalog',
    'normalize_template',
    'slugify',
]

_VALID_CATEGORIES = frozenset({
    'public-domain',
    'permissive',
    'weak-copyleft',
    'strong-copyleft',
    'network-copyleft',
    'unknown',
})

_DATA_DIR = Path(__file__).resolve().parent / 'data'
_CATALOG_TOML = _DATA_DIR / 'catalog.toml'
_TEMPLATES_DIR = _DATA_DIR / 'templates'

_SLUG_RE = re.compile(r'[^a-z0-9]+')


def slugify(value: str) -> str:
    """Lowercase *value* and collapse non-alphanumeric runs to ``-``.

    >>> slugify('LICENSE-Apache-2.0.txt')
    'license-apache-2-0-txt'
    """
    return _SLUG_RE.sub('-', value.lower()).strip('-')


def normalize_template(text: str) -> str:
    """Collapse whitespace within lines and runs of blank lines.

    Case and line structure are preserved so copyright lines can still
    be told apart from the license body.
    """
    lines = [' '.join(line.split()) for line in text.splitlines()]
    collapsed: list[str] = []
    for line in lines:
        if line or (collapsed and collapsed[-1]):
            collapsed.append(line)
    return '\n'.join(collapsed).strip()


@dataclass(frozen=True)
class TemplateInfo:
    """One catalog entry.

    Attributes:
        spdx_id: Canonical identifier (the catalog key).
        name: Human-readable full name.
        text: Normalized canonical text.
        category: Coarse license category.
        synonyms: Slugified file-name stems, longest first.
    """

    spdx_id: str
    name: str
    text: str
    category: str = 'unknown'
    synonyms: tuple[str, ...] = ()


def _synonyms(spdx_id: str, extra: tuple[str, ...] | list[str] = ()) -> tuple[str, ...]:
    # Longest first: the more specific stem should be tried before "bsd".
    slugs = dict.fromkeys([slugify(spdx_id), *(slugify(s) for s in extra)])
    return tuple(sorted((s for s in slugs if s), key=len, reverse=True))


class TemplateCatalog:
    """Immutable set of canonical license templates.

    Args:
        templates: Mapping from SPDX identifier to :class:`TemplateInfo`.
    """

    def __init__(self, templates: Mapping[str, TemplateInfo]) -> None:
        self._templates: Mapping[str, TemplateInfo] = MappingProxyType(dict(templates))
        self._folded: dict[str, str] = {spdx_id.lower(): spdx_id for spdx_id in self._templates}

    # ── Loading ──────────────────────────────────────────────────────

    @classmethod
    def load(
        cls,
        *,
        index_toml: Path | None = None,
        extra: Mapping[str, str] | None = None,
        extra_dir: Path | None = None,
    ) -> TemplateCatalog:
        """Load the catalog from its TOML index and template files.

        Args:
            index_toml: Path to the index. Defaults to the built-in
                ``data/catalog.toml``; template ``file`` entries resolve
                relative to a ``templates`` directory next to it.
            extra: Additional ``identifier → text`` templates.
            extra_dir: Directory of ``<identifier>.txt`` files to add.

        Raises:
            CatalogDataError: If the index is invalid or a template file
                is missing.
        """
        path = index_toml or _CATALOG_TOML
        catalog = cls(_load_index(path, path.parent / 'templates'))
        if extra_dir is not None:
            catalog = catalog.extend(_read_template_dir(extra_dir))
        if extra:
            catalog = catalog.extend(extra)
        return catalog

    def extend(self, templates: Mapping[str, str]) -> TemplateCatalog:
        """Return a new catalog with *templates* registered.

        Existing identifiers keep their synonyms and category; only the
        text is replaced.
        """
        merged = dict(self._templates)
        for spdx_id, text in templates.items():
            current = merged.get(spdx_id)
            if current is None:
                merged[spdx_id] = TemplateInfo(
                    spdx_id=spdx_id,
                    name=spdx_id,
                    text=normalize_template(text),
                    synonyms=_synonyms(spdx_id),
                )
            else:
                merged[spdx_id] = replace(current, text=normalize_template(text))
        return TemplateCatalog(merged)

    # ── Queries ──────────────────────────────────────────────────────

    def _resolve(self, identifier: str) -> str | None:
        if identifier in self._templates:
            return identifier
        return self._folded.get(identifier.lower())

    def info(self, identifier: str) -> TemplateInfo | None:
        """Return the entry for *identifier* (case-insensitive fallback)."""
        key = self._resolve(identifier)
        return self._templates[key] if key is not None else None

    def lookup(self, identifier: str) -> str | None:
        """Return the canonical text for *identifier*, or ``None``."""
        entry = self.info(identifier)
        return entry.text if entry is not None else None

    def synonyms(self, identifier: str) -> tuple[str, ...]:
        """Return the file-name stems for *identifier*, longest first.

        Identifiers outside the catalog still get their own slug so a
        ``LICENSE-<id>`` file is recognised.
        """
        entry = self.info(identifier)
        if entry is not None:
            return entry.synonyms
        return _synonyms(identifier)

    def category(self, identifier: str) -> str:
        """Return the category for *identifier*, or ``"unknown"``."""
        entry = self.info(identifier)
        return entry.category if entry is not None else 'unknown'

    @property
    def ids(self) -> tuple[str, ...]:
        """All identifiers, sorted."""
        return tuple(sorted(self._templates))

    def __contains__(self, identifier: object) -> bool:
        """Return ``True`` if *identifier* has a template."""
        return isinstance(identifier, str) and self._resolve(identifier) is not None

    def __iter__(self) -> Iterator[str]:
        """Iterate identifiers in sorted order."""
        return iter(self.ids)

    def __len__(self) -> int:
        """Return the number of templates."""
        return len(self._templates)


def _load_index(path: Path, templates_dir: Path) -> dict[str, TemplateInfo]:
    """Parse and validate a catalog index, reading referenced templates."""
    with path.open('rb') as f:
        data = tomllib.load(f)
    errors: list[str] = []
    templates: dict[str, TemplateInfo] = {}
    for spdx_id, info in data.items():
        if not isinstance(info, dict):
            errors.append(f'[{spdx_id}]: expected a table, got {type(info).__name__}')
            continue
        name = info.get('name', spdx_id)
        if not isinstance(name, str):
            errors.append(f'[{spdx_id}].name: expected string, got {type(name).__name__}')
        file_name = info.get('file')
        if not isinstance(file_name, str) or not file_name:
            errors.append(f'[{spdx_id}]: missing required field "file"')
            continue
        category = info.get('category', 'unknown')
        if category not in _VALID_CATEGORIES:
            errors.append(
                f'[{spdx_id}].category: {category!r} is not a valid category. '
                f'Must be one of: {", ".join(sorted(_VALID_CATEGORIES))}'
            )
        synonyms = info.get('synonyms', [])
        if not isinstance(synonyms, list) or not all(isinstance(s, str) for s in synonyms):
            errors.append(f'[{spdx_id}].synonyms: expected a list of strings')
            synonyms = []
        template_path = templates_dir / file_name
        try:
            text = template_path.read_text(encoding='utf-8')
        except OSError:
            errors.append(f'[{spdx_id}].file: cannot read {template_path}')
            continue
        templates[spdx_id] = TemplateInfo(
            spdx_id=spdx_id,
            name=name if isinstance(name, str) else spdx_id,
            text=normalize_template(text),
            category=category,
            synonyms=_synonyms(spdx_id, synonyms),
        )
    if errors:
        raise CatalogDataError(errors)
    return templates


def _read_template_dir(directory: Path) -> dict[str, str]:
    """Read ``<identifier>.txt`` files from *directory*."""
    return {p.stem: p.read_text(encoding='utf-8') for p in sorted(directory.glob('*.txt')) if p.is_file()}


@functools.cache
def default_catalog() -> TemplateCatalog:
    """Return the built-in catalog, loaded on first use."""
    return TemplateCatalog.load()
