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

r"""License Locator: find files that probably hold a package's license.

Given a package directory and its declared expression, the locator
returns every file whose *name* marks it as license text, either
generically (``LICENSE``, ``COPYING``) or for one of the declared
identifiers (``LICENSE-MIT``, ``APACHE-LICENSE.txt``, ``UNLICENSE``).
Nothing is scored here; that is the matcher's job.

Key Concepts (ELI5)::

    ┌─────────────────────┬──────────────────────────────────────────────┐
    │ Concept              │ Plain-English                                │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Generic file         │ ``LICENSE``, ``LICENCE.md``, ``COPYING``.   │
    │                      │ Could be any license.                       │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Specific file        │ Name mentions a declared license:           │
    │                      │ ``LICENSE-APACHE``, ``MIT-LICENSE.txt``.    │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Sniffing             │ Guess the license from a few well-known     │
    │                      │ phrases in the content.                     │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Workspace climbing   │ No license file next to the package? Look   │
    │                      │ in parent directories, up to the workspace. │
    └─────────────────────┴──────────────────────────────────────────────┘

File names are compared slugified (``LICENSE-Apache-2.0.txt`` becomes
``license-apache-2-0-txt``) against every synonym the catalog lists
for a declared identifier::

    <syn>   license-<syn>   licence-<syn>   <syn>-license
    (plus the -md / -txt variants of the last three)

Filesystem access goes through a *lookup* callable so callers (and
tests) can serve file contents from anywhere::

    locator = LicenseLocator(default_catalog(), lookup=my_lookup)
    locator.locate(Path('/src/foo'), 'MIT OR Apache-2.0')
    # [CandidateText(path='LICENSE-APACHE', ...), CandidateText(path='LICENSE-MIT', ...)]
"""

from __future__ import annotations

import functools
import os
import re
from collections.abc import Callable, Iterator
from pathlib import Path, PurePath

from licensebundle._types import CandidateText
from licensebundle.catalog import TemplateCatalog, slugify
from licensebundle.logging import get_logger
from licensebundle.similarity import distance
from licensebundle.spdx_expr import ParseError, license_ids, parse_lax

__all__ = [
    'DEFAULT_MAX_FILE_SIZE',
    'FileLookup',
    'LicenseLocator',
    'read_directory_files',
    'sniff_license',
]

log = get_logger('licensebundle.locator')

#: Files larger than this are never treated as license text.
DEFAULT_MAX_FILE_SIZE = 1024 * 1024

#: ``lookup(directory) -> [(path, contents), ...]`` for the direct
#: children of *directory*. Relative paths are taken relative to it.
FileLookup = Callable[[Path], list[tuple[Path, bytes]]]

_GENERIC_STEMS = ('license', 'licence', 'copying', 'unlicense')
_SUFFIXES = ('', '-md', '-txt')
_GENERIC_NAMES = frozenset(f'{stem}{suffix}' for stem in _GENERIC_STEMS for suffix in _SUFFIXES)

# Phrases in license file content → likely SPDX ID. More specific
# entries come first: Boost and Unicode texts also contain the MIT
# "Permission is hereby granted, free of charge" sentence, and the
# other copyleft texts mention the GNU GPL by name.
_LICENSE_FILE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r'LLVM Exceptions to the Apache 2\.0 License', re.IGNORECASE), 'Apache-2.0 WITH LLVM-exception'),
    (re.compile(r'Apache License', re.IGNORECASE), 'Apache-2.0'),
    (re.compile(r'Boost Software License', re.IGNORECASE), 'BSL-1.0'),
    (re.compile(r'UNICODE LICENSE V3', re.IGNORECASE), 'Unicode-3.0'),
    (re.compile(r'UNICODE, INC\. LICENSE AGREEMENT', re.IGNORECASE), 'Unicode-DFS-2016'),
    (re.compile(r'MIT License', re.IGNORECASE), 'MIT'),
    (re.compile(r'Permission is hereby granted, free of charge', re.IGNORECASE), 'MIT'),
    (re.compile(r'BSD 3-Clause', re.IGNORECASE), 'BSD-3-Clause'),
    (re.compile(r'BSD 2-Clause', re.IGNORECASE), 'BSD-2-Clause'),
    (
        re.compile(
            r'Redistribution and use in source and binary forms[\s\S]*?(?:Neither the name|endorse or promote)',
            re.IGNORECASE,
        ),
        'BSD-3-Clause',
    ),
    (re.compile(r'Redistribution and use in source and binary forms', re.IGNORECASE), 'BSD-2-Clause'),
    (re.compile(r'ISC License', re.IGNORECASE), 'ISC'),
    (re.compile(r'with or without fee is hereby granted,\s+provided that', re.IGNORECASE), 'ISC'),
    (re.compile(r'with or without fee is hereby granted\.', re.IGNORECASE), '0BSD'),
    (re.compile(r'Mozilla Public License[\s\S]*?2\.0', re.IGNORECASE), 'MPL-2.0'),
    (re.compile(r'GNU AFFERO GENERAL PUBLIC LICENSE[\s\S]*?Version 3', re.IGNORECASE), 'AGPL-3.0-only'),
    (re.compile(r'GNU LESSER GENERAL PUBLIC LICENSE[\s\S]*?Version 3', re.IGNORECASE), 'LGPL-3.0-only'),
    (re.compile(r'GNU LESSER GENERAL PUBLIC LICENSE[\s\S]*?Version 2\.1', re.IGNORECASE), 'LGPL-2.1-only'),
    (re.compile(r'GNU GENERAL PUBLIC LICENSE[\s\S]*?Version 3', re.IGNORECASE), 'GPL-3.0-only'),
    (re.compile(r'GNU GENERAL PUBLIC LICENSE[\s\S]*?Version 2', re.IGNORECASE), 'GPL-2.0-only'),
    (re.compile(r'The Unlicense', re.IGNORECASE), 'Unlicense'),
    (re.compile(r'free and unencumbered software released into the public domain', re.IGNORECASE), 'Unlicense'),
    (re.compile(r'Creative Commons[\s\S]*?CC0', re.IGNORECASE), 'CC0-1.0'),
    (re.compile(r'zlib License', re.IGNORECASE), 'Zlib'),
    (re.compile(r"This software is provided 'as-is'", re.IGNORECASE), 'Zlib'),
]


def sniff_license(text: str) -> str:
    """Guess the SPDX identifier of *text* from well-known phrases.

    Returns ``""`` when nothing matches.
    """
    flat = ' '.join(text.split())
    for compiled_re, spdx_id in _LICENSE_FILE_PATTERNS:
        if compiled_re.search(flat):
            return spdx_id
    return ''


def read_directory_files(directory: Path, *, max_size: int = DEFAULT_MAX_FILE_SIZE) -> list[tuple[Path, bytes]]:
    """Read the regular files directly inside *directory*.

    Missing directories, unreadable entries and files larger than
    *max_size* are skipped.
    """
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        log.debug('directory_unreadable', directory=str(directory), error=str(exc))
        return []
    files: list[tuple[Path, bytes]] = []
    for entry in entries:
        try:
            if not entry.is_file() or entry.stat().st_size > max_size:
                continue
            files.append((entry, entry.read_bytes()))
        except OSError as exc:
            log.debug('file_unreadable', path=str(entry), error=str(exc))
    return files


def _specific_names(synonym: str) -> Iterator[str]:
    yield synonym
    for suffix in _SUFFIXES:
        yield f'license-{synonym}{suffix}'
        yield f'licence-{synonym}{suffix}'
        yield f'{synonym}-license{suffix}'


def _absolute(path: Path) -> Path:
    # Normalizes ".." without resolving symlinks.
    return Path(os.path.abspath(path))


class LicenseLocator:
    """Find candidate license files for a package.

    Args:
        catalog: Source of per-identifier file-name synonyms and the
            templates used to disambiguate shared names.
        lookup: Directory reader. Defaults to :func:`read_directory_files`.
        max_file_size: Files above this size are ignored.
    """

    def __init__(
        self,
        catalog: TemplateCatalog,
        *,
        lookup: FileLookup | None = None,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ) -> None:
        self._catalog = catalog
        self._max_file_size = max_file_size
        self._lookup: FileLookup = lookup or functools.partial(read_directory_files, max_size=max_file_size)

    def locate(
        self,
        package_root: Path,
        declared_expression: str | None,
        *,
        workspace_root: Path | None = None,
    ) -> list[CandidateText]:
        """Return candidate license texts for one package, sorted by path.

        The package directory is scanned first. Only if it yields no
        candidate at all are its ancestors scanned, nearest first, up
        to and including *workspace_root*. Without a *workspace_root*
        (or when the package is not inside it) no climbing happens.

        Args:
            package_root: Directory holding the package.
            declared_expression: The package's declared license
                expression, or ``None``.
            workspace_root: Upper bound for climbing.

        Returns:
            Candidates from the first directory that has any; an empty
            list when nothing was found.
        """
        names = self._name_index(self._declared_ids(declared_expression))
        for directory in self._search_dirs(package_root, workspace_root):
            candidates = self._scan(directory, package_root, names)
            if candidates:
                if directory != package_root:
                    log.debug(
                        'license_found_in_ancestor',
                        package_root=str(package_root),
                        directory=str(directory),
                        count=len(candidates),
                    )
                return candidates
        log.debug('no_license_files', package_root=str(package_root))
        return []

    def read_license_file(self, license_file: Path, package_root: Path | None = None) -> list[CandidateText]:
        """Return the file a package's metadata names as its license.

        Relative paths resolve against *package_root*. The result holds
        at most one candidate and it is generic: no identifier is
        declared for it.
        """
        if license_file.is_absolute() or package_root is None:
            path = license_file
        else:
            path = package_root / license_file
        directory = path.parent
        for found, data in self._lookup(directory):
            if found.name != path.name:
                continue
            base = package_root if package_root is not None else directory
            candidate = self._candidate(found, data, directory, base, ())
            return [candidate] if candidate is not None else []
        log.debug('license_file_missing', path=str(path))
        return []

    # ── Name matching ────────────────────────────────────────────────

    def _declared_ids(self, expression: str | None) -> list[str]:
        if expression is None or not expression.strip():
            return []
        try:
            return license_ids(parse_lax(expression))
        except ParseError:
            return []

    def _synonyms(self, license_id: str) -> tuple[str, ...]:
        synonyms = self._catalog.synonyms(license_id)
        base, sep, _ = license_id.partition(' WITH ')
        if sep and license_id not in self._catalog:
            # Unknown exception: the base license's file names still apply.
            synonyms = tuple(dict.fromkeys(synonyms + self._catalog.synonyms(base)))
        return synonyms

    def _name_index(self, license_ids: list[str]) -> dict[str, tuple[str, ...]]:
        """Map each specific slugified file name to the ids it may hold."""
        index: dict[str, list[str]] = {}
        for license_id in license_ids:
            for synonym in self._synonyms(license_id):
                for name in _specific_names(synonym):
                    ids = index.setdefault(name, [])
                    if license_id not in ids:
                        ids.append(license_id)
        return {name: tuple(ids) for name, ids in index.items()}

    def _attribute(self, ids: tuple[str, ...], text: str, sniffed: str) -> str:
        """Pick which of *ids* a specifically named file belongs to."""
        if not ids:
            return ''
        if sniffed in ids:
            return sniffed
        if len(ids) == 1:
            return ids[0]
        # Shared name (LICENSE-BSD with both BSD variants declared):
        # the closest template decides, declared order breaks ties.
        best_id, best_score = ids[0], float('inf')
        for license_id in ids:
            template = self._catalog.lookup(license_id)
            if template is None:
                continue
            score = distance(text, template)
            if score < best_score:
                best_id, best_score = license_id, score
        return best_id

    # ── Scanning ─────────────────────────────────────────────────────

    def _search_dirs(self, package_root: Path, workspace_root: Path | None) -> Iterator[Path]:
        yield package_root
        if workspace_root is None:
            return
        root = _absolute(package_root)
        boundary = _absolute(workspace_root)
        if root == boundary or boundary not in root.parents:
            return
        for parent in root.parents:
            yield parent
            if parent == boundary:
                return

    def _scan(
        self,
        directory: Path,
        package_root: Path,
        names: dict[str, tuple[str, ...]],
    ) -> list[CandidateText]:
        candidates: list[CandidateText] = []
        for path, data in self._lookup(directory):
            slug = slugify(path.name)
            ids = names.get(slug, ())
            if not ids and slug not in _GENERIC_NAMES:
                continue
            candidate = self._candidate(path, data, directory, package_root, ids)
            if candidate is not None:
                candidates.append(candidate)
        return sorted(candidates, key=lambda c: c.path)

    def _candidate(
        self,
        path: Path,
        data: bytes,
        directory: Path,
        package_root: Path,
        ids: tuple[str, ...],
    ) -> CandidateText | None:
        if len(data) > self._max_file_size:
            log.debug('license_file_too_large', path=str(path), size=len(data))
            return None
        if b'\0' in data:
            log.debug('license_file_binary', path=str(path))
            return None
        text = data.decode('utf-8', errors='replace')
        sniffed = sniff_license(text)
        full_path = path if path.is_absolute() else directory / path
        relative = PurePath(os.path.relpath(_absolute(full_path), _absolute(package_root))).as_posix()
        return CandidateText(
            path=relative,
            text=text,
            license_id=self._attribute(ids, text, sniffed),
            sniffed_id=sniffed,
        )
