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

"""Shared leaf-level types used across licensebundle.

This module must have **zero** imports from other ``licensebundle``
modules except :mod:`licensebundle.errors` to avoid circular-import
chains.  It is safe to import from any module in the project.

Key Concepts::

    ┌─────────────────────┬──────────────────────────────────────────────┐
    │ Type                 │ Plain-English                                │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ PackageRef           │ Who the dependency is and what license it   │
    │                      │ claims. Supplied by the caller.             │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ CandidateText        │ A file that probably holds license text.    │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ LicenseRecord        │ The final answer for one package.           │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Artifact             │ All records, sorted by (name, version).     │
    │                      │ The only thing persisted between runs.      │
    └─────────────────────┴──────────────────────────────────────────────┘
"""

from __future__ import annotations

import enum
import functools
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from licensebundle.errors import MalformedArtifactError

__all__ = [
    'NOT_FOUND_TEXT',
    'Artifact',
    'CandidateText',
    'Confidence',
    'LicenseRecord',
    'LicenseText',
    'LicenseWarning',
    'PackageRef',
    'WarningKind',
    'file_license_id',
    'portable_path',
]

#: Placeholder text for a license whose text could not be located.
NOT_FOUND_TEXT = 'NOT FOUND'


@functools.total_ordering
class Confidence(enum.Enum):
    """How trustworthy a resolved license record is.

    Ordered from least to most trustworthy::

        NOT_FOUND < UNSURE < SEMI < CONFIDENT < MANUAL

    ``MANUAL`` marks text or identifiers supplied by a human; those are
    never re-derived automatically.
    """

    NOT_FOUND = 'not-found'
    UNSURE = 'unsure'
    SEMI = 'semi'
    CONFIDENT = 'confident'
    MANUAL = 'manual'

    @property
    def rank(self) -> int:
        """Position of this level in the confidence ordering."""
        return _CONFIDENCE_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        """Compare by rank."""
        if not isinstance(other, Confidence):
            return NotImplemented
        return self.rank < other.rank


# Lowest first.
_CONFIDENCE_ORDER: list[Confidence] = [
    Confidence.NOT_FOUND,
    Confidence.UNSURE,
    Confidence.SEMI,
    Confidence.CONFIDENT,
    Confidence.MANUAL,
]


class WarningKind(enum.Enum):
    """Non-fatal conditions reported alongside an artifact."""

    NO_LICENSE_FOUND = 'no-license-found'
    UNSPECIFIED_LICENSE = 'unspecified-license'
    DIVERGENT_TEXT = 'divergent-text'
    NO_TEMPLATE = 'no-template'
    MULTIPLE_CANDIDATES = 'multiple-candidates'
    AMBIGUOUS_MULTI_LICENSE = 'ambiguous-multi-license'
    STALE_MANUAL_ENTRY = 'stale-manual-entry'
    PREVIOUS_TEXT_REUSED = 'previous-text-reused'


@dataclass(frozen=True)
class PackageRef:
    """Identity and declared license of one dependency.

    Attributes:
        name: Package name.
        version: Package version string.
        license: Declared license expression, or ``None`` when the
            package declares nothing.
        root: Directory holding the package sources, if known.
        repository: Repository URL from the package metadata.
        workspace_root: Upper bound for workspace climbing. Ancestors of
            :attr:`root` up to and including this directory are searched
            when the package has no license file of its own.
        license_file: File named by the metadata as holding the license,
            used only when no expression is declared. Relative paths
            resolve against :attr:`root`.
    """

    name: str
    version: str
    license: str | None = None
    root: Path | None = None
    repository: str = ''
    workspace_root: Path | None = None
    license_file: Path | None = None

    @property
    def key(self) -> tuple[str, str]:
        """The ``(name, version)`` pair identifying this package."""
        return (self.name, self.version)

    def __str__(self) -> str:
        """Return ``name@version``."""
        return f'{self.name}@{self.version}'


def portable_path(path: Path, aliases: Mapping[str, Path] | None = None) -> str:
    """Return *path* in POSIX form with a known prefix replaced by its alias.

    A license file under a per-user cache directory is recorded as
    ``$CARGO_HOME/registry/...`` rather than ``/home/jane/.cargo/...`` so
    artifacts compare equal across machines. The longest matching
    prefix wins.

    >>> portable_path(Path('/home/jane/.cargo/x/LICENSE'), {'$CARGO_HOME': Path('/home/jane/.cargo')})
    '$CARGO_HOME/x/LICENSE'
    """
    for alias, prefix in sorted((aliases or {}).items(), key=lambda item: len(item[1].parts), reverse=True):
        try:
            rest = path.relative_to(prefix)
        except ValueError:
            continue
        return str(PurePosixPath(alias, *rest.parts))
    return path.as_posix()


def file_license_id(display_path: str) -> str:
    """Return the identifier recorded for a license declared only by file."""
    return f'License specified in file ({display_path})'


@dataclass(frozen=True)
class CandidateText:
    """Text recovered from a file believed to contain license content.

    Attributes:
        path: POSIX path relative to the package root (``LICENSE-MIT``,
            ``../../LICENSE``).
        text: Decoded file contents.
        license_id: Declared identifier the file is attributed to by its
            name. Empty for generic files such as ``LICENSE``.
        sniffed_id: Identifier guessed from the content, or ``""``.
    """

    path: str
    text: str
    license_id: str = ''
    sniffed_id: str = ''

    @property
    def generic(self) -> bool:
        """``True`` if the file is not attributed to a specific license."""
        return not self.license_id


@dataclass(frozen=True)
class LicenseText:
    """A single license identifier with its text.

    Attributes:
        license: SPDX identifier. ``WITH`` exceptions stay part of the
            identifier (``Apache-2.0 WITH LLVM-exception``).
        text: The verbatim license text, or :data:`NOT_FOUND_TEXT`.
    """

    license: str
    text: str

    @property
    def found(self) -> bool:
        """``True`` if real text is present."""
        return self.text != NOT_FOUND_TEXT


@dataclass(frozen=True)
class LicenseRecord:
    """The finalized license outcome for one package.

    Attributes:
        name: Package name.
        version: Package version.
        repository: Repository URL, or ``""``.
        license: The declared expression exactly as the package states it.
        licenses: One entry per identifier of the chosen alternative.
        confidence: Trust level of this record.
    """

    name: str
    version: str
    repository: str = ''
    license: str = ''
    licenses: tuple[LicenseText, ...] = ()
    confidence: Confidence = Confidence.NOT_FOUND

    @property
    def key(self) -> tuple[str, str]:
        """The ``(name, version)`` pair identifying this record."""
        return (self.name, self.version)

    @property
    def identifier(self) -> str:
        """The resolved identifier (AND-joined for combined licenses)."""
        return ' AND '.join(lic.license for lic in self.licenses)

    def text_for(self, license_id: str) -> str | None:
        """Return the text stored for *license_id*, if any."""
        for lic in self.licenses:
            if lic.license == license_id:
                return lic.text
        return None

    def to_dict(self) -> dict[str, Any]:
        """Return a plain mapping suitable for any serializer."""
        return {
            'package_name': self.name,
            'package_version': self.version,
            'repository': self.repository,
            'license': self.license,
            'confidence': self.confidence.value,
            'licenses': [{'license': lic.license, 'text': lic.text} for lic in self.licenses],
        }


@dataclass(frozen=True)
class LicenseWarning:
    """A human-actionable, non-fatal finding.

    Attributes:
        package: Package name.
        version: Package version.
        confidence: Confidence of the affected record.
        kind: What went wrong.
        reason: Human-readable explanation.
        alternatives: For multi-license choices, the discarded
            ``(identifier, confidence)`` pairs.
    """

    package: str
    version: str
    confidence: Confidence
    kind: WarningKind
    reason: str
    alternatives: tuple[tuple[str, Confidence], ...] = ()

    def __str__(self) -> str:
        """Return ``name@version: reason``."""
        return f'{self.package}@{self.version}: {self.reason}'


def _sort_key(record: LicenseRecord) -> tuple[str, str]:
    return record.key


@dataclass(frozen=True)
class Artifact:
    """An ordered collection of license records.

    Use :meth:`build` rather than the constructor: it sorts by
    ``(name, version)`` and drops duplicate keys so semantically equal
    artifacts compare (and serialize) identically.

    Attributes:
        root: Name of the project the artifact describes.
        records: Records sorted by ``(name, version)``.
    """

    root: str = ''
    records: tuple[LicenseRecord, ...] = field(default=())

    @classmethod
    def build(cls, records: Iterable[LicenseRecord], *, root: str = '') -> Artifact:
        """Return an artifact holding *records* in canonical order.

        The first record seen for a ``(name, version)`` key wins.
        """
        seen: dict[tuple[str, str], LicenseRecord] = {}
        for record in records:
            seen.setdefault(record.key, record)
        return cls(root=root, records=tuple(sorted(seen.values(), key=_sort_key)))

    def __len__(self) -> int:
        """Return the number of records."""
        return len(self.records)

    def __iter__(self) -> Iterator[LicenseRecord]:
        """Iterate records in canonical order."""
        return iter(self.records)

    def lookup(self) -> dict[tuple[str, str], LicenseRecord]:
        """Return a ``(name, version)`` → record mapping."""
        return {record.key: record for record in self.records}

    def get(self, name: str, version: str) -> LicenseRecord | None:
        """Return the record for ``name@version``, if present."""
        for record in self.records:
            if record.name == name and record.version == version:
                return record
        return None

    def to_dict(self) -> dict[str, Any]:
        """Return a plain mapping suitable for any serializer."""
        return {
            'root_name': self.root,
            'third_party_libraries': [record.to_dict() for record in self.records],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Artifact:
        """Rebuild an artifact from :meth:`to_dict` output.

        Every structural problem is collected before raising so a human
        can fix a hand-edited artifact in one pass.

        Raises:
            MalformedArtifactError: If *data* is not a valid artifact.
        """
        if not isinstance(data, Mapping):
            raise MalformedArtifactError([f'expected a table at top level, got {type(data).__name__}'])
        errors: list[str] = []
        root = data.get('root_name', '')
        if not isinstance(root, str):
            errors.append(f'root_name: expected string, got {type(root).__name__}')
            root = ''
        entries = data.get('third_party_libraries', [])
        if not isinstance(entries, list):
            raise MalformedArtifactError([
                *errors,
                f'third_party_libraries: expected list, got {type(entries).__name__}',
            ])

        records: list[LicenseRecord] = []
        seen: set[tuple[str, str]] = set()
        for i, entry in enumerate(entries):
            record = _parse_record(entry, f'third_party_libraries[{i}]', errors)
            if record is None:
                continue
            if record.key in seen:
                errors.append(f'third_party_libraries[{i}]: duplicate entry for {record.name}@{record.version}')
                continue
            seen.add(record.key)
            records.append(record)

        if errors:
            raise MalformedArtifactError(errors)
        return cls.build(records, root=root)


def _parse_record(entry: object, where: str, errors: list[str]) -> LicenseRecord | None:
    """Validate one serialized record, appending problems to *errors*."""
    if not isinstance(entry, Mapping):
        errors.append(f'{where}: expected a table, got {type(entry).__name__}')
        return None
    before = len(errors)
    strings: dict[str, str] = {}
    for key, required in (
        ('package_name', True),
        ('package_version', True),
        ('repository', False),
        ('license', False),
    ):
        value = entry.get(key, None if required else '')
        if value is None:
            errors.append(f'{where}: missing required field "{key}"')
        elif not isinstance(value, str):
            errors.append(f'{where}.{key}: expected string, got {type(value).__name__}')
        else:
            strings[key] = value

    licenses: list[LicenseText] = []
    raw_licenses = entry.get('licenses', [])
    if not isinstance(raw_licenses, list):
        errors.append(f'{where}.licenses: expected list, got {type(raw_licenses).__name__}')
    else:
        for j, lic in enumerate(raw_licenses):
            if (
                not isinstance(lic, Mapping)
                or not isinstance(lic.get('license'), str)
                or not isinstance(lic.get('text'), str)
            ):
                errors.append(f'{where}.licenses[{j}]: expected a table with string "license" and "text"')
                continue
            licenses.append(LicenseText(license=lic['license'], text=lic['text']))

    raw_conf = entry.get('confidence')
    confidence: Confidence | None = None
    if raw_conf is None:
        # Artifacts written before confidence was tracked.
        found = all(lic.found for lic in licenses)
        confidence = Confidence.CONFIDENT if licenses and found else Confidence.NOT_FOUND
    elif not isinstance(raw_conf, str):
        errors.append(f'{where}.confidence: expected string, got {type(raw_conf).__name__}')
    else:
        try:
            confidence = Confidence(raw_conf)
        except ValueError:
            valid = ', '.join(c.value for c in _CONFIDENCE_ORDER)
            errors.append(f'{where}.confidence: {raw_conf!r} is not valid. Must be one of: {valid}')

    if len(errors) > before or confidence is None:
        return None
    return LicenseRecord(
        name=strings['package_name'],
        version=strings['package_version'],
        repository=strings['repository'],
        license=strings['license'],
        licenses=tuple(licenses),
        confidence=confidence,
    )
