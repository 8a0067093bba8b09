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

r"""Reconciliation Engine: merge a fresh artifact with the curated one.

A freshly computed artifact never simply replaces the previous one:
humans fill in ``NOT FOUND`` texts and mark records ``manual``, and a
regeneration must not throw that work away. Per ``(name, version)``
present in the fresh artifact:

    ┌──────────────────────────────────────────┬─────────────────────────┐
    │ Situation                                 │ Result                  │
    ├──────────────────────────────────────────┼─────────────────────────┤
    │ Not in previous                           │ fresh                   │
    │ Previous MANUAL, same expression          │ previous                │
    │ Previous MANUAL, expression changed       │ fresh + stale warning   │
    │ Both NOT_FOUND, same expression           │ fresh, NOT FOUND texts  │
    │                                           │ filled from previous    │
    │ Both NOT_FOUND, expression changed        │ fresh                   │
    │ Previous >= fresh, same expression        │ previous                │
    │ Otherwise                                 │ fresh, NOT FOUND texts  │
    │                                           │ filled from previous    │
    └──────────────────────────────────────────┴─────────────────────────┘

Keys only the previous artifact has belong to dependencies that are
gone; they are dropped.

In check mode the merged artifact is diffed against the previous one;
any difference means the committed artifact is out of date.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from licensebundle._types import (
    NOT_FOUND_TEXT,
    Artifact,
    Confidence,
    LicenseRecord,
    LicenseText,
    LicenseWarning,
    WarningKind,
)
from licensebundle.logging import get_logger

__all__ = [
    'ArtifactDiff',
    'ReconcileResult',
    'diff_artifacts',
    'reconcile',
]

log = get_logger('licensebundle.reconcile')

Key = tuple[str, str]


@dataclass(frozen=True)
class ArtifactDiff:
    """Structural difference between two artifacts.

    Attributes:
        added: Keys only in the new artifact.
        removed: Keys only in the old artifact.
        modified: Keys in both whose records differ.
        root_changed: ``True`` if the root names differ.
    """

    added: tuple[Key, ...] = ()
    removed: tuple[Key, ...] = ()
    modified: tuple[Key, ...] = ()
    root_changed: bool = False

    def __bool__(self) -> bool:
        """Return ``True`` if the artifacts differ at all."""
        return bool(self.added or self.removed or self.modified or self.root_changed)


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of :func:`reconcile`.

    Attributes:
        artifact: The merged artifact.
        changed: In check mode, ``True`` if *artifact* differs from the
            previous artifact. Always ``False`` outside check mode.
        warnings: Findings raised while merging.
        diff: The structural diff, computed only in check mode.
    """

    artifact: Artifact
    changed: bool = False
    warnings: tuple[LicenseWarning, ...] = ()
    diff: ArtifactDiff | None = None


def diff_artifacts(new: Artifact, old: Artifact) -> ArtifactDiff:
    """Compare *new* against *old* key by key."""
    new_records = new.lookup()
    old_records = old.lookup()
    added = tuple(sorted(new_records.keys() - old_records.keys()))
    removed = tuple(sorted(old_records.keys() - new_records.keys()))
    modified = tuple(sorted(k for k in new_records.keys() & old_records.keys() if new_records[k] != old_records[k]))
    return ArtifactDiff(added=added, removed=removed, modified=modified, root_changed=new.root != old.root)


def reconcile(fresh: Artifact, previous: Artifact | None, *, check_only: bool = False) -> ReconcileResult:
    """Merge *fresh* with *previous*.

    Args:
        fresh: The artifact computed by this run.
        previous: The curated artifact from the last run, if any.
        check_only: Also diff the merged artifact against *previous*
            and report whether it changed.

    Returns:
        A :class:`ReconcileResult`. The merged artifact keeps the fresh
        root name.
    """
    previous_records = previous.lookup() if previous is not None else {}
    warnings: list[LicenseWarning] = []
    merged: list[LicenseRecord] = []
    for record in fresh:
        old = previous_records.get(record.key)
        if old is None:
            merged.append(record)
            continue
        merged.append(_merge_record(record, old, warnings))

    for key in sorted(previous_records.keys() - {r.key for r in fresh}):
        log.info('dropped_stale_entry', package=key[0], version=key[1])

    artifact = Artifact.build(merged, root=fresh.root)
    if not check_only:
        return ReconcileResult(artifact=artifact, warnings=tuple(warnings))

    diff = diff_artifacts(artifact, previous if previous is not None else Artifact())
    _log_diff(diff, artifact, previous)
    return ReconcileResult(artifact=artifact, changed=bool(diff), warnings=tuple(warnings), diff=diff)


def _merge_record(fresh: LicenseRecord, old: LicenseRecord, warnings: list[LicenseWarning]) -> LicenseRecord:
    same_expression = fresh.license == old.license
    if old.confidence == Confidence.MANUAL:
        if same_expression:
            return old
        reason = f'declared license changed from {old.license!r} to {fresh.license!r}; manual entry replaced'
        warnings.append(_warning(fresh, WarningKind.STALE_MANUAL_ENTRY, reason))
        log.warning(
            'stale_manual_entry',
            package=fresh.name,
            version=fresh.version,
            old_license=old.license,
            new_license=fresh.license,
        )
        return fresh
    if old.confidence == Confidence.NOT_FOUND and fresh.confidence == Confidence.NOT_FOUND:
        # Text a human pasted in survives; everything else is fresh.
        return _fill_from_previous(fresh, old, warnings) if same_expression else fresh
    if same_expression and old.confidence >= fresh.confidence:
        return old
    return _fill_from_previous(fresh, old, warnings)


def _fill_from_previous(fresh: LicenseRecord, old: LicenseRecord, warnings: list[LicenseWarning]) -> LicenseRecord:
    """Replace ``NOT FOUND`` texts in *fresh* with real text from *old*."""
    licenses: list[LicenseText] = []
    for lic in fresh.licenses:
        previous_text = old.text_for(lic.license) if not lic.found else None
        if previous_text is None or previous_text == NOT_FOUND_TEXT:
            licenses.append(lic)
            continue
        log.info('reusing_previous_text', package=fresh.name, version=fresh.version, license=lic.license)
        warnings.append(
            _warning(
                fresh,
                WarningKind.PREVIOUS_TEXT_REUSED,
                f'no license text found for {lic.license or "the package"}; '
                'reusing the text from the previous artifact',
            )
        )
        licenses.append(LicenseText(license=lic.license, text=previous_text))
    return replace(fresh, licenses=tuple(licenses))


def _warning(record: LicenseRecord, kind: WarningKind, reason: str) -> LicenseWarning:
    return LicenseWarning(
        package=record.name,
        version=record.version,
        confidence=record.confidence,
        kind=kind,
        reason=reason,
    )


def _log_diff(diff: ArtifactDiff, new: Artifact, old: Artifact | None) -> None:
    if diff.root_changed:
        log.error('root_mismatch', new_root=new.root, old_root=old.root if old is not None else '')
    for name, version in diff.added:
        log.error('entry_missing_from_previous', package=name, version=version)
    for name, version in diff.removed:
        log.error('entry_no_longer_needed', package=name, version=version)
    for name, version in diff.modified:
        log.error('entry_differs', package=name, version=version)
