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

r"""Confidence Matcher: turn candidate texts into one license record.

For each package the matcher:

1. Expands the declared expression into OR-alternatives of AND-groups
   (:func:`~licensebundle.spdx_expr.alternatives`).
2. Scores every identifier against its catalog template using the
   candidate files attributed to it (or, failing those, the generic
   ``LICENSE`` files).
3. Rates each AND-group by its weakest member.
4. Picks one alternative with the Preference Resolver: the caller's
   preference list first, then the built-in ranking, and only then
   declared order. Declared order alone decides when one file name
   fits several identifiers equally well (see the locator).
5. Reports everything short of a confident match as a
   :class:`~licensebundle._types.LicenseWarning`.

A package that declares no expression but names a license file is
recorded under ``License specified in file (<path>)`` with that
file's text at ``UNSURE`` confidence, since no template can verify it.

Key Concepts (ELI5)::

    ┌─────────────────────┬──────────────────────────────────────────────┐
    │ Concept              │ Plain-English                                │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Distance             │ How many words differ from the template,    │
    │                      │ as a fraction of the template's length.     │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ CONFIDENT / SEMI /   │ Distance under 10% / under 15% / anything   │
    │ UNSURE               │ else. Unsure text is still recorded.        │
    ├─────────────────────┼──────────────────────────────────────────────┤
    │ Contender            │ An OR-alternative worth choosing: SEMI or   │
    │                      │ better, else anything with text, else all.  │
    └─────────────────────┴──────────────────────────────────────────────┘
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from licensebundle._types import (
    NOT_FOUND_TEXT,
    CandidateText,
    Confidence,
    LicenseRecord,
    LicenseText,
    LicenseWarning,
    PackageRef,
    WarningKind,
    file_license_id,
    portable_path,
)
from licensebundle.catalog import TemplateCatalog
from licensebundle.logging import get_logger
from licensebundle.preference import choose
from licensebundle.similarity import (
    DEFAULT_CONFIDENT_THRESHOLD,
    DEFAULT_SEMI_THRESHOLD,
    classify,
    distance,
)
from licensebundle.spdx_expr import alternatives as expand_alternatives, parse_lax

__all__ = [
    'ConfidenceMatcher',
    'MatchResult',
]

log = get_logger('licensebundle.matcher')


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one package.

    Attributes:
        record: The finalized record.
        warnings: Non-fatal findings, in the order they were raised.
    """

    record: LicenseRecord
    warnings: tuple[LicenseWarning, ...] = ()


@dataclass(frozen=True)
class _IdMatch:
    """Best text found for a single identifier."""

    license_id: str
    confidence: Confidence
    text: str = NOT_FOUND_TEXT
    path: str = ''
    score: float | None = None
    has_template: bool = True
    # Other files that reached the same confidence level.
    also: tuple[str, ...] = ()


@dataclass(frozen=True)
class _GroupMatch:
    """All identifiers of one AND-group."""

    matches: tuple[_IdMatch, ...]
    identifier: str = field(init=False)
    confidence: Confidence = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'identifier', ' AND '.join(m.license_id for m in self.matches))
        object.__setattr__(self, 'confidence', min(m.confidence for m in self.matches))

    @property
    def has_text(self) -> bool:
        return any(m.text != NOT_FOUND_TEXT for m in self.matches)


class ConfidenceMatcher:
    """Score candidate texts against the template catalog.

    Args:
        catalog: Canonical templates.
        confident_threshold: Distance below which a match is confident.
        semi_threshold: Distance below which a match is semi-confident.
        preference: Caller preference for OR choices, most preferred
            first.
        path_aliases: Prefixes replaced by a name (``'$CARGO_HOME'``)
            when a declared license file is recorded.
    """

    def __init__(
        self,
        catalog: TemplateCatalog,
        *,
        confident_threshold: float = DEFAULT_CONFIDENT_THRESHOLD,
        semi_threshold: float = DEFAULT_SEMI_THRESHOLD,
        preference: Sequence[str] | None = None,
        path_aliases: Mapping[str, Path] | None = None,
    ) -> None:
        if not 0 < confident_threshold <= semi_threshold:
            raise ValueError(
                f'thresholds must satisfy 0 < confident_threshold <= semi_threshold, '
                f'got {confident_threshold} and {semi_threshold}'
            )
        self._catalog = catalog
        self._confident_threshold = confident_threshold
        self._semi_threshold = semi_threshold
        self._preference = tuple(preference or ())
        self._path_aliases = dict(path_aliases or {})

    def match(self, package: PackageRef, candidates: Sequence[CandidateText]) -> MatchResult:
        """Produce the license record for *package* from *candidates*."""
        declared = (package.license or '').strip()
        if not declared:
            if package.license_file is not None:
                return self._declared_file(package, package.license_file, candidates)
            return self._unspecified(package, candidates)

        groups = [
            _GroupMatch(tuple(self._match_id(license_id, candidates) for license_id in group))
            for group in expand_alternatives(parse_lax(declared))
        ]
        contenders = (
            [g for g in groups if g.confidence >= Confidence.SEMI] or [g for g in groups if g.has_text] or groups
        )
        by_identifier = {g.identifier: g for g in contenders}
        chosen = by_identifier[choose([g.identifier for g in contenders], self._preference)]

        record = LicenseRecord(
            name=package.name,
            version=package.version,
            repository=package.repository,
            license=package.license or '',
            licenses=tuple(LicenseText(license=m.license_id, text=m.text) for m in chosen.matches),
            confidence=chosen.confidence,
        )
        warnings: list[LicenseWarning] = []
        if len(groups) > 1:
            discarded = tuple((g.identifier, g.confidence) for g in groups if g is not chosen)
            warnings.append(
                self._warn(
                    record,
                    WarningKind.AMBIGUOUS_MULTI_LICENSE,
                    f'{declared!r} offers {len(groups)} alternatives; chose {chosen.identifier} '
                    f'({chosen.confidence.value}) over '
                    + ', '.join(f'{ident} ({conf.value})' for ident, conf in discarded),
                    alternatives=discarded,
                )
            )
        for m in chosen.matches:
            warnings.extend(self._id_warnings(record, m))
        return MatchResult(record=record, warnings=tuple(warnings))

    # ── Scoring ──────────────────────────────────────────────────────

    def _match_id(self, license_id: str, candidates: Sequence[CandidateText]) -> _IdMatch:
        pool = [c for c in candidates if c.license_id == license_id] or [c for c in candidates if c.generic]
        if not pool:
            return _IdMatch(license_id=license_id, confidence=Confidence.NOT_FOUND)
        pool.sort(key=lambda c: c.path)

        template = self._catalog.lookup(license_id)
        if template is None:
            first = pool[0]
            return _IdMatch(
                license_id=license_id,
                confidence=Confidence.UNSURE,
                text=first.text,
                path=first.path,
                has_template=False,
                also=tuple(c.path for c in pool[1:]),
            )

        scored = [(distance(c.text, template), c) for c in pool]
        # min() keeps the first of equal scores, i.e. path order.
        best_score, best = min(scored, key=lambda pair: pair[0])
        level = self._classify(best_score)
        also = tuple(c.path for score, c in scored if c is not best and self._classify(score) == level)
        return _IdMatch(
            license_id=license_id,
            confidence=level,
            text=best.text,
            path=best.path,
            score=best_score,
            also=also,
        )

    def _classify(self, score: float) -> Confidence:
        return classify(score, confident_threshold=self._confident_threshold, semi_threshold=self._semi_threshold)

    # ── Warnings ─────────────────────────────────────────────────────

    def _id_warnings(self, record: LicenseRecord, m: _IdMatch) -> list[LicenseWarning]:
        warnings: list[LicenseWarning] = []
        if m.confidence == Confidence.NOT_FOUND:
            warnings.append(
                self._warn(record, WarningKind.NO_LICENSE_FOUND, f'no license text found for {m.license_id}')
            )
            return warnings
        if not m.has_template:
            warnings.append(
                self._warn(
                    record,
                    WarningKind.NO_TEMPLATE,
                    f'no template for {m.license_id}; using {m.path} unverified',
                )
            )
        elif m.confidence < Confidence.CONFIDENT and m.score is not None:
            warnings.append(
                self._warn(
                    record,
                    WarningKind.DIVERGENT_TEXT,
                    f'{m.path} diverges {m.score:.0%} from the {m.license_id} template',
                )
            )
        if m.also:
            warnings.append(
                self._warn(
                    record,
                    WarningKind.MULTIPLE_CANDIDATES,
                    f'{len(m.also) + 1} files could hold {m.license_id}; using {m.path} over {", ".join(m.also)}',
                )
            )
        return warnings

    def _declared_file(
        self,
        package: PackageRef,
        license_file: Path,
        candidates: Sequence[CandidateText],
    ) -> MatchResult:
        # The file has no template of its own, so its text is never
        # better than unsure. Its identifier doubles as the declared
        # expression so a moved file shows up when reconciling.
        if not license_file.is_absolute() and package.root is not None:
            license_file = package.root / license_file
        display = portable_path(license_file, self._path_aliases)
        identifier = file_license_id(display)
        best = min(candidates, key=lambda c: c.path) if candidates else None
        record = LicenseRecord(
            name=package.name,
            version=package.version,
            repository=package.repository,
            license=identifier,
            licenses=(LicenseText(license=identifier, text=best.text if best is not None else NOT_FOUND_TEXT),),
            confidence=Confidence.UNSURE if best is not None else Confidence.NOT_FOUND,
        )
        if best is None:
            warning = self._warn(record, WarningKind.NO_LICENSE_FOUND, f'license file {display} not found')
            return MatchResult(record=record, warnings=(warning,))
        reason = f'license declared by file {display}; no template to verify it against'
        if best.sniffed_id:
            reason += f'; it looks like {best.sniffed_id}'
        return MatchResult(record=record, warnings=(self._warn(record, WarningKind.NO_TEMPLATE, reason),))

    def _unspecified(self, package: PackageRef, candidates: Sequence[CandidateText]) -> MatchResult:
        record = LicenseRecord(
            name=package.name,
            version=package.version,
            repository=package.repository,
            license=package.license or '',
            licenses=(LicenseText(license='', text=NOT_FOUND_TEXT),),
            confidence=Confidence.NOT_FOUND,
        )
        sniffed = sorted({c.sniffed_id for c in candidates if c.sniffed_id})
        reason = 'package declares no license'
        if sniffed:
            reason += f'; its license files look like {", ".join(sniffed)}'
        elif candidates:
            reason += f'; found {", ".join(c.path for c in candidates)}'
        return MatchResult(record=record, warnings=(self._warn(record, WarningKind.UNSPECIFIED_LICENSE, reason),))

    @staticmethod
    def _warn(
        record: LicenseRecord,
        kind: WarningKind,
        reason: str,
        *,
        alternatives: tuple[tuple[str, Confidence], ...] = (),
    ) -> LicenseWarning:
        warning = LicenseWarning(
            package=record.name,
            version=record.version,
            confidence=record.confidence,
            kind=kind,
            reason=reason,
            alternatives=alternatives,
        )
        log.warning(
            kind.name.lower(),
            package=record.name,
            version=record.version,
            confidence=record.confidence.value,
            reason=reason,
        )
        return warning
