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

"""Run the whole pipeline: locate, match, assemble, reconcile.

Every package is located and matched in isolation against read-only
catalog data, so packages are processed concurrently in worker threads
(file reads and text scoring are blocking). Results are collected in
input order, then sorted into the artifact.

A run is atomic: any exception propagates before an artifact exists,
so callers never persist partial output.

Usage::

    from licensebundle import PackageRef, bundle

    result = bundle(
        [PackageRef('foo', '1.0', 'MIT', root=Path('vendor/foo'))],
        root='myapp',
        previous=json.loads(Path('THIRDPARTY.json').read_text()),
        check_only=True,
    )
    if result.changed:
        ...
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from licensebundle._types import Artifact, CandidateText, LicenseRecord, LicenseWarning, PackageRef
from licensebundle.catalog import TemplateCatalog, default_catalog
from licensebundle.config import BundleConfig
from licensebundle.locator import FileLookup, LicenseLocator
from licensebundle.logging import get_logger
from licensebundle.matcher import ConfidenceMatcher, MatchResult
from licensebundle.reconcile import ArtifactDiff, reconcile

__all__ = [
    'BuildResult',
    'BundleResult',
    'build_artifact',
    'bundle',
]

log = get_logger('licensebundle.bundle')


@dataclass(frozen=True)
class BuildResult:
    """A freshly computed artifact and the warnings raised building it."""

    artifact: Artifact
    warnings: tuple[LicenseWarning, ...] = ()


@dataclass(frozen=True)
class BundleResult:
    """Outcome of :func:`bundle`.

    Attributes:
        artifact: The reconciled artifact.
        warnings: Matcher warnings followed by reconciliation warnings.
        changed: In check mode, whether *artifact* differs from the
            previous artifact.
        diff: The structural diff (check mode only).
    """

    artifact: Artifact
    warnings: tuple[LicenseWarning, ...] = ()
    changed: bool = False
    diff: ArtifactDiff | None = None


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def _process(package: PackageRef, locator: LicenseLocator, matcher: ConfidenceMatcher) -> MatchResult:
    candidates: list[CandidateText] = []
    if not (package.license or '').strip() and package.license_file is not None:
        candidates = locator.read_license_file(package.license_file, package.root)
    elif package.root is not None:
        candidates = locator.locate(package.root, package.license, workspace_root=package.workspace_root)
    result = matcher.match(package, candidates)
    log.debug(
        'package_matched',
        package=package.name,
        version=package.version,
        license=result.record.identifier,
        confidence=result.record.confidence.value,
        candidates=len(candidates),
    )
    return result


async def build_artifact(
    packages: Iterable[PackageRef],
    *,
    locator: LicenseLocator,
    matcher: ConfidenceMatcher,
    root: str = '',
    concurrency: int = 8,
) -> BuildResult:
    """Locate and match every package concurrently.

    Args:
        packages: The dependency set. Repeated ``(name, version)`` keys
            are processed once; the first occurrence wins.
        locator: Finds candidate license files.
        matcher: Turns candidates into records.
        root: Name of the project the artifact describes.
        concurrency: Maximum packages in flight.

    Returns:
        The fresh artifact plus all matcher warnings, in input order.
    """
    unique: dict[tuple[str, str], PackageRef] = {}
    for package in packages:
        if package.key in unique:
            log.debug('duplicate_package', package=package.name, version=package.version)
            continue
        unique[package.key] = package

    sem = asyncio.Semaphore(concurrency)

    async def _do_one(package: PackageRef) -> MatchResult:
        async with sem:
            return await asyncio.to_thread(_process, package, locator, matcher)

    results = await asyncio.gather(*(_do_one(p) for p in unique.values()))
    records: list[LicenseRecord] = [r.record for r in results]
    warnings = tuple(w for r in results for w in r.warnings)
    log.info('artifact_built', root=root, packages=len(records), warnings=len(warnings))
    return BuildResult(artifact=Artifact.build(records, root=root), warnings=warnings)


def bundle(
    packages: Iterable[PackageRef],
    *,
    previous: Artifact | Mapping[str, Any] | None = None,
    config: BundleConfig | None = None,
    catalog: TemplateCatalog | None = None,
    lookup: FileLookup | None = None,
    root: str = '',
    check_only: bool = False,
) -> BundleResult:
    """Build a fresh artifact and reconcile it with *previous*.

    Runs its own event loop. From async code, await
    :func:`build_artifact` and pass the result to
    :func:`~licensebundle.reconcile.reconcile` instead.

    Args:
        packages: The dependency set.
        previous: The curated artifact, either loaded or as the raw
            mapping produced by :meth:`Artifact.to_dict`.
        config: Settings; defaults when ``None``.
        catalog: Template catalog; the built-in one when ``None``.
            Templates named in *config* are registered on top.
        lookup: Directory reader for the locator.
        root: Name of the project the artifact describes.
        check_only: Diff the result against *previous*.

    Raises:
        MalformedArtifactError: If *previous* is a mapping that is not
            a valid artifact.
        ConfigError: If a configured template file cannot be read.
        RuntimeError: If called while an event loop is running.
    """
    if _loop_running():
        raise RuntimeError('bundle() cannot run inside an event loop; await build_artifact() and call reconcile()')
    cfg = config if config is not None else BundleConfig()
    # Validate before doing any work.
    if previous is not None and not isinstance(previous, Artifact):
        previous = Artifact.from_dict(previous)

    catalog = catalog if catalog is not None else default_catalog()
    if cfg.templates:
        catalog = catalog.extend(cfg.template_texts())

    locator = LicenseLocator(catalog, lookup=lookup, max_file_size=cfg.max_file_size)
    matcher = ConfidenceMatcher(
        catalog,
        confident_threshold=cfg.confident_threshold,
        semi_threshold=cfg.semi_threshold,
        preference=cfg.preference,
        path_aliases=cfg.path_aliases,
    )
    built = asyncio.run(
        build_artifact(packages, locator=locator, matcher=matcher, root=root, concurrency=cfg.concurrency)
    )
    merged = reconcile(built.artifact, previous, check_only=check_only)
    return BundleResult(
        artifact=merged.artifact,
        warnings=built.warnings + merged.warnings,
        changed=merged.changed,
        diff=merged.diff,
    )
