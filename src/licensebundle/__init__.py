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

r"""Third-party license bundling with confidence matching.

For each dependency, licensebundle finds the files that hold its
license, compares them with canonical templates, records how confident
the match is, and merges the result with the previously curated
artifact so hand-filled entries survive regeneration.

Components:

- :class:`TemplateCatalog`: canonical license texts by SPDX identifier.
- :class:`LicenseLocator`: finds candidate license files.
- :class:`ConfidenceMatcher`: scores candidates and builds records.
- :func:`choose`: picks one alternative of an ``OR`` expression.
- :func:`reconcile`: merges fresh and previous artifacts.
- :func:`bundle`: runs all of the above.

Usage::

    from pathlib import Path

    from licensebundle import PackageRef, bundle

    result = bundle(
        [
            PackageRef('foo', '1.0', 'MIT', root=Path('vendor/foo')),
            PackageRef('bar', '2.0', 'MIT OR Apache-2.0', root=Path('vendor/bar')),
        ],
        root='myapp',
    )
    for warning in result.warnings:
        print(warning)
    data = result.artifact.to_dict()
"""

from licensebundle._types import (
    NOT_FOUND_TEXT,
    Artifact,
    CandidateText,
    Confidence,
    LicenseRecord,
    LicenseText,
    LicenseWarning,
    PackageRef,
    WarningKind,
)
from licensebundle.bundle import BuildResult, BundleResult, build_artifact, bundle
from licensebundle.catalog import TemplateCatalog, TemplateInfo, default_catalog
from licensebundle.config import BundleConfig, load_config, parse_config
from licensebundle.errors import (
    CatalogDataError,
    ConfigError,
    LicenseBundleError,
    MalformedArtifactError,
)
from licensebundle.locator import LicenseLocator, read_directory_files
from licensebundle.matcher import ConfidenceMatcher, MatchResult
from licensebundle.preference import DEFAULT_PREFERENCE, choose
from licensebundle.reconcile import ArtifactDiff, ReconcileResult, diff_artifacts, reconcile

__version__ = '0.1.0'

__all__ = [
    'DEFAULT_PREFERENCE',
    'NOT_FOUND_TEXT',
    'Artifact',
    'ArtifactDiff',
    'BuildResult',
    'BundleConfig',
    'BundleResult',
    'CandidateText',
    'CatalogDataError',
    'Confidence',
    'ConfidenceMatcher',
    'ConfigError',
    'LicenseBundleError',
    'LicenseLocator',
    'LicenseRecord',
    'LicenseText',
    'LicenseWarning',
    'MalformedArtifactError',
    'MatchResult',
    'PackageRef',
    'ReconcileResult',
    'TemplateCatalog',
    'TemplateInfo',
    'WarningKind',
    '__version__',
    'build_artifact',
    'bundle',
    'choose',
    'default_catalog',
    'diff_artifacts',
    'load_config',
    'parse_config',
    'read_directory_files',
    'reconcile',
]
