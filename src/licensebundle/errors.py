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

"""Exception hierarchy for licensebundle.

Only conditions that make a run unsafe to continue are exceptions.
Everything else (missing license files, divergent text, ambiguous
multi-license choices, stale manual entries) is reported as a
:class:`~licensebundle._types.LicenseWarning` and never aborts the
processing of other packages.
"""

from __future__ import annotations

__all__ = [
    'CatalogDataError',
    'ConfigError',
    'LicenseBundleError',
    'MalformedArtifactError',
]


class LicenseBundleError(Exception):
    """Base class for all licensebundle errors."""


class ConfigError(LicenseBundleError):
    """Raised when ``licensebundle`` configuration is invalid."""


class _ErrorListMixin:
    """Formats a list of validation errors as a bullet list."""

    @staticmethod
    def _format(summary: str, errors: list[str]) -> str:
        bullet_list = '\n'.join(f'  - {e}' for e in errors)
        return f'{summary} has {len(errors)} validation error(s):\n{bullet_list}'


class CatalogDataError(_ErrorListMixin, LicenseBundleError):
    """Raised when the template catalog index fails validation.

    Attributes:
        errors: List of human-readable error strings.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(self._format('Template catalog', errors))


class MalformedArtifactError(_ErrorListMixin, LicenseBundleError):
    """Raised when a previous artifact is structurally invalid.

    This is fatal: merging against a half-understood artifact could
    silently destroy hand-curated entries.

    Attributes:
        errors: List of human-readable error strings.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(self._format('Previous artifact', errors))
