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

"""Configuration for licensebundle.

Settings live either in a standalone ``licensebundle.toml`` (keys at
the top level) or in ``pyproject.toml`` under ``[tool.licensebundle]``::

    [tool.licensebundle]
    preference = ["Apache-2.0", "MIT"]
    confident_threshold = 0.10
    semi_threshold = 0.15
    concurrency = 8
    max_file_size = 1048576

    [tool.licensebundle.templates]
    "LicenseRef-Acme" = "licenses/acme.txt"

    [tool.licensebundle.path_aliases]
    "$CARGO_HOME" = "~/.cargo"

Every key is optional. Unknown keys are rejected so typos surface
instead of silently falling back to defaults.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from licensebundle.errors import ConfigError
from licensebundle.locator import DEFAULT_MAX_FILE_SIZE
from licensebundle.similarity import DEFAULT_CONFIDENT_THRESHOLD, DEFAULT_SEMI_THRESHOLD

__all__ = [
    'CONFIG_FILENAME',
    'BundleConfig',
    'load_config',
    'parse_config',
]

CONFIG_FILENAME = 'licensebundle.toml'

_SECTION = '[tool.licensebundle]'

_ALLOWED_KEYS = frozenset({
    'preference',
    'confident_threshold',
    'semi_threshold',
    'concurrency',
    'templates',
    'max_file_size',
    'path_aliases',
})


@dataclass(frozen=True)
class BundleConfig:
    """Validated licensebundle settings.

    Attributes:
        preference: Identifiers to pick from OR expressions, most
            preferred first.
        confident_threshold: Distance below which a match is confident.
        semi_threshold: Distance below which a match is semi-confident.
        concurrency: Packages processed at once.
        templates: Extra templates, identifier to file path. Relative
            paths are resolved against the config file's directory.
        max_file_size: Larger files are never read as license text.
        path_aliases: Name to directory; a declared license file under
            the directory is recorded with the name in its place.
    """

    preference: list[str] = field(default_factory=list)
    confident_threshold: float = DEFAULT_CONFIDENT_THRESHOLD
    semi_threshold: float = DEFAULT_SEMI_THRESHOLD
    concurrency: int = 8
    templates: dict[str, Path] = field(default_factory=dict)
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    path_aliases: dict[str, Path] = field(default_factory=dict)

    def template_texts(self) -> dict[str, str]:
        """Read every configured template file.

        Raises:
            ConfigError: If a file cannot be read.
        """
        texts: dict[str, str] = {}
        for license_id, path in self.templates.items():
            try:
                texts[license_id] = path.read_text(encoding='utf-8')
            except OSError as exc:
                raise ConfigError(f'templates.{license_id}: cannot read {path}: {exc}') from exc
        return texts


def _number(raw: Mapping[str, Any], key: str, default: float) -> float:
    value = raw.get(key, default)
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f'{key} must be a number, got {type(value).__name__}')
    return float(value)


def _positive_int(raw: Mapping[str, Any], key: str, default: int) -> int:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f'{key} must be an integer, got {type(value).__name__}')
    if value < 1:
        raise ConfigError(f'{key} must be at least 1, got {value}')
    return value


def parse_config(raw: Mapping[str, Any], *, base_dir: Path | None = None) -> BundleConfig:
    """Validate a raw settings table into a :class:`BundleConfig`.

    Args:
        raw: The ``[tool.licensebundle]`` table (or the top level of
            ``licensebundle.toml``).
        base_dir: Directory relative template paths resolve against.
            Defaults to the current directory.

    Raises:
        ConfigError: On unknown keys, wrong types or inconsistent
            thresholds.
    """
    unknown = sorted(set(raw) - _ALLOWED_KEYS)
    if unknown:
        raise ConfigError(
            f'Unknown key {unknown[0]!r} in {_SECTION}. Allowed keys: {", ".join(sorted(_ALLOWED_KEYS))}'
        )

    preference = raw.get('preference', [])
    if not isinstance(preference, list):
        raise ConfigError(f'preference must be a list of strings, got {type(preference).__name__}')
    for i, item in enumerate(preference):
        if not isinstance(item, str):
            raise ConfigError(f'preference[{i}] must be a string, got {type(item).__name__}')

    confident = _number(raw, 'confident_threshold', DEFAULT_CONFIDENT_THRESHOLD)
    semi = _number(raw, 'semi_threshold', DEFAULT_SEMI_THRESHOLD)
    if not 0 < confident <= semi:
        raise ConfigError(
            f'thresholds must satisfy 0 < confident_threshold <= semi_threshold, got {confident} and {semi}'
        )

    templates_raw = raw.get('templates', {})
    if not isinstance(templates_raw, Mapping):
        raise ConfigError(f'templates must be a table, got {type(templates_raw).__name__}')
    base = base_dir if base_dir is not None else Path.cwd()
    templates: dict[str, Path] = {}
    for license_id, path in templates_raw.items():
        if not isinstance(path, str) or not path:
            raise ConfigError(f'templates.{license_id} must be a file path string')
        templates[license_id] = base / path

    aliases_raw = raw.get('path_aliases', {})
    if not isinstance(aliases_raw, Mapping):
        raise ConfigError(f'path_aliases must be a table, got {type(aliases_raw).__name__}')
    path_aliases: dict[str, Path] = {}
    for alias, path in aliases_raw.items():
        if not isinstance(path, str) or not path:
            raise ConfigError(f'path_aliases.{alias} must be a directory path string')
        path_aliases[alias] = base / Path(path).expanduser()

    return BundleConfig(
        preference=list(preference),
        confident_threshold=confident,
        semi_threshold=semi,
        concurrency=_positive_int(raw, 'concurrency', 8),
        templates=templates,
        max_file_size=_positive_int(raw, 'max_file_size', DEFAULT_MAX_FILE_SIZE),
        path_aliases=path_aliases,
    )


def load_config(path: Path) -> BundleConfig:
    """Load settings from *path*.

    *path* is either a ``pyproject.toml`` (settings read from
    ``[tool.licensebundle]``) or a ``licensebundle.toml`` (settings at
    the top level). A missing file or section yields the defaults.

    Raises:
        ConfigError: If the file is not valid TOML or fails validation.
    """
    if not path.is_file():
        return BundleConfig()
    try:
        with path.open('rb') as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f'{path}: invalid TOML: {exc}') from exc

    if path.name == 'pyproject.toml':
        section = data.get('tool', {}).get('licensebundle', {})
        if not isinstance(section, dict):
            raise ConfigError(f'{_SECTION} in {path} must be a table')
    else:
        section = data
    return parse_config(section, base_dir=path.parent)
