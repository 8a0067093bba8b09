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

"""Tests for the template catalog."""

from __future__ import annotations

from pathlib import Path

import pytest
from licensebundle.catalog import (
    TemplateCatalog,
    default_catalog,
    normalize_template,
    slugify,
)
from licensebundle.errors import CatalogDataError

_BUILTIN_IDS = {
    'MIT',
    'Apache-2.0',
    'Apache-2.0 WITH LLVM-exception',
    'BSD-2-Clause',
    'BSD-3-Clause',
    '0BSD',
    'ISC',
    'Zlib',
    'BSL-1.0',
    'Unlicense',
    'MPL-2.0',
    'Unicode-3.0',
    'Unicode-DFS-2016',
    'CC0-1.0',
}


def _write_index(tmp_path: Path, index: str, templates: dict[str, str]) -> Path:
    templates_dir = tmp_path / 'templates'
    templates_dir.mkdir()
    for name, text in templates.items():
        (templates_dir / name).write_text(text, encoding='utf-8')
    index_path = tmp_path / 'catalog.toml'
    index_path.write_text(index, encoding='utf-8')
    return index_path


class TestSlugify:
    """Tests for slugify()."""

    @pytest.mark.parametrize(
        ('value', 'expected'),
        [
            ('LICENSE', 'license'),
            ('LICENSE-Apache-2.0.txt', 'license-apache-2-0-txt'),
            ('license_mit.md', 'license-mit-md'),
            ('  Apache 2.0 WITH LLVM-exception ', 'apache-2-0-with-llvm-exception'),
        ],
    )
    def test_slugify(self, value: str, expected: str) -> None:
        """Test slugify."""
        assert slugify(value) == expected


class TestNormalizeTemplate:
    """Tests for normalize_template()."""

    def test_collapses_whitespace_within_lines(self) -> None:
        """Test collapses whitespace within lines."""
        assert normalize_template('  MIT    License \t here  ') == 'MIT License here'

    def test_keeps_line_structure_and_case(self) -> None:
        """Test keeps line structure and case."""
        text = 'MIT License\n\n\n\nCopyright (c) <year>\n   Permission  is granted\n'
        assert normalize_template(text) == 'MIT License\n\nCopyright (c) <year>\nPermission is granted'


class TestDefaultCatalog:
    """Tests for the built-in catalog."""

    def test_builtin_ids(self) -> None:
        """Test builtin ids."""
        assert set(default_catalog().ids) == _BUILTIN_IDS

    def test_cached(self) -> None:
        """Test cached."""
        assert default_catalog() is default_catalog()

    def test_every_template_has_text(self) -> None:
        """Test every template has text."""
        catalog = default_catalog()
        for license_id in catalog:
            text = catalog.lookup(license_id)
            assert text, license_id
            assert '  ' not in text, license_id

    def test_lookup_exact_and_case_insensitive(self) -> None:
        """Test lookup exact and case insensitive."""
        catalog = default_catalog()
        mit = catalog.lookup('MIT')
        assert mit is not None
        assert mit.startswith('MIT License')
        assert catalog.lookup('mit') == mit
        assert 'mit' in catalog

    def test_lookup_unknown(self) -> None:
        """Test lookup unknown."""
        assert default_catalog().lookup('GPL-3.0-only') is None
        assert 'GPL-3.0-only' not in default_catalog()

    def test_llvm_exception_extends_apache(self) -> None:
        """Test llvm exception extends apache."""
        catalog = default_catalog()
        apache = catalog.lookup('Apache-2.0')
        llvm = catalog.lookup('Apache-2.0 WITH LLVM-exception')
        assert apache is not None
        assert llvm is not None
        assert llvm.startswith(apache)
        assert 'LLVM Exceptions' in llvm

    def test_synonyms_longest_first(self) -> None:
        """Test synonyms longest first."""
        synonyms = default_catalog().synonyms('Apache-2.0')
        assert set(synonyms) == {'apache-2-0', 'apache', 'apache2', 'apache-2'}
        assert synonyms[0] == 'apache-2-0'
        assert list(synonyms) == sorted(synonyms, key=len, reverse=True)

    def test_boost_synonym(self) -> None:
        """Test boost synonym."""
        assert 'boost' in default_catalog().synonyms('BSL-1.0')

    def test_unknown_id_gets_own_slug(self) -> None:
        """Test unknown id gets own slug."""
        assert default_catalog().synonyms('LicenseRef-Acme') == ('licenseref-acme',)

    def test_categories(self) -> None:
        """Test categories."""
        catalog = default_catalog()
        assert catalog.category('MIT') == 'permissive'
        assert catalog.category('MPL-2.0') == 'weak-copyleft'
        assert catalog.category('CC0-1.0') == 'public-domain'
        assert catalog.category('LicenseRef-Acme') == 'unknown'

    def test_info(self) -> None:
        """Test info."""
        info = default_catalog().info('BSD-3-Clause')
        assert info is not None
        assert info.spdx_id == 'BSD-3-Clause'
        assert 'BSD 3-Clause' in info.name


class TestExtend:
    """Tests for registering extra templates."""

    def test_extend_adds_identifier(self) -> None:
        """Test extend adds identifier."""
        base = default_catalog()
        extended = base.extend({'LicenseRef-Acme': 'Acme   Public\n\nLicense'})
        assert extended.lookup('LicenseRef-Acme') == 'Acme Public\n\nLicense'
        assert extended.synonyms('LicenseRef-Acme') == ('licenseref-acme',)
        assert 'LicenseRef-Acme' not in base
        assert len(extended) == len(base) + 1

    def test_extend_replaces_text_keeps_synonyms(self) -> None:
        """Test extend replaces text keeps synonyms."""
        extended = default_catalog().extend({'MIT': 'Custom MIT wording'})
        assert extended.lookup('MIT') == 'Custom MIT wording'
        assert 'expat' in extended.synonyms('MIT')

    def test_load_extra_and_extra_dir(self, tmp_path: Path) -> None:
        """Test load extra and extra dir."""
        extra_dir = tmp_path / 'extra'
        extra_dir.mkdir()
        (extra_dir / 'LicenseRef-Dir.txt').write_text('From a directory', encoding='utf-8')
        catalog = TemplateCatalog.load(extra={'LicenseRef-Map': 'From a mapping'}, extra_dir=extra_dir)
        assert catalog.lookup('LicenseRef-Dir') == 'From a directory'
        assert catalog.lookup('LicenseRef-Map') == 'From a mapping'
        assert 'MIT' in catalog


class TestLoadIndex:
    """Tests for loading a custom index."""

    def test_valid_index(self, tmp_path: Path) -> None:
        """Test valid index."""
        index = _write_index(
            tmp_path,
            '[Foo]\nname = "Foo License"\nfile = "foo.txt"\ncategory = "permissive"\nsynonyms = ["fu"]\n',
            {'foo.txt': 'Foo license text\n'},
        )
        catalog = TemplateCatalog.load(index_toml=index)
        assert catalog.ids == ('Foo',)
        assert catalog.lookup('Foo') == 'Foo license text'
        assert catalog.synonyms('Foo') == ('foo', 'fu')

    def test_collects_every_error(self, tmp_path: Path) -> None:
        """Test collects every error."""
        index = _write_index(
            tmp_path,
            '\n'.join([
                '[NoFile]',
                'name = "No file"',
                '[BadCategory]',
                'file = "ok.txt"',
                'category = "viral"',
                '[BadSynonyms]',
                'file = "ok.txt"',
                'synonyms = "nope"',
                '[Missing]',
                'file = "missing.txt"',
                '',
            ]),
            {'ok.txt': 'ok'},
        )
        with pytest.raises(CatalogDataError) as exc_info:
            TemplateCatalog.load(index_toml=index)
        errors = exc_info.value.errors
        assert len(errors) == 4
        assert any('[NoFile]: missing required field "file"' in e for e in errors)
        assert any("'viral' is not a valid category" in e for e in errors)
        assert any('[BadSynonyms].synonyms' in e for e in errors)
        assert any('cannot read' in e for e in errors)

    def test_non_table_entry(self, tmp_path: Path) -> None:
        """Test non table entry."""
        index = _write_index(tmp_path, 'Foo = "bar"\n', {})
        with pytest.raises(CatalogDataError, match='expected a table'):
            TemplateCatalog.load(index_toml=index)
