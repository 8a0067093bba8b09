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

"""Tests for the Preference Resolver."""

from __future__ import annotations

import itertools

import pytest
from licensebundle.preference import DEFAULT_PREFERENCE, choose, rank


class TestChoose:
    """Tests for choose()."""

    def test_single(self) -> None:
        """Test single."""
        assert choose(['GPL-3.0-only']) == 'GPL-3.0-only'

    def test_empty_raises(self) -> None:
        """Test empty raises."""
        with pytest.raises(ValueError, match='at least one alternative'):
            choose([])

    def test_explicit_preference_wins(self) -> None:
        """Test explicit preference wins."""
        assert choose(['MIT', 'Apache-2.0'], ['Apache-2.0']) == 'Apache-2.0'

    def test_preference_order_matters(self) -> None:
        """Test preference order matters."""
        assert choose(['MIT', 'Apache-2.0'], ['ISC', 'MIT', 'Apache-2.0']) == 'MIT'

    def test_preference_may_name_and_groups(self) -> None:
        """Test preference may name and groups."""
        alternatives = ['MIT AND Unicode-3.0', 'Apache-2.0 AND Unicode-3.0']
        assert choose(alternatives, ['Apache-2.0 AND Unicode-3.0']) == 'Apache-2.0 AND Unicode-3.0'

    def test_unmatched_preference_falls_back_to_default(self) -> None:
        """Test unmatched preference falls back to default."""
        assert choose(['GPL-3.0-only', 'MIT'], ['ISC']) == 'MIT'

    def test_permissive_before_copyleft(self) -> None:
        """Test permissive before copyleft."""
        assert choose(['GPL-2.0-only', 'MPL-2.0', 'BSD-3-Clause']) == 'BSD-3-Clause'
        assert choose(['GPL-2.0-only', 'MPL-2.0']) == 'MPL-2.0'

    def test_known_before_unknown(self) -> None:
        """Test known before unknown."""
        assert choose(['LicenseRef-Acme', 'AGPL-3.0-only']) == 'AGPL-3.0-only'

    def test_unknown_ties_resolve_to_declared_order(self) -> None:
        """Test unknown ties resolve to declared order."""
        assert choose(['LicenseRef-B', 'LicenseRef-A']) == 'LicenseRef-B'

    def test_and_group_ranks_by_worst_member(self) -> None:
        """Test and group ranks by worst member."""
        assert choose(['MIT AND GPL-3.0-only', 'MPL-2.0']) == 'MPL-2.0'

    def test_deterministic_and_total(self) -> None:
        """Every permutation yields a member, the same one each time."""
        alternatives = ['MIT', 'Apache-2.0', 'LicenseRef-X', 'GPL-3.0-only']
        results = {choose(list(p)) for p in itertools.permutations(alternatives)}
        assert results == {'MIT'}


class TestRank:
    """Tests for rank()."""

    def test_default_order(self) -> None:
        """Test default order."""
        assert rank('MIT') == 0
        assert rank('Apache-2.0') < rank('MPL-2.0') < rank('GPL-3.0-only')

    def test_unknown_last(self) -> None:
        """Test unknown last."""
        assert rank('LicenseRef-Acme') == len(DEFAULT_PREFERENCE)

    def test_and_group(self) -> None:
        """Test and group."""
        assert rank('MIT AND MPL-2.0') == rank('MPL-2.0')
