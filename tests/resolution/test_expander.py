"""Tests for the dependency expander."""

from __future__ import annotations

import pytest

from provplan.domain.plan import DiagnosticCode
from provplan.domain.units import ProvidedCapability, RequiredCapability
from provplan.domain.versions import Version
from provplan.resolution.expander import DependencyExpander, expand
from provplan.resolution.monitor import CancellationToken, PlanningCancelled
from tests.conftest import iu, req


class TestClosure:
    def test_transitive(self) -> None:
        a = iu("A", requires=["B"])
        b = iu("B", requires=["C"])
        c = iu("C")
        result = expand([a], None, [a, b, c])
        assert result.ok
        assert result.closure == (a, b, c)

    def test_roots_first_then_breadth_first(self) -> None:
        a = iu("A", requires=["B", "C"])
        b = iu("B", requires=["D"])
        units = [a, b, iu("C"), iu("D")]
        result = expand([a], None, units)
        assert [u.id for u in result.closure] == ["A", "B", "C", "D"]

    def test_to_keep_is_expanded_too(self) -> None:
        k = iu("K", requires=["L"])
        result = expand([iu("A")], [k], [iu("A"), k, iu("L")])
        assert [u.id for u in result.closure] == ["A", "K", "L"]

    def test_nothing_to_expand(self) -> None:
        result = expand(None, None, [iu("A")])
        assert result.closure == ()
        assert result.ok

    def test_cycle_terminates(self) -> None:
        a = iu("A", requires=["B"])
        b = iu("B", requires=["A"])
        result = expand([a], None, [a, b])
        assert set(result.closure) == {a, b}

    def test_non_unit_capability(self) -> None:
        api = ProvidedCapability("java.package", "org.api", Version.parse("1.0"))
        impl = iu("impl", provides=[api])
        client = iu("client", requires=[RequiredCapability("java.package", "org.api")])
        result = expand([client], None, [client, impl])
        assert result.closure == (client, impl)


class TestSelection:
    def test_newest_provider_chosen(self) -> None:
        a = iu("A", requires=[req("B", "[1.0,3.0)")])
        units = [a, iu("B", "1.0"), iu("B", "2.5"), iu("B", "3.0")]
        result = expand([a], None, units)
        assert iu("B", "2.5") in result
        assert iu("B", "3.0") not in result
        assert len(result) == 2

    def test_installed_provider_preferred_over_newer(self) -> None:
        a = iu("A", requires=["B"])
        b1, b2 = iu("B", "1.0"), iu("B", "2.0")
        result = expand([a], [b1], [a, b1, b2], [b1])
        assert set(result.closure) == {a, b1}

    def test_installed_counts_as_candidate_without_repository(self) -> None:
        a = iu("A", requires=["B"])
        b1 = iu("B", "1.0")
        result = expand([a], None, [a], [b1])
        assert result.ok
        assert b1 in result

    def test_closure_provider_preferred_over_installed(self) -> None:
        root = iu("R", requires=[req("B", "2.0"), "C"])
        c = iu("C", requires=["B"])
        b1, b2 = iu("B", "1.0"), iu("B", "2.0")
        result = expand([root], None, [root, c, b1, b2], [b1])
        assert b2 in result
        assert b1 not in result

    def test_tie_broken_by_identity(self) -> None:
        api = ProvidedCapability("ns", "api", Version.parse("1.0"))
        zeta = iu("zeta", "1.0", provides=[api])
        alpha = iu("alpha", "1.0", provides=[api])
        client = iu("client", requires=[RequiredCapability("ns", "api")])
        result = expand([client], None, [client, zeta, alpha])
        assert alpha in result
        assert zeta not in result

    def test_greedy_keeps_every_provider(self) -> None:
        a = iu("A", requires=[req("B", greedy=True)])
        units = [a, iu("B", "1.0"), iu("B", "2.0")]
        result = expand([a], None, units)
        assert set(result.closure) == set(units)


class TestUnresolved:
    def test_missing_mandatory_is_error(self) -> None:
        a = iu("A", requires=[req("B", "[1.0,2.0)")])
        result = expand([a], None, [a, iu("B", "2.0")])
        assert not result.ok
        assert [d.code for d in result.diagnostics] == [DiagnosticCode.UNRESOLVED_REQUIREMENT]
        assert result.unresolved == [(a, a.requires[0])]

    def test_missing_optional_is_silent(self) -> None:
        a = iu("A", requires=[req("B", optional=True)])
        result = expand([a], None, [a])
        assert result.ok
        assert result.closure == (a,)

    def test_optional_provider_included_when_available(self) -> None:
        a = iu("A", requires=[req("B", optional=True)])
        result = expand([a], None, [a, iu("B")])
        assert iu("B") in result

    def test_all_problems_reported_in_one_pass(self) -> None:
        a = iu("A", requires=["X", "B"])
        b = iu("B", requires=["Y"])
        result = expand([a], None, [a, b])
        missing = sorted(d.requirement.name for d in result.diagnostics if d.requirement)
        assert missing == ["X", "Y"]
        assert b in result


class TestCancellation:
    def test_cancelled_monitor_raises(self) -> None:
        token = CancellationToken()
        token.cancel()
        a = iu("A")
        with pytest.raises(PlanningCancelled):
            DependencyExpander([a]).expand([a], monitor=token)
