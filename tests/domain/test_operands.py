"""Tests for Operand."""

from __future__ import annotations

import pytest

from provplan.domain.operands import Operand, OperandKind
from tests.conftest import iu


class TestOperand:
    def test_kinds(self) -> None:
        a1, a2 = iu("A", "1.0"), iu("A", "2.0")
        assert Operand.install(a1).kind is OperandKind.INSTALL
        assert Operand.uninstall(a1).kind is OperandKind.UNINSTALL
        assert Operand.update(a1, a2).kind is OperandKind.UPDATE

    def test_both_sides_empty_rejected(self) -> None:
        with pytest.raises(ValueError):
            Operand(None, None)

    def test_reversed(self) -> None:
        a1, a2 = iu("A", "1.0"), iu("A", "2.0")
        assert Operand.install(a1).reversed() == Operand.uninstall(a1)
        assert Operand.update(a1, a2).reversed() == Operand.update(a2, a1)

    def test_to_dict(self) -> None:
        data = Operand.update(iu("A", "1.0"), iu("A", "2.0")).to_dict()
        assert data == {
            "kind": "update",
            "from": {"id": "A", "version": "1.0.0"},
            "to": {"id": "A", "version": "2.0.0"},
        }
        assert "from" not in Operand.install(iu("B")).to_dict()

    def test_str(self) -> None:
        assert str(Operand.install(iu("B", "1.0"))) == "install B 1.0.0"
        assert str(Operand.uninstall(iu("B", "1.0"))) == "uninstall B 1.0.0"
        assert str(Operand.update(iu("A", "1"), iu("A", "2"))) == "update A 1.0.0 -> A 2.0.0"
