from __future__ import annotations

import pytest

from common.base_registry import BaseRegistry
from shapes.kinds import ShapeKind


def test_register_and_get_with_normalization() -> None:
    reg = BaseRegistry()

    @reg.register(None)
    class RotatedThing:  # テスト用
        pass

    assert reg.is_registered("rotated_thing")
    assert reg.get("RotatedThing") is RotatedThing
    assert "rotated_thing" in reg.list_all()


def test_enum_member_key_uses_value() -> None:
    reg = BaseRegistry()

    @reg.register(ShapeKind.ROTATED_ELLIPSE)
    def fn():  # noqa: ANN001 - テスト用
        return 0

    assert reg.get("rotated_ellipse") is fn
    assert reg.is_registered(ShapeKind.ROTATED_ELLIPSE)
    assert not reg.is_registered(ShapeKind.CIRCLE)


def test_duplicate_and_unregister() -> None:
    reg = BaseRegistry()

    @reg.register("circle")
    def sample():  # noqa: ANN001 - テスト用
        return 1

    with pytest.raises(ValueError):
        reg.register("Circle")(lambda: 2)

    reg.unregister("CIRCLE")
    assert not reg.is_registered("circle")
    reg.unregister("nonexistent")  # 例外にならない


def test_missing_and_bad_keys() -> None:
    reg = BaseRegistry()
    with pytest.raises(KeyError):
        reg.get("missing")
    with pytest.raises(TypeError):
        reg.is_registered(1)  # type: ignore[arg-type]
