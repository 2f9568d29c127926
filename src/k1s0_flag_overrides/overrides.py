"""環境フラグと組織フラグの差分計算"""

from __future__ import annotations

from collections.abc import Mapping

from .models import FlagValue, OverrideMap

_MISSING = object()


def _kind(value: object) -> str:
    # bool は int のサブクラスなので先に判定する
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


def _differs(env_value: object, org_value: object) -> bool:
    if org_value is _MISSING:
        return True
    if _kind(env_value) != _kind(org_value):
        return True
    return env_value != org_value


def compute_overrides(
    env_flags: Mapping[str, FlagValue],
    org_flags: Mapping[str, FlagValue],
) -> OverrideMap:
    """環境フラグを基準に、組織側で値が異なるフラグを True とするマップを返す。

    キーは env_flags のキーだけ。組織にしか無いフラグは基準値が無いため含めない。
    比較は型と値の両方で行う（True と 1、True と "true" は異なる）。
    数値は int と float を区別せず値で比較する。
    """
    return {
        code: _differs(env_value, org_flags.get(code, _MISSING))
        for code, env_value in env_flags.items()
    }
