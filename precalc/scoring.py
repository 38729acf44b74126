"""
難易度(star rating)/pp 計算のアダプタ。

Scorer プロトコル (models.py) を境界として、計算アルゴリズム本体は外部ライブラリに委譲する。
既定実装 RosuScorer は rosu-pp-py を利用する。

計算方針:
- 精度 100%、コンボは譜面の最大コンボとして計算する
- rosu-pp-py 由来の例外は ScoringError に変換して上位へ伝播する
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import rosu_pp_py as rosu

from precalc.errors import ScoringError
from precalc.models import BeatmapHandle, ModCombo, ScoreResult

FULL_ACCURACY = 100.0


def mods_to_acronyms(mods: ModCombo) -> str:
    """modの組を "HRDT" 形式の連結略称に変換する。"""
    return "".join(m.acronym for m in mods)


class RosuScorer:
    """
    rosu-pp-py を用いた Scorer 実装。

    同じ譜面に対してmodの組ごとに繰り返し呼ばれるため、
    直近1譜面分の解析結果だけを保持する。
    """

    def __init__(self, accuracy: float = FULL_ACCURACY):
        self.accuracy = accuracy
        self._cached_path: Optional[str] = None
        self._cached_map: Any = None

    def _load(self, beatmap: BeatmapHandle) -> Any:
        if self._cached_path != beatmap.path:
            try:
                self._cached_map = rosu.Beatmap(path=beatmap.path)
            except Exception as e:
                raise ScoringError(f"rosu-pp failed to parse {beatmap.path} ({e})") from e
            self._cached_path = beatmap.path
        return self._cached_map

    def calculate(self, beatmap: BeatmapHandle, mods: ModCombo) -> ScoreResult:
        """
        star rating と pp を計算する。

        Raises:
            ScoringError: rosu-pp-py の解析/計算に失敗した場合。
        """
        rosu_map = self._load(beatmap)

        mod_kwargs: Dict[str, Any] = {}
        acronyms = mods_to_acronyms(mods)
        if acronyms:
            mod_kwargs["mods"] = acronyms

        try:
            diff_attrs = rosu.Difficulty(**mod_kwargs).calculate(rosu_map)
            perf = rosu.Performance(
                accuracy=self.accuracy,
                combo=diff_attrs.max_combo,
                **mod_kwargs,
            )
            perf_attrs = perf.calculate(diff_attrs)
        except Exception as e:
            raise ScoringError(
                f"rosu-pp calculation failed: {beatmap.path} [{acronyms or 'NM'}] ({e})"
            ) from e

        return ScoreResult(
            star_rating=float(diff_attrs.stars),
            pp=float(perf_attrs.pp) if perf_attrs.pp is not None else None,
        )
