"""
データモデル定義モジュール。

mod・譜面ハンドル・計算結果・CSV出力行など、
パイプライン内で受け渡す値オブジェクトを定義する。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Tuple


@dataclass(frozen=True)
class Mod:
    """
    ゲームプレイmod 1件を表すモデル。

    同一性は略称(acronym)で判定する。インスタンスはルールセットの
    modカタログ(mods.py)から取得する。
    """

    acronym: str
    name: str = field(compare=False)

    def __str__(self) -> str:
        return self.acronym


# カタログ順に並んだ重複なしのmodの組(空タプルはNoMod)
ModCombo = Tuple[Mod, ...]


@dataclass(frozen=True)
class BeatmapHandle:
    """
    読み込み済み譜面ファイル1件のハンドル。

    Attributes:
        path: .osuファイルのパス。
        beatmap_id: [Metadata] の BeatmapID。未記載の場合は -1。
        mode: ルールセット短縮名 (osu / taiko / fruits / mania)。
    """

    path: str
    beatmap_id: int
    mode: str

    def __str__(self) -> str:
        return f"{self.path} (#{self.beatmap_id})"


@dataclass(frozen=True)
class ScoreResult:
    """
    (譜面, modの組) 1件分の計算結果。

    pp が計算できなかった場合は None を保持する。
    """

    star_rating: float
    pp: Optional[float]


@dataclass(frozen=True)
class CsvRow:
    """
    CSV出力1行分のモデル。

    - hr/ez/fl/dt/ht/hd は該当modが組に含まれるかどうか
    - lazer_sr/lazer_pp は計算結果
    """

    beatmap_id: int

    hr: bool
    ez: bool
    fl: bool
    dt: bool
    ht: bool
    hd: bool

    lazer_sr: float
    lazer_pp: float


class Scorer(Protocol):
    """(譜面, modの組) から ScoreResult を計算するもの。"""

    def calculate(self, beatmap: BeatmapHandle, mods: ModCombo) -> ScoreResult:
        ...
