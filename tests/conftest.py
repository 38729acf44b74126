from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, List, Tuple

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from precalc.errors import ScoringError
from precalc.models import BeatmapHandle, ModCombo, ScoreResult


OSU_TEMPLATE = """osu file format v14

[General]
AudioFilename: audio.mp3
Mode: {mode}

[Metadata]
Title:Test Song
Artist:Test Artist
Creator:tester
Version:Insane
BeatmapID:{beatmap_id}
BeatmapSetID:100

[Difficulty]
HPDrainRate:5
CircleSize:4
OverallDifficulty:8
ApproachRate:9
SliderMultiplier:1.4
SliderTickRate:1

[TimingPoints]
0,500,4,2,0,60,1,0

[HitObjects]
256,192,1000,1,0,0:0:0:0:
100,100,1250,1,0,0:0:0:0:
400,300,1500,1,0,0:0:0:0:
256,192,1750,1,0,0:0:0:0:
100,300,2000,1,0,0:0:0:0:
400,100,2250,1,0,0:0:0:0:
"""


def osu_text(beatmap_id: int = 1001, mode: int = 0) -> str:
    """テスト用の最小 .osu テキストを返す。"""
    return OSU_TEMPLATE.format(beatmap_id=beatmap_id, mode=mode)


@pytest.fixture
def write_osu(tmp_path: Path) -> Callable[..., Path]:
    """tmp_path 配下に .osu ファイルを作成する関数を返す。"""

    def _write(name: str, beatmap_id: int = 1001, mode: int = 0) -> Path:
        path = tmp_path / "maps" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(osu_text(beatmap_id, mode), encoding="utf-8")
        return path

    return _write


class FakeScorer:
    """
    呼び出しを記録し、mod数から決まる値を返す Scorer。

    fail_on に含まれる (path, 略称連結) で ScoringError を送出する。
    """

    def __init__(self, fail_on: Tuple[Tuple[str, str], ...] = ()):
        self.calls: List[Tuple[str, str]] = []
        self.fail_on = fail_on

    def calculate(self, beatmap: BeatmapHandle, mods: ModCombo) -> ScoreResult:
        key = (beatmap.path, "".join(m.acronym for m in mods))
        self.calls.append(key)
        if key in self.fail_on:
            raise ScoringError(f"boom: {key}")
        return ScoreResult(star_rating=5.0 + len(mods) * 0.5, pp=200.0 + len(mods) * 25.0)


@pytest.fixture
def fake_scorer() -> FakeScorer:
    return FakeScorer()
