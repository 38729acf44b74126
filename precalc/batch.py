"""
譜面ファイル × modの組 の一括計算処理。

処理方針:
- ファイルは入力順、modの組はリスト順に逐次処理する
- 対象ルールセット以外のモードの譜面はファイル単位でスキップし、行を出力しない
- 計算結果は1件ずつ即座にライターへ書き出す
- 読み込み/計算の失敗はそのファイルの残りの組を打ち切る。
  failure_policy が "error" なら例外を上位へ伝播し、"skip" なら次のファイルへ進む
"""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from precalc.beatmap_loader import load_beatmap
from precalc.config import validate_failure_policy
from precalc.csv_writer import make_csv_row
from precalc.errors import PrecalcError
from precalc.models import BeatmapHandle, CsvRow, ModCombo, Scorer
from precalc.mods import OSU_PROFILE, format_combo


@dataclass
class RunSummary:
    """一括計算の実行結果統計。"""

    files_total: int = 0
    files_processed: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    rows_written: int = 0
    elapsed_seconds: float = 0.0


def run_precalc(
    files: Sequence[str],
    combos: Iterable[ModCombo],
    scorer: Scorer,
    write_row: Callable[[CsvRow], None],
    target_mode: str = OSU_PROFILE.short_name,
    tracked_codes: Sequence[str] = OSU_PROFILE.tracked_codes,
    failure_policy: str = "error",
    loader: Callable[[str], BeatmapHandle] = load_beatmap,
) -> RunSummary:
    """
    全ファイル・全modの組について計算し、結果行を書き出す。

    Args:
        files: .osu ファイルパス (この順で処理する)。
        combos: modの組 (この順で処理する)。
        scorer: 難易度/pp 計算を行う Scorer。
        write_row: 1行ずつ呼ばれる書き出し関数。
        target_mode: 処理対象のルールセット短縮名。
        tracked_codes: CSVの列に反映するmod略称 (RulesetProfile.tracked_codes)。
        failure_policy: "error" (例外を伝播) または "skip" (次のファイルへ)。
        loader: ファイルパスから BeatmapHandle を得る関数。

    Returns:
        RunSummary。

    Raises:
        PrecalcError: failure_policy="error" で読み込み/計算に失敗した場合。
    """
    policy = validate_failure_policy(failure_policy)
    combo_list = list(combos)

    summary = RunSummary(files_total=len(files))
    started = time.perf_counter()

    def _write(row: CsvRow) -> None:
        write_row(row)
        summary.rows_written += 1

    for file in files:
        try:
            processed = _process_file(
                file, combo_list, scorer, _write, target_mode, tracked_codes, loader
            )
        except PrecalcError as e:
            if policy == "error":
                raise
            summary.files_failed += 1
            print(f"Failed on {file}, skipping remaining combos: {e}", file=sys.stderr)
            continue

        if not processed:
            summary.files_skipped += 1
            print(f"Excluding {file} because it is not {target_mode}")
            continue

        summary.files_processed += 1

    summary.elapsed_seconds = time.perf_counter() - started
    return summary


def _process_file(
    file: str,
    combos: Sequence[ModCombo],
    scorer: Scorer,
    write_row: Callable[[CsvRow], None],
    target_mode: str,
    tracked_codes: Sequence[str],
    loader: Callable[[str], BeatmapHandle],
) -> bool:
    """
    1ファイル分の全組を処理する。

    モード不一致の場合は何も書き出さず False を返す。
    """
    beatmap = loader(file)

    # モード判定はファイルごとに1回だけ
    if beatmap.mode != target_mode:
        print(f"Map {beatmap} isn't {target_mode}, but {beatmap.mode}")
        return False

    for combo in combos:
        print(f"Working on {beatmap} with {format_combo(combo)}")

        result = scorer.calculate(beatmap, combo)
        write_row(make_csv_row(beatmap.beatmap_id, result, combo, tracked_codes))

    return True
