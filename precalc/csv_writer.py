"""
CSV出力処理を提供するモジュール。

計算結果を CsvRow に変換し、1行ずつCSVへ書き出す。

出力仕様:
- 列順は BeatmapId, HR, EZ, FL, DT, HT, HD, LazerSR, LazerPP で固定
- 真偽値は True/False、数値は Python の repr で書き出す
- 区切り文字はカンマ、改行は \\n
"""

from __future__ import annotations

import csv
import os
from typing import IO, Dict, Iterator, List, Optional, Sequence

from precalc.errors import ConfigError
from precalc.models import CsvRow, ModCombo, ScoreResult

CSV_HEADER = ["BeatmapId", "HR", "EZ", "FL", "DT", "HT", "HD", "LazerSR", "LazerPP"]

# mod略称 → CsvRow の列フィールド名
MOD_COLUMN_FIELDS: Dict[str, str] = {
    "HR": "hr",
    "EZ": "ez",
    "FL": "fl",
    "DT": "dt",
    "HT": "ht",
    "HD": "hd",
}


def make_csv_row(
    beatmap_id: int,
    result: ScoreResult,
    mods: ModCombo,
    tracked_codes: Sequence[str],
) -> CsvRow:
    """
    計算結果とmodの組から CsvRow を生成する。

    tracked_codes (RulesetProfile.tracked_codes) に含まれるmodだけ列の値を True にし、
    それ以外のmodが組に含まれていても無視する。
    pp が None の場合は 0.0 を記録する。

    Args:
        beatmap_id: 譜面ID。
        result: 計算結果。
        mods: 計算に使ったmodの組。
        tracked_codes: 列の値に反映するmod略称。

    Returns:
        CsvRow。

    Raises:
        ValueError: tracked_codes に対応する列が無いmodが含まれる場合。
    """
    tracked: Dict[str, str] = {}
    for code in tracked_codes:
        field_name = MOD_COLUMN_FIELDS.get(code)
        if field_name is None:
            raise ValueError(f"No CSV column for tracked mod: {code}")
        tracked[code] = field_name

    flags = {name: False for name in MOD_COLUMN_FIELDS.values()}
    for mod in mods:
        field_name = tracked.get(mod.acronym)
        if field_name is not None:
            flags[field_name] = True

    return CsvRow(
        beatmap_id=beatmap_id,
        lazer_sr=result.star_rating,
        lazer_pp=result.pp if result.pp is not None else 0.0,
        **flags,
    )


def _row_values(row: CsvRow) -> List[object]:
    return [
        row.beatmap_id,
        row.hr,
        row.ez,
        row.fl,
        row.dt,
        row.ht,
        row.hd,
        repr(float(row.lazer_sr)),
        repr(float(row.lazer_pp)),
    ]


class CsvRowWriter:
    """
    CsvRow をストリーム書き出しするライター。

    with 文で開くとヘッダ行を書き込み、終了時に close する。
    書き込み件数は呼び出し側 (RunSummary.rows_written) で数える。
    """

    def __init__(self, path: str):
        self.path = path
        self._file: Optional[IO[str]] = None
        self._writer = None

    def open(self) -> "CsvRowWriter":
        """
        出力先を開いてヘッダを書き込む。

        Raises:
            ConfigError: 出力先フォルダが存在しない、または書き込めない場合。
        """
        directory = os.path.dirname(os.path.abspath(self.path))
        if not os.path.isdir(directory):
            raise ConfigError(f"出力先フォルダが存在しません: {directory}")

        try:
            self._file = open(self.path, "w", encoding="utf-8", newline="")
        except OSError as e:
            raise ConfigError(f"出力ファイルを開けません: {self.path} ({e})") from e

        self._writer = csv.writer(self._file, delimiter=",", lineterminator="\n")
        self._writer.writerow(CSV_HEADER)
        return self

    def write_row(self, row: CsvRow) -> None:
        """1行を書き込む。"""
        if self._writer is None:
            raise RuntimeError("CsvRowWriter is not open")
        self._writer.writerow(_row_values(row))

    def close(self) -> None:
        if self._file is not None:
            self._file.flush()
            self._file.close()
            self._file = None
            self._writer = None

    def __enter__(self) -> "CsvRowWriter":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _parse_bool(text: str) -> bool:
    value = text.strip()
    if value == "True":
        return True
    if value == "False":
        return False
    raise ValueError(f"Invalid boolean cell: {text}")


def read_csv_rows(path: str) -> Iterator[CsvRow]:
    """
    CsvRowWriter が書き出したCSVを読み込み CsvRow を順に返す。

    Raises:
        ValueError: ヘッダや値が出力仕様と一致しない場合。
    """
    with open(path, "r", encoding="utf-8", newline="") as f:
        reader = csv.reader(f)
        header = next(reader, None)
        if header != CSV_HEADER:
            raise ValueError(f"Unexpected CSV header: {header}")

        for cols in reader:
            if not cols:
                continue
            if len(cols) != len(CSV_HEADER):
                raise ValueError(f"Row has {len(cols)} columns: {cols}")
            yield CsvRow(
                beatmap_id=int(cols[0]),
                hr=_parse_bool(cols[1]),
                ez=_parse_bool(cols[2]),
                fl=_parse_bool(cols[3]),
                dt=_parse_bool(cols[4]),
                ht=_parse_bool(cols[5]),
                hd=_parse_bool(cols[6]),
                lazer_sr=float(cols[7]),
                lazer_pp=float(cols[8]),
            )
