"""
.osu ファイルの探索と読み込み処理。

フォルダ配下の .osu ファイルを列挙し、ヘッダから BeatmapID と Mode を読み取って
BeatmapHandle に変換する責務を持つ。ヒットオブジェクト等の解析は
計算バックエンド側 (scoring.py) に任せる。
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List

from precalc.errors import BeatmapLoadError, ConfigError
from precalc.models import BeatmapHandle

# .osu の Mode 値 → ルールセット短縮名
MODE_SHORT_NAMES = {
    0: "osu",
    1: "taiko",
    2: "fruits",
    3: "mania",
}

_FORMAT_RE = re.compile(r"^osu file format v(\d+)", re.IGNORECASE)


def discover_beatmap_files(folder: str) -> List[str]:
    """
    フォルダ配下 (サブフォルダ含む) の .osu ファイルをパス順に列挙する。

    Args:
        folder: 探索対象フォルダ。

    Returns:
        .osu ファイルパスのリスト。

    Raises:
        ConfigError: フォルダが存在しない場合。
    """
    root = Path(folder)
    if not root.is_dir():
        raise ConfigError(f"Not a directory: {folder}")

    return [str(p) for p in sorted(root.rglob("*.osu")) if p.is_file()]


def _get_field(content: str, name: str) -> str | None:
    m = re.search(rf"^{name}\s*:\s*(.*?)\s*$", content, re.MULTILINE)
    return m.group(1) if m else None


def parse_beatmap_header(content: str, path: str = "<memory>") -> BeatmapHandle:
    """
    .osu テキストから BeatmapHandle を生成する。

    - 先頭行が "osu file format vN" であることを確認する
    - Mode 未記載は 0 (osu) とみなす
    - BeatmapID 未記載は -1 とする

    Raises:
        BeatmapLoadError: フォーマット不正の場合。
    """
    stripped = content.lstrip("\ufeff \t\r\n")
    first_line = stripped.splitlines()[0] if stripped else ""
    if not _FORMAT_RE.match(first_line):
        raise BeatmapLoadError(f"Not an .osu file: {path}")

    mode_text = _get_field(content, "Mode")
    try:
        mode_value = int(mode_text) if mode_text else 0
    except ValueError as e:
        raise BeatmapLoadError(f"Invalid Mode: {mode_text} ({path})") from e

    mode = MODE_SHORT_NAMES.get(mode_value)
    if mode is None:
        raise BeatmapLoadError(f"Unknown Mode: {mode_value} ({path})")

    id_text = _get_field(content, "BeatmapID")
    try:
        beatmap_id = int(id_text) if id_text else -1
    except ValueError as e:
        raise BeatmapLoadError(f"Invalid BeatmapID: {id_text} ({path})") from e

    return BeatmapHandle(path=path, beatmap_id=beatmap_id, mode=mode)


def load_beatmap(path: str) -> BeatmapHandle:
    """
    .osu ファイルを読み込み BeatmapHandle を返す。

    Raises:
        BeatmapLoadError: 読み込みまたはヘッダ解析に失敗した場合。
    """
    try:
        content = Path(path).read_text(encoding="utf-8-sig", errors="replace")
    except OSError as e:
        raise BeatmapLoadError(f"Failed to read {path} ({e})") from e

    return parse_beatmap_header(content, path)
