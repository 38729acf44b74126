"""
設定ファイル(settings.yaml)の読み込み処理を提供するモジュール。

settings.yaml から precalc 実行に必要な各種設定を読み込み、
アプリ内で扱いやすい dataclass に変換する。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import yaml

from precalc.errors import ConfigError

FAILURE_POLICIES = ("error", "skip")

DEFAULT_EXCLUDED_MODS = ("CL", "NC", "TD", "FL", "HD", "EZ", "HT")


@dataclass(frozen=True)
class DiscordConfig:
    """
    Discord Webhook 通知設定。

    Attributes:
        notify: 実行結果を通知するかどうか。
        webhook_url: 通知先URL。環境変数 DISCORD_WEBHOOK_URL から補完する。
    """

    notify: bool = False
    webhook_url: str = ""


@dataclass(frozen=True)
class Settings:
    """
    アプリケーション全体設定。

    settings.yaml の内容を保持する。

    Attributes:
        ruleset: 対象ルールセット短縮名。これ以外のモードの譜面はスキップする。
        excluded_mods: 組み合わせ生成前にカタログから除外するmod略称。
        exclusive_pairs: 同時に含めてはならないmod略称のペア。
            None の場合はルールセット既定のペアを使う。
        failure_policy: 譜面読み込み/計算失敗時の扱い ("error" or "skip")。
        discord: Discord通知設定。
    """

    ruleset: str = "osu"
    excluded_mods: Tuple[str, ...] = DEFAULT_EXCLUDED_MODS
    exclusive_pairs: Optional[Tuple[Tuple[str, str], ...]] = None
    failure_policy: str = "error"
    discord: DiscordConfig = field(default_factory=DiscordConfig)


def _parse_pairs(raw: object) -> Optional[Tuple[Tuple[str, str], ...]]:
    """exclusive_pairs の生値を (略称, 略称) タプル列へ変換する。"""
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ConfigError(f"exclusive_pairs must be a list: {raw!r}")

    pairs: List[Tuple[str, str]] = []
    for item in raw:
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            raise ConfigError(f"exclusive_pairs entry must have 2 mods: {item!r}")
        pairs.append((str(item[0]).strip().upper(), str(item[1]).strip().upper()))
    return tuple(pairs)


def parse_mod_list(raw: object) -> Tuple[str, ...]:
    """
    mod略称のリスト、またはカンマ区切り文字列を大文字の略称タプルに変換する。

    Args:
        raw: ["HD", "FL"] または "HD,FL" 形式の値。

    Returns:
        空要素を除いた略称タプル。
    """
    if raw is None:
        return ()
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        items = [str(x) for x in raw]
    else:
        raise ConfigError(f"mod list must be a list or comma separated string: {raw!r}")
    return tuple(s.strip().upper() for s in items if s.strip())


def validate_failure_policy(policy: str) -> str:
    """failure_policy が既知の値か確認し、正規化した値を返す。"""
    value = str(policy).strip().lower()
    if value not in FAILURE_POLICIES:
        raise ConfigError(
            f"failure_policy は {' / '.join(FAILURE_POLICIES)} のいずれかを指定してください: {policy}"
        )
    return value


def load_settings(path: str, webhook_url: str = "") -> Settings:
    """
    settings.yaml を読み込み Settings に変換する。

    未指定のキーは既定値を使う。

    Args:
        path: settings.yaml のファイルパス。
        webhook_url: Discord Webhook URL (環境変数からの値)。

    Returns:
        Settingsオブジェクト。

    Raises:
        FileNotFoundError: 設定ファイルが存在しない場合。
        yaml.YAMLError: YAMLのパースに失敗した場合。
        ConfigError: 値の型や内容が不正な場合。
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigError(f"settings root must be a mapping: {path}")

    discord_data = data.get("discord")
    if discord_data is None:
        discord_data = {}
    elif not isinstance(discord_data, dict):
        raise ConfigError(f"discord must be a mapping: {discord_data!r}")

    ruleset = data.get("ruleset", "osu")
    if not isinstance(ruleset, str) or not ruleset.strip():
        raise ConfigError(f"ruleset must be a non-empty string: {ruleset!r}")

    excluded = data.get("excluded_mods")
    return Settings(
        ruleset=ruleset.strip().lower(),
        excluded_mods=DEFAULT_EXCLUDED_MODS if excluded is None else parse_mod_list(excluded),
        exclusive_pairs=_parse_pairs(data.get("exclusive_pairs")),
        failure_policy=validate_failure_policy(data.get("failure_policy", "error")),
        discord=DiscordConfig(
            notify=bool(discord_data.get("notify", False)),
            webhook_url=str(webhook_url or "").strip(),
        ),
    )
