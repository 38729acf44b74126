"""
modカタログと組み合わせ生成処理を提供するモジュール。

処理方針:
- ルールセットごとに modカタログ・排他ペア・CSV出力対象modを RulesetProfile にまとめる
- 除外リストに含まれるmodをカタログから取り除く
- 残ったmodの全組み合わせ(冪集合)を決定的な順序で生成する
- 排他ペアを両方含む組み合わせを取り除く
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from precalc.errors import ConfigError, UnknownModError
from precalc.models import Mod, ModCombo


@dataclass(frozen=True)
class RulesetProfile:
    """
    ルールセット1件分のmod定義。

    Attributes:
        short_name: ルールセット短縮名 (.osu の Mode から導出した値と比較する)。
        catalog: 難易度に影響するmodのカタログ (順序付き)。
        exclusive_pairs: 同時に有効にできないmod略称のペア。
        tracked_codes: CSVに専用列を持つmod略称 (列順)。
    """

    short_name: str
    catalog: Tuple[Mod, ...]
    exclusive_pairs: Tuple[Tuple[str, str], ...]
    tracked_codes: Tuple[str, ...]

    def find(self, acronym: str) -> Mod:
        """略称からカタログ内のmodを返す。存在しなければ UnknownModError。"""
        key = acronym.strip().upper()
        for mod in self.catalog:
            if mod.acronym == key:
                return mod
        raise UnknownModError(f"{self.short_name} に存在しないmodです: {acronym}")


# osu!standard の難易度調整対象mod (Classic を先頭に置く)
OSU_CATALOG: Tuple[Mod, ...] = (
    Mod("CL", "Classic"),
    Mod("EZ", "Easy"),
    Mod("HT", "Half Time"),
    Mod("HR", "Hard Rock"),
    Mod("DT", "Double Time"),
    Mod("NC", "Nightcore"),
    Mod("HD", "Hidden"),
    Mod("FL", "Flashlight"),
    Mod("TD", "Touch Device"),
)

OSU_PROFILE = RulesetProfile(
    short_name="osu",
    catalog=OSU_CATALOG,
    exclusive_pairs=(("HR", "EZ"), ("DT", "HT")),
    tracked_codes=("HR", "EZ", "FL", "DT", "HT", "HD"),
)

_PROFILES: Dict[str, RulesetProfile] = {
    OSU_PROFILE.short_name: OSU_PROFILE,
}


def get_ruleset_profile(short_name: str) -> RulesetProfile:
    """
    ルールセット短縮名から RulesetProfile を返す。

    Raises:
        ConfigError: 未対応のルールセットが指定された場合。
    """
    profile = _PROFILES.get(short_name.strip().lower())
    if profile is None:
        raise ConfigError(
            f"未対応のルールセットです: {short_name} (対応: {', '.join(sorted(_PROFILES))})"
        )
    return profile


def remove_mods(mods: Iterable[Mod], acronyms_to_remove: Iterable[str]) -> List[Mod]:
    """指定した略称のmodを除いたリストを元の順序のまま返す。"""
    removed = {a.strip().upper() for a in acronyms_to_remove}
    return [m for m in mods if m.acronym not in removed]


def permutate_mods(mods: Sequence[Mod]) -> List[ModCombo]:
    """
    modの全組み合わせ(空の組を含む冪集合)を生成する。

    各modについて単独の組を追加し、その時点までに得られた組のうち
    当該modを含まないものへ末尾追加した組を加える。最後に空の組を追加する。
    [A, B] の場合は (A,), (B,), (A, B), () の順になる。

    Args:
        mods: 重複のないmodの並び。

    Returns:
        2 ** len(mods) 件の組のリスト。

    Raises:
        ValueError: mods に重複がある場合。
    """
    if len({m.acronym for m in mods}) != len(mods):
        raise ValueError(f"duplicate mods in catalog: {[m.acronym for m in mods]}")

    result: List[ModCombo] = []

    for mod in mods:
        result.append((mod,))

        for combo in list(result):
            if mod in combo:
                continue
            result.append(combo + (mod,))

    result.append(())

    return result


def filter_exclusive(
    combos: Iterable[ModCombo],
    exclusive_pairs: Iterable[Tuple[str, str]],
) -> List[ModCombo]:
    """
    排他ペアの両方を含む組を取り除く。

    入力の順序は維持し、組を追加することはない。

    Args:
        combos: modの組の並び。
        exclusive_pairs: 同時に含めてはならない略称ペア。

    Returns:
        フィルタ後の組のリスト。
    """
    pairs = [(a.upper(), b.upper()) for a, b in exclusive_pairs]

    def _allowed(combo: ModCombo) -> bool:
        acronyms = {m.acronym for m in combo}
        return not any(a in acronyms and b in acronyms for a, b in pairs)

    return [c for c in combos if _allowed(c)]


def build_mod_combinations(
    profile: RulesetProfile,
    excluded_mods: Iterable[str] = (),
    exclusive_pairs: Iterable[Tuple[str, str]] | None = None,
) -> List[ModCombo]:
    """
    除外 → 全組み合わせ生成 → 排他フィルタ を順に適用した組を返す。

    Args:
        profile: 対象ルールセットのmod定義。
        excluded_mods: カタログから除外するmod略称。
        exclusive_pairs: 排他ペア。None の場合は profile の既定値。

    Raises:
        UnknownModError: 除外リストや排他ペアにカタログ外の略称がある場合。
    """
    excluded = list(excluded_mods)
    for acronym in excluded:
        profile.find(acronym)

    pairs = profile.exclusive_pairs if exclusive_pairs is None else tuple(exclusive_pairs)
    for a, b in pairs:
        profile.find(a)
        profile.find(b)

    cleaned = remove_mods(profile.catalog, excluded)
    return filter_exclusive(permutate_mods(cleaned), pairs)


def format_combo(combo: ModCombo) -> str:
    """進捗表示用に "HR,DT," 形式の文字列を返す。"""
    return "".join(f"{m.acronym}," for m in combo)
