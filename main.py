import argparse
import os
import sys
import traceback
from dataclasses import replace
from typing import List, Optional

from precalc.batch import run_precalc
from precalc.beatmap_loader import discover_beatmap_files
from precalc.config import Settings, load_settings, parse_mod_list, validate_failure_policy
from precalc.csv_writer import CsvRowWriter
from precalc.discord_notify import build_failure_message, build_success_message, send_discord
from precalc.mods import build_mod_combinations, format_combo, get_ruleset_profile
from precalc.models import Scorer
from precalc.scoring import RosuScorer

DEFAULT_SETTINGS_PATH = "settings.yaml"


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="precalc",
        description="Computes all possible permutations of mods for .osu files in a given folder.",
    )
    parser.add_argument("osu_files_folder", help="A folder containing .osu files")
    parser.add_argument("csv_file_path", help="Output file for csv results")
    parser.add_argument(
        "--settings",
        default=None,
        help=f"settings.yaml path (default: ./{DEFAULT_SETTINGS_PATH} if present)",
    )
    parser.add_argument(
        "--exclude-mods",
        default="",
        help="Extra comma separated mod acronyms to leave out of the permutations (e.g. HD,FL)",
    )
    parser.add_argument(
        "--failure-policy",
        choices=["error", "skip"],
        default=None,
        help="What to do when a map fails to load or calculate (default: from settings)",
    )
    return parser


def resolve_settings(args: argparse.Namespace) -> Settings:
    """
    CLI引数と settings.yaml から実行設定を組み立てる。

    --settings 未指定でカレントに settings.yaml が無い場合は既定値を使う。
    """
    webhook_url = os.environ.get("DISCORD_WEBHOOK_URL", "")

    if args.settings:
        settings = load_settings(args.settings, webhook_url=webhook_url)
    elif os.path.exists(DEFAULT_SETTINGS_PATH):
        settings = load_settings(DEFAULT_SETTINGS_PATH, webhook_url=webhook_url)
    else:
        settings = Settings()
        settings = replace(settings, discord=replace(settings.discord, webhook_url=webhook_url))

    extra = parse_mod_list(args.exclude_mods)
    if extra:
        merged = list(settings.excluded_mods) + [m for m in extra if m not in settings.excluded_mods]
        settings = replace(settings, excluded_mods=tuple(merged))

    if args.failure_policy:
        settings = replace(settings, failure_policy=validate_failure_policy(args.failure_policy))

    return settings


def main(argv: Optional[List[str]] = None, scorer: Optional[Scorer] = None) -> int:
    """
    .osu フォルダ内の全譜面について、全modの組の star rating / pp を計算しCSVへ出力する。

    以下の処理を順序実行する:
    1. 設定の読み込みとmodの組の生成
    2. .osu ファイルの列挙
    3. 出力CSVを開き、譜面 × modの組 を逐次計算して書き出す
    4. 所要時間の表示と Discord 通知 (設定時)

    フォルダや出力先の不備は計算開始前にエラー終了する。
    計算中の例外は標準エラーへ出力し、Discordへ通知した上で再送出する。
    """
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if not os.path.isdir(args.osu_files_folder):
        parser.error(f"Not a directory: {args.osu_files_folder}")

    settings = resolve_settings(args)
    notify_url = settings.discord.webhook_url if settings.discord.notify else ""

    try:
        profile = get_ruleset_profile(settings.ruleset)
        combos = build_mod_combinations(
            profile,
            excluded_mods=settings.excluded_mods,
            exclusive_pairs=settings.exclusive_pairs,
        )
        print(f"Mod combinations ({len(combos)}): {' '.join(format_combo(c) or 'NM' for c in combos)}")

        files = discover_beatmap_files(args.osu_files_folder)
        print(f"Found {len(files)} .osu files in {args.osu_files_folder}")

        if scorer is None:
            scorer = RosuScorer()

        with CsvRowWriter(args.csv_file_path) as writer:
            summary = run_precalc(
                files,
                combos,
                scorer,
                writer.write_row,
                target_mode=profile.short_name,
                tracked_codes=profile.tracked_codes,
                failure_policy=settings.failure_policy,
            )

        print(f"Took {summary.elapsed_seconds} seconds")

        send_discord(notify_url, build_success_message(args.csv_file_path, summary))

    except Exception:
        err = traceback.format_exc()
        print(err, file=sys.stderr)
        send_discord(notify_url, build_failure_message(args.csv_file_path, err))
        raise

    return 0


if __name__ == "__main__":
    sys.exit(main())
