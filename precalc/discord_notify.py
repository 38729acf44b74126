"""
Discord Webhook通知を行うユーティリティ。

このモジュールは precalc の実行結果(成功/失敗/統計)をDiscordへ送信する用途で使用する。
通知失敗は処理全体の失敗とはみなさず、例外は握りつぶす。
"""

from __future__ import annotations

import requests
from requests import RequestException

from precalc.batch import RunSummary

# Discord の content 上限 (2000文字) に収まるように切り詰める
MAX_CONTENT_LENGTH = 1900


def build_success_message(csv_path: str, summary: RunSummary) -> str:
    """実行成功時の通知本文を生成する。"""
    return (
        f"✅ precalc 完了: {csv_path}\n"
        f"- files: {summary.files_total}\n"
        f"- processed: {summary.files_processed}\n"
        f"- skipped (mode): {summary.files_skipped}\n"
        f"- failed: {summary.files_failed}\n"
        f"- rows: {summary.rows_written}\n"
        f"- elapsed: {summary.elapsed_seconds:.1f}s\n"
    )


def build_failure_message(csv_path: str, err: str) -> str:
    """実行失敗時の通知本文を生成する。"""
    header = f"❌ precalc 失敗: {csv_path}\n"
    body = err[: MAX_CONTENT_LENGTH - len(header) - 6]
    return f"{header}```{body}```"


def send_discord(webhook_url: str, message: str) -> None:
    """
    Discord Webhookへメッセージを送信する。

    webhook_urlが空の場合は何もせず終了する。
    通知失敗は致命的なエラーとせず、例外は握りつぶす。

    Args:
        webhook_url: Discord Webhook URL。
        message: 送信する本文。
    """
    if not webhook_url:
        return

    payload = {"content": message[:MAX_CONTENT_LENGTH]}

    try:
        requests.post(webhook_url, json=payload, timeout=15)
    except RequestException:
        # 通知失敗は致命にしない
        return
