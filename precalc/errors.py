"""
アプリケーション固有の例外定義モジュール。

設定読み込み、譜面ファイル読み込み、難易度/pp計算などの処理で発生する例外を
分類して扱うために、基底例外および派生例外を定義する。
"""


class PrecalcError(Exception):
    """precalc処理全体の基底例外。"""


class ConfigError(PrecalcError):
    """設定ファイルやCLI引数が仕様を満たさない場合の例外。"""


class UnknownModError(ConfigError):
    """ルールセットのmodカタログに存在しない略称が指定された場合の例外。"""


class BeatmapLoadError(PrecalcError):
    """.osuファイルの読み込み・ヘッダ解析に失敗した場合の例外。"""


class ScoringError(PrecalcError):
    """難易度/pp計算バックエンドの呼び出しに失敗した場合の例外。"""
