"""パイプライン共通の例外定義."""


class PipelineError(Exception):
    """パイプライン処理の致命的エラー."""


class ConfigError(PipelineError):
    """必須の環境変数が不足している."""


class SeedInputError(PipelineError):
    """スクレイピング結果ファイルを読み込めない."""
