"""ロギングの初期設定."""

from __future__ import annotations

import logging
import sys
from datetime import datetime

from koku_pipeline.config import LOG_DIR


def setup_logging(name: str = "collector") -> None:
    """標準出力と日付別ログファイルへの出力を設定する.

    Args:
        name: ログファイル名の接頭辞（例: "run_all" → logs/run_all_20260101.log）
    """
    LOG_DIR.mkdir(exist_ok=True)
    log_file = LOG_DIR / f"{name}_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )
