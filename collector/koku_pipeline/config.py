"""設定モジュール — 環境変数・定数定義."""

import os
from pathlib import Path

from dotenv import load_dotenv

from koku_pipeline.errors import ConfigError

# .env.local はプロジェクトルートに配置
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env.local")

# --- Supabase ---
SUPABASE_URL: str = os.environ.get("NEXT_PUBLIC_SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY: str = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")

# --- User-Agent ---
USER_AGENT = "Mozilla/5.0 (compatible; KokuTravelBot/1.0; +https://koku.travel)"

# --- リクエスト設定 ---
REQUEST_TIMEOUT = 30  # 秒
DEFAULT_RATE_LIMIT = 1.5  # 秒
REGIONAL_RATE_LIMIT = 2.0  # 秒

# --- カテゴリ・地方 ---
CATEGORIES = ("culture", "attraction", "nature", "food", "shopping", "hotel")
DEFAULT_CATEGORY = "attraction"
REGIONS = (
    "Hokkaido",
    "Tohoku",
    "Kanto",
    "Chubu",
    "Kansai",
    "Chugoku",
    "Shikoku",
    "Kyushu",
    "Okinawa",
)

# --- 出力 ---
OUTPUT_DIR = Path.cwd() / "tmp"
TEST_DATA_NOTE = "TEST DATA - DELETE BEFORE LAUNCH"
DESCRIPTION_MAX_LENGTH = 500

# --- JNTO ---
JNTO_MAX_SPOT_ID = 2366
JNTO_TEST_MAX_SPOT_ID = 20
JNTO_MAX_CONSECUTIVE_MISSES = 50

# --- DB ---
LOCATIONS_TABLE = "locations"
PLACE_DETAILS_TABLE = "place_details"
SEED_BATCH_SIZE = 100
PAGE_SIZE = 1000
UNIQUE_VIOLATION = "23505"
PLACEHOLDER_IMAGE = "https://images.unsplash.com/photo-1490806843957-31f4c9a91c65?w=800"

# --- ログ ---
LOG_DIR = Path(__file__).resolve().parent.parent / "logs"


def is_test_mode() -> bool:
    """TEST_MODE=true のとき JNTO の取得範囲を縮小する."""
    return os.environ.get("TEST_MODE", "").lower() == "true"


def require_supabase_env() -> tuple[str, str]:
    """Supabase 接続に必要な環境変数を返す.

    Raises:
        ConfigError: いずれかが未設定の場合
    """
    url = os.environ.get("NEXT_PUBLIC_SUPABASE_URL", SUPABASE_URL)
    key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", SUPABASE_SERVICE_ROLE_KEY)
    missing = [
        name
        for name, value in (
            ("NEXT_PUBLIC_SUPABASE_URL", url),
            ("SUPABASE_SERVICE_ROLE_KEY", key),
        )
        if not value
    ]
    if missing:
        raise ConfigError(f"環境変数が未設定です: {', '.join(missing)}")
    return url, key
