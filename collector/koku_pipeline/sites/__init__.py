"""観光サイト別スクレイパー."""
