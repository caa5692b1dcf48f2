"""Koku Travel 観光地データ収集パイプライン."""
