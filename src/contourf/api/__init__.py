"""公開エントリポイント。"""
