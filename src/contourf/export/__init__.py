"""結果の受け渡し（Vector Sink）。"""
