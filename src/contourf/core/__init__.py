"""等値線ポリゴン化のコア（グリッド・セル分類・リング復元・ポリゴン化・並列実行）。"""
