"""
ページ（ロケール解決・シェルHTML）
"""
