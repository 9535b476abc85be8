"""
APIスキーマ
"""
