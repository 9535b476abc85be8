"""
管理CLI（``aurora-admin``）
"""
