"""
バッチタスク
"""

from .rate_limit_sweep import RateLimitSweepTask, register_rate_limit_sweep

__all__ = ["RateLimitSweepTask", "register_rate_limit_sweep"]
