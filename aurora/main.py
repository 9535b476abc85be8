"""ASGIエントリーポイント: ``uvicorn aurora.main:app``"""

from aurora.core.app_factory import create_app

app = create_app()
