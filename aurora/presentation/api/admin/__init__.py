"""
管理API

ログイン・ログアウト以外は管理者認可が必要。
"""

from fastapi import APIRouter, Depends

from aurora.presentation.api.deps import require_admin

from . import ai_config, auth, questions, results

router = APIRouter()
router.include_router(auth.router, tags=["admin"])

protected = APIRouter(dependencies=[Depends(require_admin)])
protected.include_router(questions.router, prefix="/questions")
protected.include_router(results.router)
protected.include_router(ai_config.router)
router.include_router(protected, tags=["admin"])
