"""設問題庫の管理API"""

from typing import Optional

import pydantic
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from aurora.core.config import Settings
from aurora.domain.exceptions.base import (
    ImportFailedError,
    InvalidLocaleError,
    ValidationError,
)
from aurora.infrastructure.storage import QuestionFields, QuestionStore
from aurora.presentation.api.deps import get_app_settings, get_question_store
from aurora.presentation.responses import api_ok
from aurora.presentation.schemas.admin import (
    QuestionImportRequest,
    QuestionUpdateRequest,
)

router = APIRouter()


def _ensure_locale(locale: str, settings: Settings) -> None:
    if locale not in settings.locales:
        raise InvalidLocaleError(
            f"Unsupported locale: {locale}",
            details={"supported": settings.locales},
        )


@router.get("")
async def list_questions(
    locale: Optional[str] = Query(default=None),
    dimension: Optional[str] = Query(default=None),
    store: QuestionStore = Depends(get_question_store),
) -> JSONResponse:
    """設問一覧（locale, dimensionで絞り込み）と総数"""
    questions = store.list(locale=locale, dimension=dimension)
    return api_ok({"questions": questions, "total": store.count()})


@router.post("")
async def add_question(
    fields: QuestionFields,
    store: QuestionStore = Depends(get_question_store),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    _ensure_locale(fields.locale, settings)
    question = store.add(fields)
    return api_ok({"question": question})


@router.post("/import")
async def import_questions(
    payload: QuestionImportRequest,
    store: QuestionStore = Depends(get_question_store),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """
    設問の一括取り込み（IDが同じものは上書き）

    未対応ロケールの設問が含まれる場合は何も取り込まずIMPORT_ERRORを返す。
    """
    unsupported = sorted(
        {q.locale for q in payload.questions} - set(settings.locales)
    )
    if unsupported:
        raise ImportFailedError(
            "Questions contain unsupported locales",
            details={"locales": unsupported},
        )
    imported = store.import_many(payload.questions)
    return api_ok({"imported": imported, "total": store.count()})


@router.post("/{question_id}")
async def update_question(
    question_id: str,
    payload: QuestionUpdateRequest,
    store: QuestionStore = Depends(get_question_store),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    updates = payload.model_dump(exclude_unset=True)
    if "locale" in updates:
        _ensure_locale(updates["locale"], settings)
    try:
        question = store.update(question_id, updates)
    except pydantic.ValidationError as e:
        raise ValidationError(
            "Invalid question fields",
            details=[
                {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
                for err in e.errors()
            ],
        )
    return api_ok({"question": question})


@router.post("/{question_id}/delete")
async def delete_question(
    question_id: str, store: QuestionStore = Depends(get_question_store)
) -> JSONResponse:
    store.delete(question_id)
    return api_ok({"deleted": question_id})
