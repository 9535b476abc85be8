"""診断結果・統計の閲覧API"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from aurora.infrastructure.storage import ResultStore, StatsStore
from aurora.presentation.api.deps import get_result_store, get_stats_store
from aurora.presentation.responses import api_ok

router = APIRouter()


@router.get("/results")
async def list_results(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    mbti_type: Optional[str] = Query(default=None, alias="type"),
    locale: Optional[str] = Query(default=None),
    date_from: Optional[str] = Query(default=None, alias="from"),
    date_to: Optional[str] = Query(default=None, alias="to"),
    store: ResultStore = Depends(get_result_store),
) -> JSONResponse:
    """匿名診断結果を新しい順にページングして返す"""
    paged = store.query(
        page=page,
        limit=limit,
        mbti_type=mbti_type,
        locale=locale,
        date_from=date_from,
        date_to=date_to,
    )
    return api_ok(paged.model_dump(mode="json"))


@router.get("/stats")
async def get_stats(
    stats_store: StatsStore = Depends(get_stats_store),
    result_store: ResultStore = Depends(get_result_store),
) -> JSONResponse:
    return api_ok(
        {
            "stats": stats_store.read().model_dump(mode="json"),
            "results": result_store.summary(),
        }
    )


@router.get("/analytics")
async def get_analytics(store: ResultStore = Depends(get_result_store)) -> JSONResponse:
    """タイプ分布・次元平均・属性分布・日別推移"""
    return api_ok(store.analytics())
