"""
PlaceholderDB API 主应用
"""

import sys
import uvicorn
from fastapi import APIRouter, Body, FastAPI, HTTPException, Depends, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Dict, Any, Optional
from pathlib import Path
import logging

from loguru import logger as loguru_logger

from ..core.database import PlaceholderDB
from ..core.config import Config, load_config_from_env
from ..core.exceptions import NotFoundError, ConflictError
from .. import __version__

# 配置日志
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/default.yaml"


# Pydantic 模型
class DataResponse(BaseModel):
    data: Any


class StatisticsResponse(BaseModel):
    statistics: Dict[str, Any]
    status: str


def load_config(config_path: Optional[str] = None) -> Config:
    """加载配置：配置文件（存在时）+ 环境变量"""
    path = Path(config_path or DEFAULT_CONFIG_PATH)
    config = Config.from_file(str(path)) if path.exists() else Config()
    return load_config_from_env(config)


# 依赖注入
async def get_database(request: Request) -> PlaceholderDB:
    """获取数据库实例"""
    database = getattr(request.app.state, "db", None)
    if database is None:
        raise HTTPException(status_code=503, detail="数据库尚未就绪")
    return database


router = APIRouter()


@router.get("/")
async def root(request: Request):
    """根路径"""
    database = getattr(request.app.state, "db", None)
    return {
        "message": "PlaceholderDB API",
        "version": __version__,
        "status": "running",
        "collections": database.store.collections if database else []
    }


@router.get("/health")
async def health_check(request: Request):
    """健康检查"""
    database = getattr(request.app.state, "db", None)
    if database and database.initialized:
        return {
            "status": "healthy",
            "database": "connected",
            "statistics": database.store.get_statistics()
        }
    return {
        "status": "unhealthy",
        "database": "disconnected"
    }


@router.get("/statistics", response_model=StatisticsResponse)
async def get_statistics(database: PlaceholderDB = Depends(get_database)):
    """获取数据库统计信息"""
    stats = await database.get_statistics()
    return StatisticsResponse(statistics=stats, status="success")


@router.get("/db")
async def dump_database(database: PlaceholderDB = Depends(get_database)):
    """导出全部集合"""
    return await database.dump()


def _page_link_header(request: Request, links: Dict[str, int]) -> str:
    """构造分页导航 Link 响应头"""
    parts = []
    for rel, page in links.items():
        url = request.url.include_query_params(_page=page)
        parts.append(f'<{url}>; rel="{rel}"')
    return ", ".join(parts)


@router.get("/{collection}", response_model=DataResponse)
async def list_resources(
    collection: str,
    request: Request,
    response: Response,
    database: PlaceholderDB = Depends(get_database)
):
    """查询集合"""
    try:
        result = await database.query(collection, request.url.query)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    response.headers[database.config.api.total_count_header] = str(result.total)
    if result.links:
        response.headers["Link"] = _page_link_header(request, result.links)

    return DataResponse(data=result.items)


@router.get("/{collection}/{object_id}", response_model=DataResponse)
async def get_resource(
    collection: str,
    object_id: str,
    request: Request,
    database: PlaceholderDB = Depends(get_database)
):
    """获取单个实体"""
    try:
        entity = await database.get(collection, object_id, request.url.query)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return DataResponse(data=entity)


@router.post("/{collection}", response_model=DataResponse, status_code=201)
async def create_resource(
    collection: str,
    entity: Dict[str, Any] = Body(...),
    database: PlaceholderDB = Depends(get_database)
):
    """创建实体"""
    try:
        created = await database.create(collection, entity)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        # 重复 ID 按既有接口约定返回 500 而不是 409
        logger.error(f"创建实体失败: {e}")
        raise HTTPException(status_code=500, detail=f"创建实体失败: {str(e)}")

    return DataResponse(data=created)


@router.put("/{collection}/{object_id}", response_model=DataResponse)
@router.patch("/{collection}/{object_id}", response_model=DataResponse)
async def update_resource(
    collection: str,
    object_id: str,
    partial: Dict[str, Any] = Body(...),
    database: PlaceholderDB = Depends(get_database)
):
    """合并更新实体"""
    try:
        updated = await database.update(collection, object_id, partial)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return DataResponse(data=updated)


@router.delete("/{collection}/{object_id}", response_model=DataResponse)
async def delete_resource(
    collection: str,
    object_id: str,
    database: PlaceholderDB = Depends(get_database)
):
    """删除实体"""
    try:
        await database.delete(collection, object_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return DataResponse(data={})


def create_app(config: Optional[Config] = None) -> FastAPI:
    """
    创建 FastAPI 应用

    数据库实例在启动事件中创建并放在 ``app.state.db``，关闭事件中销毁。

    Args:
        config: 配置对象，为 None 时从配置文件和环境变量加载
    """
    config = config or load_config()
    logging.getLogger().setLevel(config.api.log_level.upper())

    app = FastAPI(
        title="PlaceholderDB API",
        description="内存多资源数据库 REST API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        debug=config.api.debug
    )
    app.state.config = config
    app.state.db = None

    # 添加 CORS 中间件
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[config.api.total_count_header, "Link"],
    )

    @app.on_event("startup")
    async def startup_event():
        """应用启动事件"""
        logger.info("PlaceholderDB API 启动中...")
        database = PlaceholderDB(app.state.config)
        await database.initialize()
        app.state.db = database
        logger.info("PlaceholderDB API 启动完成")

    @app.on_event("shutdown")
    async def shutdown_event():
        """应用关闭事件"""
        logger.info("PlaceholderDB API 关闭中...")
        if app.state.db is not None:
            await app.state.db.close()
            app.state.db = None
        logger.info("PlaceholderDB API 已关闭")

    # 错误处理
    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc):
        """全局异常处理"""
        logger.error(f"未处理的异常: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "内部服务器错误",
                "detail": str(exc)
            }
        )

    app.include_router(router)
    return app


app = create_app()


def main():
    """命令行入口"""
    config = app.state.config

    loguru_logger.remove()
    loguru_logger.add(sys.stderr, level=config.api.log_level.upper())

    uvicorn.run(
        "placeholderdb.api.main:app",
        host=config.api.host,
        port=config.api.port,
        reload=config.api.debug,
        log_level=config.api.log_level.lower()
    )


if __name__ == "__main__":
    # 启动服务器
    main()
