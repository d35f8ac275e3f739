"""
HTTP API 包装器 - 将 ProfileManager 暴露为 HTTP 服务

启动方式:
    python -m org_directory.http_server

API 端点:
    GET /users/{key}            用户资料
    GET /users/{key}/photo      头像 data URI
    GET /users/{key}/manager    直属上级
    GET /users/{key}/managers   上级链（从直属上级到顶层）
    GET /users/{key}/directs    直属下属
    key 可以是用户 id 或邮箱
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from org_directory.core.config import settings
from org_directory.core.errors import (
    BatchFailedError,
    DirectoryError,
    NotFoundError,
    TokenError,
)
from org_directory.core.graph_client import GraphClient
from org_directory.providers.graph.api import UserAPI
from org_directory.providers.graph.managers import ProfileManager
from org_directory.schemas.profile import Profile

logger = logging.getLogger(__name__)


def configure_logging(log_dir: Path = Path("log")) -> Path:
    """
    日志配置：Stderr + File

    Returns:
        日志文件路径
    """
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / "agent.log"

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # Stderr Handler (用于调试，且不污染 stdout)
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)

    # File Handler (用于持久化)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(formatter)

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        handlers=[stderr_handler, file_handler],
        force=True,  # 强制重新配置
    )

    # 确保 Uvicorn 的日志也去 stderr 和文件
    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logger_obj = logging.getLogger(logger_name)
        logger_obj.handlers = [stderr_handler, file_handler]
        logger_obj.propagate = False  # 防止双重打印

    logger.info("Logging configured. Log file: %s", log_file.absolute())
    return log_file


class PhotoResponse(BaseModel):
    """头像响应模型"""

    url: str


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理：每个应用一个 ProfileManager"""
    logger.info("Starting org directory HTTP service")
    client = GraphClient()
    app.state.profile_manager = ProfileManager(user_api=UserAPI(client=client))
    yield
    logger.info("Shutting down org directory HTTP service")
    await app.state.profile_manager.close()


app = FastAPI(
    title="Org Directory HTTP Service",
    description="目录服务用户资料、头像、上级链与下属查询",
    version="0.1.0",
    lifespan=lifespan,
)


def get_profile_manager(request: Request) -> ProfileManager:
    return request.app.state.profile_manager


@app.exception_handler(DirectoryError)
async def directory_error_handler(request: Request, exc: DirectoryError):
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, TokenError):
        status_code = 401
    else:
        status_code = 502

    if isinstance(exc, BatchFailedError):
        logger.error("Batch failure while serving %s: %s", request.url.path, exc)
    else:
        logger.warning("Directory error while serving %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


@app.get("/users/{key}", response_model=Profile)
async def get_profile(key: str, manager: ProfileManager = Depends(get_profile_manager)):
    """用户资料"""
    return await manager.resolve_profile(key)


@app.get("/users/{key}/photo", response_model=PhotoResponse)
async def get_photo(key: str, manager: ProfileManager = Depends(get_profile_manager)):
    """头像 data URI"""
    return PhotoResponse(url=await manager.get_photo_url(key))


@app.get("/users/{key}/manager", response_model=Profile)
async def get_manager(key: str, manager: ProfileManager = Depends(get_profile_manager)):
    """直属上级"""
    return await manager.get_manager(key)


@app.get("/users/{key}/managers", response_model=List[Profile])
async def get_all_managers(
    key: str, manager: ProfileManager = Depends(get_profile_manager)
):
    """上级链"""
    return await manager.get_all_managers(key)


@app.get("/users/{key}/directs", response_model=List[Profile])
async def get_directs(key: str, manager: ProfileManager = Depends(get_profile_manager)):
    """直属下属"""
    return await manager.get_directs(key)


@app.get("/health")
async def health_check(manager: ProfileManager = Depends(get_profile_manager)):
    """健康检查接口"""
    return {
        "status": "healthy",
        "service": "org-directory",
        "cache": manager.cached_keys(),
    }


def main():
    """启动 HTTP 服务"""
    import uvicorn

    configure_logging()
    logger.info(
        "Starting HTTP server on http://%s:%d", settings.HTTP_HOST, settings.HTTP_PORT
    )

    # log_config=None 告诉 uvicorn 不要使用默认配置，而是继承上面配置好的 logging
    uvicorn.run(
        "org_directory.http_server:app",
        host=settings.HTTP_HOST,
        port=settings.HTTP_PORT,
        reload=False,
        log_config=None,
    )


if __name__ == "__main__":
    main()
