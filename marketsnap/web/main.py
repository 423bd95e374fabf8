"""
Web 服务启动脚本
"""

import uvicorn

from marketsnap.core.config import ConfigManager


def main(host: str | None = None, port: int | None = None, reload: bool = False) -> None:
    """启动 FastAPI Web 服务"""
    config = ConfigManager().get_config()
    uvicorn.run(
        "marketsnap.web.main:create_default_app",
        factory=True,
        host=host or config.web.host,
        port=port or config.web.port,
        reload=reload,
        log_level="info",
    )


def create_default_app():
    from marketsnap.web.app import create_app

    return create_app()


if __name__ == "__main__":
    main()
