"""本地运行入口：pip install -e . 后执行 python -m pushfile。"""

if __name__ == "__main__":
    import os
    import uvicorn

    from pushfile.core.config import get_settings

    # 开发环境开启自动重载，只监听源码目录
    settings = get_settings()
    src_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    uvicorn.run(
        "pushfile.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=not settings.is_production,
        reload_dirs=[src_dir],
    )
