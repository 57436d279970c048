"""Main entry point for running the FastAPI application."""
import uvicorn

from studentos.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    print(f"Starting {settings.app_name} v{settings.version}")
    print(f"Environment: {settings.environment.value}")
    print(f"Database: {settings.db.url.split('@')[-1] if '@' in settings.db.url else settings.db.url.split(':')[0]}")
    print(f"Auto-reload: {'Enabled' if settings.debug else 'Disabled'}")
    print("-" * 50)

    uvicorn.run(
        "studentos.api:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        reload_dirs=["studentos"] if settings.debug else None,
        log_level=settings.logging.numeric_level,
    )
