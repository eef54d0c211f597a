import uvicorn

from clinic_import.api.app import create_app
from clinic_import.config.settings import Settings


def main() -> None:
    """Entry point: load settings -> build the app -> serve it."""
    settings = Settings()
    app = create_app(settings)
    uvicorn.run(app, host=settings.http_host, port=settings.http_port, log_config=None)


if __name__ == "__main__":
    main()
