# livevip_api/wsgi.py
# gunicorn command should point to "livevip_api.wsgi:app"
# Example: gunicorn -b 0.0.0.0:3001 -w 2 --threads 4 livevip_api.wsgi:app
from .app import create_app
from .config import APP_NAME, Settings
from .logging_setup import configure_logging

settings = Settings.from_env()
logger = configure_logging(APP_NAME, settings.log_level)

app = create_app(settings)


def main() -> None:
    logger.info("Server listening on 0.0.0.0:%s", settings.port)
    logger.info("CORS enabled")
    logger.info("Database host: %s", settings.db_host)
    app.run(host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
