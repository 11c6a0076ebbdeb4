"""Точка входа в приложение."""
import logging
import os

from photoedit.app import PhotoEditorApp
from photoedit.controllers.session_controller import EditingSession
from photoedit.services.settings_service import SettingsService


def configure_logging() -> None:
    level = os.environ.get("PHOTOEDIT_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """Загружает настройки, создаёт сессию и запускает главное окно."""
    configure_logging()
    settings_service = SettingsService()
    settings = settings_service.load()
    if not settings.ai_enabled:
        logging.getLogger(__name__).info("No API key or local model configured; AI features disabled")
    app = PhotoEditorApp(EditingSession(settings), settings_service)
    app.mainloop()


if __name__ == "__main__":
    main()
