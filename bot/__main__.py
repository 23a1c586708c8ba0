import asyncio
import logging

from telegram.ext import Application, CallbackQueryHandler, CommandHandler, MessageHandler, filters

from bot import handlers
from bot.api_client import api
from bot.config import settings
from bot.state import store
from bot.ws_listener import WsListener

logger = logging.getLogger("bot")


async def post_init(application: Application) -> None:
    listener = WsListener(application.bot, api, store)
    application.bot_data["ws_task"] = asyncio.create_task(listener.run())
    logger.info("Bot started, following %s", settings.ws_url)


async def post_shutdown(application: Application) -> None:
    task = application.bot_data.get("ws_task")
    if task:
        task.cancel()
    await api.close()


def build_application() -> Application:
    application = (
        Application.builder()
        .token(settings.BOT_TOKEN)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )
    application.add_handler(CommandHandler("start", handlers.start))
    application.add_handler(CommandHandler("join", handlers.join))
    application.add_handler(CallbackQueryHandler(handlers.choose_captain, pattern=r"^role:captain$"))
    application.add_handler(CallbackQueryHandler(handlers.pick_quiz, pattern=r"^pick_quiz:\d+$"))
    application.add_handler(CallbackQueryHandler(handlers.answer_button, pattern=r"^answer:[A-H]$"))
    application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handlers.text_message))
    return application


def main():
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    # httpx logs every Telegram poll at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    build_application().run_polling()


if __name__ == "__main__":
    main()
