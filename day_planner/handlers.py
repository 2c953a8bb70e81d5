from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update, WebAppInfo
from telegram.ext import ContextTypes

from .config import Config


HELP_TEXT = """Day Planner Bot

Plan your day in the Mini App. Tasks are saved per day.

Commands:
/start - Open the planner
/help - Show this message"""


def webapp_keyboard(config: Config) -> InlineKeyboardMarkup | None:
    """Build the inline button that opens the Mini App, if one is configured."""
    if not config.webapp_url:
        return None
    button = InlineKeyboardButton("Open Planner", web_app=WebAppInfo(url=config.webapp_url))
    return InlineKeyboardMarkup([[button]])


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command and open the planner Mini App."""
    config: Config = context.bot_data["config"]
    keyboard = webapp_keyboard(config)
    if keyboard is None:
        await update.message.reply_text("Mini App is not configured.")
        return
    await update.message.reply_text("Tap to open your planner:", reply_markup=keyboard)


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    await update.message.reply_text(HELP_TEXT)


async def post_init(app) -> None:
    """Start the HTTP API if configured."""
    config: Config = app.bot_data["config"]
    if config.api_port > 0:
        from aiohttp import web as aio_web
        from .web_api import create_web_app

        web_app = create_web_app(config)
        runner = aio_web.AppRunner(web_app)
        await runner.setup()
        site = aio_web.TCPSite(runner, config.api_host, config.api_port)
        await site.start()
        app.bot_data["_api_runner"] = runner
        print(f"HTTP API started on port {config.api_port}")


async def post_shutdown(app) -> None:
    """Clean up the HTTP API server."""
    runner = app.bot_data.get("_api_runner")
    if runner:
        await runner.cleanup()
