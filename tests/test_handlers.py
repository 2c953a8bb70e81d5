"""Tests for the bot command handlers."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from day_planner.config import Config
from day_planner.handlers import HELP_TEXT, help_command, start_command, webapp_keyboard


def _make_config(webapp_url: str = "https://planner.example/app") -> Config:
    return Config(
        telegram_token="test:token",
        store_url="http://store.invalid",
        store_key="key",
        webapp_url=webapp_url,
    )


def _update_and_context(config: Config):
    update = MagicMock()
    update.message.reply_text = AsyncMock()
    context = MagicMock()
    context.bot_data = {"config": config}
    return update, context


class TestWebappKeyboard:
    def test_button_opens_webapp(self):
        keyboard = webapp_keyboard(_make_config())
        button = keyboard.inline_keyboard[0][0]
        assert button.web_app.url == "https://planner.example/app"

    def test_not_configured(self):
        assert webapp_keyboard(_make_config(webapp_url="")) is None


class TestCommands:
    @pytest.mark.asyncio
    async def test_start_sends_button(self):
        update, context = _update_and_context(_make_config())
        await start_command(update, context)
        kwargs = update.message.reply_text.call_args.kwargs
        assert kwargs["reply_markup"].inline_keyboard[0][0].text == "Open Planner"

    @pytest.mark.asyncio
    async def test_start_without_webapp(self):
        update, context = _update_and_context(_make_config(webapp_url=""))
        await start_command(update, context)
        update.message.reply_text.assert_awaited_once_with("Mini App is not configured.")

    @pytest.mark.asyncio
    async def test_help(self):
        update, context = _update_and_context(_make_config())
        await help_command(update, context)
        update.message.reply_text.assert_awaited_once_with(HELP_TEXT)
