#!/usr/bin/env python

import argparse
import configparser
import sys

from aiohttp import web
from telegram.ext import Application, CommandHandler

from day_planner.config import load_config
from day_planner.errors import ConfigurationError
from day_planner.handlers import help_command, post_init, post_shutdown, start_command
from day_planner.web_api import create_web_app


def main():
    parser = argparse.ArgumentParser(description="Day planner Telegram Mini App backend")
    parser.add_argument("-c", "--config", type=str, default="config.ini", help="Path to config file")
    parser.add_argument("--api-only", action="store_true", help="Serve the HTTP API without the bot")
    args = parser.parse_args()

    config_file = configparser.ConfigParser()
    config_file.read(args.config)
    try:
        config = load_config(config_file)
    except ConfigurationError as e:
        print(f"[Config] {e}", file=sys.stderr)
        sys.exit(2)

    if args.api_only:
        port = config.api_port or 8080
        print(f"HTTP API starting on port {port}")
        web.run_app(create_web_app(config), host=config.api_host, port=port, print=None)
        return

    app = (
        Application.builder()
        .token(config.telegram_token)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )
    app.bot_data["config"] = config

    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("help", help_command))

    print("Bot started...")
    app.run_polling()


if __name__ == "__main__":
    main()
