from __future__ import annotations

import logging

from dotenv import load_dotenv
from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Message, Update
from telegram.ext import Application, CallbackQueryHandler, CommandHandler, ContextTypes, MessageHandler, filters

from skintracker.infra import text_library as _text_library
from skintracker.infra.config import load_settings
from skintracker.services import TrackerServices, build_services
from skintracker.telegram.events import (
    MENU_HELP,
    MENU_LAST_LOG,
    MENU_RECENT,
    MENU_STATS,
    Noop,
    ShowMenu,
    StartAdding,
    TextInput,
    decode_callback,
    encode_callback,
)
from skintracker.telegram.runtime import MenuButton, TurnOutput


LOG = logging.getLogger(__name__)

_SERVICES_KEY = "skintracker_services"


def _text(key: str, **vars: object) -> str:
    return _text_library.pick(key, **vars)


def _markup(menu: list[list[MenuButton]] | None) -> InlineKeyboardMarkup | None:
    if not menu:
        return None
    rows = [
        [InlineKeyboardButton(button.label, callback_data=encode_callback(button.event)) for button in row]
        for row in menu
        if row
    ]
    return InlineKeyboardMarkup(rows)


def _main_menu() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [
            [InlineKeyboardButton(_text("ui.button.add_new_skin"), callback_data=encode_callback(StartAdding()))],
            [InlineKeyboardButton(_text("ui.button.last_log"), callback_data=encode_callback(ShowMenu(MENU_LAST_LOG)))],
            [InlineKeyboardButton(_text("ui.button.stats"), callback_data=encode_callback(ShowMenu(MENU_STATS)))],
            [InlineKeyboardButton(_text("ui.button.recent"), callback_data=encode_callback(ShowMenu(MENU_RECENT)))],
            [InlineKeyboardButton(_text("ui.button.help"), callback_data=encode_callback(ShowMenu(MENU_HELP)))],
        ]
    )


def _add_skin_only() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(_text("ui.button.add_skin"), callback_data=encode_callback(StartAdding()))]]
    )


def _services(context: ContextTypes.DEFAULT_TYPE) -> TrackerServices:
    services = context.application.bot_data.get(_SERVICES_KEY)
    if isinstance(services, TrackerServices):
        return services
    raise RuntimeError(_text("error.bot.services_unavailable"))


def _user_id(update: Update) -> int | None:
    user = update.effective_user
    if user is not None:
        return int(user.id)
    chat = update.effective_chat
    if chat is not None:
        return int(chat.id)
    return None


async def _send_output(message: Message, output: TurnOutput) -> None:
    await message.reply_text(output.text, reply_markup=_markup(output.menu))


async def _send_stats(message: Message, services: TrackerServices) -> None:
    await message.reply_text(await services.history.statistics())


async def _send_recent(message: Message, services: TrackerServices) -> None:
    for text in await services.history.recent():
        await message.reply_text(text)


async def _send_last_log(message: Message, services: TrackerServices) -> None:
    last_log = await services.history.last_log()
    await message.reply_text(_text("system.price.body", last_log=last_log), reply_markup=_add_skin_only())


async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.effective_message
    user_id = _user_id(update)
    if message is None or user_id is None:
        return
    services = _services(context)
    last_log = await services.history.last_log()
    services.sessions.get_or_create(user_id)
    await message.reply_text(_text("system.start.body", last_log=last_log), reply_markup=_main_menu())


async def cmd_price(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.effective_message
    user_id = _user_id(update)
    if message is None or user_id is None:
        return
    services = _services(context)
    await _send_last_log(message, services)
    services.sessions.get_or_create(user_id)


async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.effective_message
    if message is None:
        return
    await message.reply_text(_text("system.help.body"), reply_markup=_main_menu())


async def cmd_stats(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.effective_message
    if message is None:
        return
    await _send_stats(message, _services(context))


async def cmd_recent(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.effective_message
    if message is None:
        return
    await _send_recent(message, _services(context))


async def on_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.effective_message
    user_id = _user_id(update)
    if message is None or user_id is None:
        return

    text = str(message.text or "").strip()
    if not text:
        return
    output = await _services(context).machine.handle(user_id, TextInput(text))
    await _send_output(message, output)


async def on_other_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    message = update.effective_message
    if message is None:
        return
    await message.reply_text(_text("ui.hint.use_start"))


async def on_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    user_id = _user_id(update)
    if query is None:
        return

    await query.answer()
    if query.message is None or user_id is None:
        return

    services = _services(context)
    event = decode_callback(str(query.data or ""))
    if event is None:
        LOG.info("unknown callback data %r from user %s", query.data, user_id)
        await query.message.reply_text(_text("system.bot.action_unknown"))
        return
    if isinstance(event, Noop):
        return

    if isinstance(event, ShowMenu):
        if event.name == MENU_STATS:
            await _send_stats(query.message, services)
        elif event.name == MENU_RECENT:
            await _send_recent(query.message, services)
        elif event.name == MENU_LAST_LOG:
            await _send_last_log(query.message, services)
        else:
            await query.message.reply_text(_text("system.help.body"), reply_markup=_main_menu())
        return

    output = await services.machine.handle(user_id, event)
    await _send_output(query.message, output)


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    LOG.error("unhandled error while processing update", exc_info=context.error)
    # Errors raised outside an update (jobs, polling) carry no message.
    message = getattr(update, "effective_message", None)
    if message is None:
        return
    try:
        await message.reply_text(_text("error.bot.generic"))
    except Exception:
        LOG.exception("failed to send error notice")


def build_application(services: TrackerServices) -> Application:
    app = Application.builder().token(services.settings.telegram_token).build()
    app.bot_data[_SERVICES_KEY] = services

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("price", cmd_price))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("stats", cmd_stats))
    app.add_handler(CommandHandler("recent", cmd_recent))

    app.add_handler(CallbackQueryHandler(on_callback))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, on_text))
    app.add_handler(MessageHandler(~filters.TEXT | filters.COMMAND, on_other_message))
    app.add_error_handler(on_error)
    return app


def main() -> None:
    load_dotenv()
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    app = build_application(build_services(settings))
    LOG.info("bot starting (accounts=%s, page_size=%s)", len(settings.accounts), settings.page_size)
    app.run_polling(close_loop=False, allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
