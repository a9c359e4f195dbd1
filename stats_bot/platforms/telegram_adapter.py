from __future__ import annotations

import logging
from typing import List, Optional

from telegram import Bot, Update
from telegram.constants import MessageLimit
from telegram.error import TelegramError
from telegram.ext import Application, ApplicationBuilder, CommandHandler, ContextTypes

from ..config import Settings
from ..service import StatsService

logger = logging.getLogger(__name__)

DAILY_JOB_NAME = "daily_stats"


def split_message(text: str, limit: int = MessageLimit.MAX_TEXT_LENGTH) -> List[str]:
    """Split on blank lines so each chunk fits one Telegram message"""
    if len(text) <= limit:
        return [text]
    chunks: List[str] = []
    current = ""
    for block in text.split("\n\n"):
        candidate = f"{current}\n\n{block}" if current else block
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            chunks.append(current)
        # a single block over the limit gets cut hard
        while len(block) > limit:
            chunks.append(block[:limit])
            block = block[limit:]
        current = block
    if current:
        chunks.append(current)
    return chunks


class TelegramAdapter:
    PLATFORM = "telegram"

    def __init__(self, settings: Settings, service: StatsService, application: Optional[Application] = None):
        self.settings = settings
        self.service = service
        if application is None:
            builder = ApplicationBuilder().token(settings.telegram_bot_token)
            if settings.is_production:
                # updates arrive through the web app's webhook route
                builder = builder.updater(None)
            application = builder.build()
        self.app = application
        self._register_handlers()

    def _register_handlers(self):
        self.app.add_handler(CommandHandler("stats", self.on_stats))
        self.app.add_handler(CommandHandler("start", self.on_stats))
        self.app.add_handler(CommandHandler("newusers", self.on_new_users))
        self.app.add_handler(CommandHandler("getchatid", self.on_get_chat_id))
        self.app.add_error_handler(self.on_error)
        if self.app.job_queue is None:
            logger.warning("Job queue unavailable, daily report is not scheduled")
            return
        self.app.job_queue.run_daily(
            self._daily_stats_job,
            time=self.settings.report_time_of_day,
            name=DAILY_JOB_NAME,
        )
        logger.info("Daily stats scheduled at %s", self.settings.report_time)

    async def on_stats(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        chat = update.effective_chat
        if not chat:
            return
        logger.info("Command received from chat ID: %s", chat.id)
        await self.send_daily_stats(context.bot, chat.id)

    async def on_new_users(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        chat = update.effective_chat
        if not chat:
            return
        logger.info("Command received from chat ID: %s", chat.id)
        result = await self.service.build_new_users()
        await self.send_text(context.bot, chat.id, result.message)

    async def on_get_chat_id(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        chat = update.effective_chat
        if not chat:
            return
        message = update.effective_message
        thread_id = message.message_thread_id if message else None
        text = f"Your chat ID is: {chat.id}\nMessage thread ID: {thread_id or 'None'}"
        await self.send_text(context.bot, chat.id, text)

    async def on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE):
        logger.error("Error while handling update: %s", context.error, exc_info=context.error)

    async def _daily_stats_job(self, context: ContextTypes.DEFAULT_TYPE):
        logger.info("Initiating daily stats...")
        await self.send_daily_stats(context.bot, self.settings.chat_id)

    async def send_daily_stats(self, bot: Bot, chat_id) -> bool:
        result = await self.service.build_stats()
        sent = await self.send_text(bot, chat_id, result.message)
        if sent and result.ok:
            logger.info("Daily stats sent successfully")
        return sent

    async def send_text(self, bot: Bot, chat_id, text: str) -> bool:
        try:
            for chunk in split_message(text):
                await bot.send_message(chat_id=chat_id, text=chunk)
        except TelegramError as e:
            logger.error("Error sending message to chat %s: %s", chat_id, e)
            return False
        return True

    async def process_webhook(self, payload: dict):
        update = Update.de_json(payload, self.app.bot)
        await self.app.update_queue.put(update)

    async def start(self):
        await self.app.initialize()
        if self.settings.is_production:
            url = self.settings.webhook_url.rstrip("/") + self.settings.webhook_path
            await self.app.bot.set_webhook(url)
            logger.info("Telegram webhook registered")
        else:
            await self.app.updater.start_polling()
            logger.info("Telegram polling started")
        await self.app.start()

    async def stop(self):
        if self.app.updater and self.app.updater.running:
            await self.app.updater.stop()
        if self.app.running:
            await self.app.stop()
        await self.app.shutdown()
        logger.info("Telegram bot stopped")
