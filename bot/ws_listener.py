"""Follows the API's broadcast channel and pushes game moments to captains."""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

import websockets
from telegram import Bot
from telegram.error import TelegramError

from bot.api_client import ApiError, QuizApiClient
from bot.config import settings
from bot.keyboards import answer_keyboard, format_question
from bot.state import AWAITING_ANSWER, REGISTERED, ConversationStore

logger = logging.getLogger(__name__)


def seconds_left(game: dict, now: Optional[datetime] = None) -> float:
    question = game.get("question") or {}
    limit = question.get("timeLimitSec") or 30
    started_raw = game.get("timerStartedAt")
    now = now or datetime.now(timezone.utc)
    if not started_raw:
        return float(limit)
    started = datetime.fromisoformat(started_raw.replace("Z", "+00:00"))
    if started.tzinfo is None:
        started = started.replace(tzinfo=timezone.utc)
    return max(0.0, limit - (now - started).total_seconds())


def _answer_shape(question: dict) -> tuple:
    return question.get("questionType"), len(question.get("options") or [])


class WsListener:

    def __init__(self, bot: Bot, api: QuizApiClient, store: ConversationStore):
        self.bot = bot
        self.api = api
        self.store = store
        # pending "send the question" jobs, one per quiz
        self.timers: Dict[int, asyncio.Task] = {}
        # last question seen per quiz; absent means the game has not started for us yet
        self.last_question: Dict[int, int] = {}

    async def run(self, url: Optional[str] = None) -> None:
        url = url or settings.ws_url
        while True:
            try:
                async with websockets.connect(url) as ws:
                    logger.info("WS connected to %s", url)
                    async for raw in ws:
                        try:
                            await self.on_message(raw)
                        except Exception:
                            logger.exception("WS event handling failed, listener keeps running")
            except asyncio.CancelledError:
                raise
            except (OSError, websockets.WebSocketException) as e:
                logger.warning("WS disconnected (%s), reconnecting in %ss", e, settings.WS_RECONNECT_SEC)
            await asyncio.sleep(settings.WS_RECONNECT_SEC)

    async def on_message(self, raw) -> None:
        try:
            msg = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring non-JSON WS message")
            return
        await self.handle_event(msg.get("event"), msg.get("data") or {})

    async def handle_event(self, event: str, data: dict) -> None:
        handler = {
            "slide_changed": self.on_slide_changed,
            "team_kicked": self.on_team_kicked,
            "quiz_finished": self.on_quiz_finished,
            "remind": self.on_remind,
        }.get(event)
        if handler:
            await handler(data)

    async def send(self, chat_id: int, text: str, reply_markup=None) -> None:
        try:
            await self.bot.send_message(chat_id, text, reply_markup=reply_markup)
        except TelegramError as e:
            logger.error("Failed to message chat %s: %s", chat_id, e)

    def clear_timer(self, quiz_id: int) -> None:
        task = self.timers.pop(quiz_id, None)
        if task and not task.done():
            task.cancel()

    async def _game_state(self, quiz_id: int) -> Optional[dict]:
        try:
            return await self.api.get_game_state(quiz_id)
        except ApiError as e:
            logger.warning("Could not fetch game state of quiz %s: %s", quiz_id, e)
            return None

    async def on_slide_changed(self, data: dict) -> None:
        quiz_id = data.get("quizId")
        question_id = data.get("questionId")
        slide = data.get("slide")
        registered = self.store.registered(quiz_id)
        if not registered:
            return

        self.clear_timer(quiz_id)

        if slide == "question" and question_id:
            if quiz_id not in self.last_question:
                for chat_id, _ in registered:
                    await self.send(chat_id, "🎮 The quiz has started! Questions are coming.")
            self.last_question[quiz_id] = question_id

            game = await self._game_state(quiz_id)
            question = (game or {}).get("question") or {}
            for chat_id, _ in registered:
                self.store.await_answer(chat_id, question_id, *_answer_shape(question))

        elif slide == "timer":
            game = await self._game_state(quiz_id)
            if not game or not game.get("question"):
                return
            question = game["question"]
            if question_id:
                for chat_id, state in registered:
                    if state.step == REGISTERED:
                        self.store.await_answer(chat_id, question_id, *_answer_shape(question))
            delay = seconds_left(game)
            self.timers[quiz_id] = asyncio.create_task(self._send_question_later(quiz_id, question, delay))

        elif slide == "answer":
            for chat_id, state in registered:
                if state.step == AWAITING_ANSWER:
                    self.store.answered(chat_id)

    async def _send_question_later(self, quiz_id: int, question: dict, delay: float) -> None:
        await asyncio.sleep(delay)
        self.timers.pop(quiz_id, None)

        text = format_question(question)
        keyboard = None
        if question.get("questionType") != "text":
            keyboard = answer_keyboard(len(question.get("options") or []))
        for chat_id, state in self.store.registered(quiz_id):
            if state.step != AWAITING_ANSWER:
                continue
            await self.send(chat_id, text, reply_markup=keyboard)

    async def on_team_kicked(self, data: dict) -> None:
        chat_id = self.store.chat_for_team(data.get("teamId"))
        if chat_id is None:
            return
        self.store.delete(chat_id)
        await self.send(chat_id, "❌ Your team was removed from the game.")

    async def on_quiz_finished(self, data: dict) -> None:
        quiz_id = data.get("quizId")
        registered = self.store.registered(quiz_id)
        self.clear_timer(quiz_id)
        self.last_question.pop(quiz_id, None)
        if not registered:
            return

        lines = [
            f"{i}. {r['name']}: {r['correct']} pts ({r['total']} answered)"
            for i, r in enumerate(data.get("results") or [], start=1)
        ]
        text = "\n".join(["🏆 The quiz is over! Results:", "", *lines])
        for chat_id, _ in registered:
            await self.send(chat_id, text)
            self.store.delete(chat_id)

    async def on_remind(self, data: dict) -> None:
        quiz_id = data.get("quizId")
        game = await self._game_state(quiz_id)
        question = (game or {}).get("question") or {}
        question_id = (game or {}).get("currentQuestionId") or data.get("questionId")
        keyboard = None
        if question and question.get("questionType") != "text":
            keyboard = answer_keyboard(len(question.get("options") or []))

        for team in data.get("teams") or []:
            chat_id = team.get("telegramChatId")
            if not chat_id:
                continue
            if question_id and self.store.get(chat_id).is_registered:
                self.store.await_answer(chat_id, question_id, *_answer_shape(question))
            await self.send(chat_id, "⏰ The host reminds you: send your answer!", reply_markup=keyboard)
