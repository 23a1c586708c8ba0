import asyncio
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from bot import ws_listener
from bot.api_client import ApiError, QuizApiClient
from bot.state import AWAITING_ANSWER, REGISTERED, ChatState, ConversationStore
from bot.ws_listener import WsListener, seconds_left

QUESTION = {"id": 5, "text": "2 + 2?", "options": ["3", "4", "5", "6"], "questionType": "choice", "timeLimitSec": 30}


@pytest.fixture
def store():
    store = ConversationStore()
    store.set(1, ChatState(REGISTERED, quiz_id=10, team_id=100))
    store.set(2, ChatState(REGISTERED, quiz_id=10, team_id=200))
    store.set(3, ChatState(REGISTERED, quiz_id=99, team_id=300))
    return store


@pytest.fixture
def api():
    api = MagicMock()
    api.get_game_state = AsyncMock(return_value={"currentQuestionId": 5, "question": QUESTION, "timerStartedAt": None})
    return api


@pytest.fixture
def bot():
    bot = MagicMock()
    bot.send_message = AsyncMock()
    return bot


@pytest.fixture
def listener(bot, api, store):
    return WsListener(bot, api, store)


def sent_to(bot):
    return [c.args[0] for c in bot.send_message.await_args_list]


def test_seconds_left():
    now = datetime(2026, 1, 1, 12, 0, 30, tzinfo=timezone.utc)
    game = {"question": {"timeLimitSec": 30}, "timerStartedAt": "2026-01-01T12:00:10"}
    assert seconds_left(game, now) == 10
    assert seconds_left({"question": {}, "timerStartedAt": None}, now) == 30
    assert seconds_left({"question": {"timeLimitSec": 5}, "timerStartedAt": "2026-01-01T11:00:00Z"}, now) == 0


async def test_first_question_announces_start(listener, bot, store):
    await listener.handle_event("slide_changed", {"quizId": 10, "questionId": 5, "slide": "question"})
    assert sorted(sent_to(bot)) == [1, 2]
    assert store.get(1).step == AWAITING_ANSWER
    assert store.get(1).question_id == 5
    assert store.get(1).question_type == "choice"
    assert store.get(3).step == REGISTERED

    bot.send_message.reset_mock()
    await listener.handle_event("slide_changed", {"quizId": 10, "questionId": 6, "slide": "question"})
    assert bot.send_message.await_count == 0
    assert store.get(2).question_id == 6


async def test_timer_sends_question_when_time_is_up(listener, bot, api, store):
    started = (datetime.now(timezone.utc) - timedelta(seconds=60)).isoformat()
    api.get_game_state.return_value = {"currentQuestionId": 5, "question": QUESTION, "timerStartedAt": started}
    store.answered(2)
    store.await_answer(1, 5, "choice")

    await listener.handle_event("slide_changed", {"quizId": 10, "questionId": 5, "slide": "timer"})
    await listener.timers[10]

    # chat 2 was registered and is armed by the timer slide
    assert sorted(sent_to(bot)) == [1, 2]
    call = bot.send_message.await_args_list[0]
    assert "2 + 2?" in call.args[1]
    assert call.kwargs["reply_markup"] is not None


async def test_answer_slide_cancels_timer_and_closes_answers(listener, bot, api, store):
    started = datetime.now(timezone.utc).isoformat()
    api.get_game_state.return_value = {"currentQuestionId": 5, "question": QUESTION, "timerStartedAt": started}

    await listener.handle_event("slide_changed", {"quizId": 10, "questionId": 5, "slide": "timer"})
    task = listener.timers[10]
    await listener.handle_event("slide_changed", {"quizId": 10, "questionId": 5, "slide": "answer"})

    with pytest.raises(asyncio.CancelledError):
        await task
    assert task.cancelled()
    assert store.get(1).step == REGISTERED
    assert bot.send_message.await_count == 0


async def test_timer_without_game_state_does_nothing(listener, bot, api):
    api.get_game_state.side_effect = ApiError(404, "Game state not found")
    await listener.handle_event("slide_changed", {"quizId": 10, "questionId": 5, "slide": "timer"})
    assert 10 not in listener.timers


async def test_team_kicked(listener, bot, store):
    await listener.handle_event("team_kicked", {"teamId": 200, "name": "Foxes"})
    assert sent_to(bot) == [2]
    assert store.get(2).step == "idle"


async def test_quiz_finished_sends_results_and_forgets(listener, bot, store):
    results = [{"teamId": 100, "name": "Owls", "correct": 3, "total": 3}, {"teamId": 200, "name": "Foxes", "correct": 1, "total": 2}]
    await listener.handle_event("quiz_finished", {"quizId": 10, "results": results, "resultsRevealCount": 0})

    assert sorted(sent_to(bot)) == [1, 2]
    text = bot.send_message.await_args_list[0].args[1]
    assert "1. Owls: 3 pts" in text
    assert "2. Foxes: 1 pts" in text
    assert store.registered(10) == []
    assert store.get(3).step == REGISTERED


async def test_remind_arms_answering(listener, bot, store):
    await listener.handle_event("remind", {"quizId": 10, "teams": [
        {"teamId": 100, "telegramChatId": 1},
        {"teamId": 400, "telegramChatId": None},
    ]})
    assert sent_to(bot) == [1]
    assert bot.send_message.await_args_list[0].kwargs["reply_markup"] is not None
    assert store.get(1).step == AWAITING_ANSWER


async def test_on_message_parses_envelope(listener, bot):
    await listener.on_message(json.dumps({"event": "team_kicked", "data": {"teamId": 100}}))
    await listener.on_message("not json")
    await listener.on_message(json.dumps({"event": "something_else", "data": {}}))
    assert sent_to(bot) == [1]


class FakeConnection:
    def __init__(self, messages):
        self.messages = messages

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for message in self.messages:
            yield message


async def test_listener_survives_api_outage(listener, bot, api, monkeypatch):
    api.get_game_state.side_effect = httpx.ConnectError("api down")
    connects = []

    def connect(url):
        connects.append(url)
        if len(connects) > 1:
            raise asyncio.CancelledError()
        return FakeConnection([
            json.dumps({"event": "slide_changed", "data": {"quizId": 10, "questionId": 5, "slide": "timer"}}),
            json.dumps({"event": "team_kicked", "data": {"teamId": 100}}),
        ])

    monkeypatch.setattr(ws_listener.websockets, "connect", connect)
    monkeypatch.setattr(ws_listener.settings, "WS_RECONNECT_SEC", 0)

    with pytest.raises(asyncio.CancelledError):
        await listener.run("ws://quiz.test/ws")

    # the failing timer event did not stop the kick notice after it
    assert sent_to(bot) == [1]
    assert len(connects) == 2


async def test_api_client_turns_transport_errors_into_api_errors():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = QuizApiClient("http://quiz.test")
    client.client = httpx.AsyncClient(base_url="http://quiz.test", transport=httpx.MockTransport(refuse))
    with pytest.raises(ApiError) as exc_info:
        await client.get_game_state(10)
    assert exc_info.value.status == 0
    await client.close()


async def test_remind_records_option_count(listener, store):
    await listener.handle_event("remind", {"quizId": 10, "teams": [{"teamId": 100, "telegramChatId": 1}]})
    assert store.get(1).option_count == 4
