from unittest.mock import AsyncMock, MagicMock

import pytest

from bot import handlers
from bot.api_client import ApiError
from bot.state import AWAITING_ANSWER, AWAITING_NAME, REGISTERED, ChatState, ConversationStore

CHAT_ID = 42


@pytest.fixture
def store(monkeypatch):
    store = ConversationStore()
    monkeypatch.setattr(handlers, "store", store)
    return store


@pytest.fixture
def api(monkeypatch):
    api = MagicMock()
    api.get_active_quizzes = AsyncMock(return_value=[])
    api.get_quiz_by_code = AsyncMock()
    api.register_team = AsyncMock(return_value={"id": 7, "name": "Owls"})
    api.submit_answer = AsyncMock(return_value={"id": 1})
    api.get_game_state = AsyncMock()
    monkeypatch.setattr(handlers, "api", api)
    return api


def message_update(text=None):
    update = MagicMock()
    update.effective_chat.id = CHAT_ID
    update.message.text = text
    update.message.reply_text = AsyncMock()
    return update


def callback_update(data):
    update = MagicMock()
    update.effective_chat.id = CHAT_ID
    update.callback_query.data = data
    update.callback_query.answer = AsyncMock()
    update.callback_query.message.reply_text = AsyncMock()
    return update


def last_reply(update):
    return update.message.reply_text.await_args.args[0]


async def test_start_resets_conversation(store, api):
    store.set(CHAT_ID, ChatState(REGISTERED, quiz_id=1, team_id=2))
    update = message_update("/start")
    await handlers.start(update, MagicMock())
    assert store.get(CHAT_ID).step == "idle"
    assert update.message.reply_text.await_args.kwargs["reply_markup"] is not None


async def test_captain_with_single_active_quiz_asks_for_name(store, api):
    api.get_active_quizzes.return_value = [{"id": 3, "title": "Friday"}]
    update = callback_update("role:captain")
    await handlers.choose_captain(update, MagicMock())
    assert store.get(CHAT_ID) == ChatState(AWAITING_NAME, quiz_id=3)


async def test_captain_with_several_quizzes_gets_picker(store, api):
    api.get_active_quizzes.return_value = [{"id": 3, "title": "Friday"}, {"id": 4, "title": "Saturday"}]
    update = callback_update("role:captain")
    await handlers.choose_captain(update, MagicMock())
    assert store.get(CHAT_ID).step == "idle"
    assert update.callback_query.message.reply_text.await_args.kwargs["reply_markup"] is not None

    pick = callback_update("pick_quiz:4")
    await handlers.pick_quiz(pick, MagicMock())
    assert store.get(CHAT_ID) == ChatState(AWAITING_NAME, quiz_id=4)


async def test_join_by_code(store, api):
    api.get_quiz_by_code.return_value = {"id": 9, "title": "Trivia"}
    context = MagicMock()
    context.args = ["abc123"]
    await handlers.join(message_update("/join abc123"), context)
    assert store.get(CHAT_ID).quiz_id == 9

    api.get_quiz_by_code.side_effect = ApiError(404, "Quiz not found")
    update = message_update("/join nope")
    context.args = ["nope"]
    store.delete(CHAT_ID)
    await handlers.join(update, context)
    assert "No quiz" in last_reply(update)
    assert store.get(CHAT_ID).step == "idle"


async def test_team_name_registers(store, api):
    store.set(CHAT_ID, ChatState(AWAITING_NAME, quiz_id=3))
    await handlers.text_message(message_update("  Owls "), MagicMock())
    api.register_team.assert_awaited_once_with(3, "Owls", CHAT_ID)
    assert store.get(CHAT_ID) == ChatState(REGISTERED, quiz_id=3, team_id=7)


async def test_team_name_too_long_is_rejected(store, api):
    store.set(CHAT_ID, ChatState(AWAITING_NAME, quiz_id=3))
    update = message_update("x" * 51)
    await handlers.text_message(update, MagicMock())
    api.register_team.assert_not_awaited()
    assert store.get(CHAT_ID).step == AWAITING_NAME


async def test_letter_answer_is_uppercased(store, api):
    store.set(CHAT_ID, ChatState(AWAITING_ANSWER, quiz_id=3, team_id=7, question_id=11, question_type="choice"))
    update = message_update("b")
    await handlers.text_message(update, MagicMock())
    api.submit_answer.assert_awaited_once_with(11, 7, "B")
    assert "Answer accepted" in last_reply(update)
    assert store.get(CHAT_ID).step == REGISTERED


async def test_non_letter_for_choice_question_is_refused(store, api):
    store.set(CHAT_ID, ChatState(AWAITING_ANSWER, quiz_id=3, team_id=7, question_id=11, question_type="choice"))
    update = message_update("Paris")
    await handlers.text_message(update, MagicMock())
    api.submit_answer.assert_not_awaited()
    assert store.get(CHAT_ID).step == AWAITING_ANSWER


async def test_text_answer_is_sent_as_is(store, api):
    store.set(CHAT_ID, ChatState(AWAITING_ANSWER, quiz_id=3, team_id=7, question_id=12, question_type="text"))
    await handlers.text_message(message_update("red, blue"), MagicMock())
    api.submit_answer.assert_awaited_once_with(12, 7, "red, blue")


async def test_rejected_answer_keeps_waiting(store, api):
    api.submit_answer.side_effect = ApiError(400, "Invalid answer letter")
    store.set(CHAT_ID, ChatState(AWAITING_ANSWER, quiz_id=3, team_id=7, question_id=11, question_type="choice"))
    update = message_update("D")
    await handlers.text_message(update, MagicMock())
    assert last_reply(update) == "Answer not accepted: Invalid answer letter"
    assert store.get(CHAT_ID).step == AWAITING_ANSWER


async def test_registered_captain_answers_open_question(store, api):
    api.get_game_state.return_value = {
        "status": "playing",
        "currentQuestionId": 11,
        "currentSlide": "timer",
        "question": {"questionType": "choice"},
    }
    store.set(CHAT_ID, ChatState(REGISTERED, quiz_id=3, team_id=7))
    update = callback_update("answer:C")
    await handlers.answer_button(update, MagicMock())
    api.submit_answer.assert_awaited_once_with(11, 7, "C")
    update.callback_query.message.reply_text.assert_awaited_once()


async def test_button_after_answers_closed(store, api):
    api.get_game_state.return_value = {"status": "playing", "currentQuestionId": 11, "currentSlide": "answer"}
    store.set(CHAT_ID, ChatState(REGISTERED, quiz_id=3, team_id=7))
    update = callback_update("answer:A")
    await handlers.answer_button(update, MagicMock())
    api.submit_answer.assert_not_awaited()
    assert update.callback_query.answer.await_args.kwargs["text"] == handlers.CLOSED


async def test_unknown_chat_is_told_to_start(store, api):
    update = message_update("hello")
    await handlers.text_message(update, MagicMock())
    assert "/start" in last_reply(update)


async def test_letter_prompt_follows_option_count(store, api):
    store.set(CHAT_ID, ChatState(AWAITING_ANSWER, quiz_id=3, team_id=7, question_id=11, question_type="choice", option_count=3))
    update = message_update("D")
    await handlers.text_message(update, MagicMock())
    api.submit_answer.assert_not_awaited()
    assert last_reply(update) == "Send a letter: A, B or C"

    six = message_update("f")
    store.await_answer(CHAT_ID, 12, "choice", 6)
    await handlers.text_message(six, MagicMock())
    api.submit_answer.assert_awaited_once_with(12, 7, "F")


async def test_join_when_server_is_down(store, api):
    api.get_quiz_by_code.side_effect = ApiError(0, "ConnectError: refused")
    context = MagicMock()
    context.args = ["ABC123"]
    update = message_update("/join ABC123")
    await handlers.join(update, context)
    assert "not reachable" in last_reply(update)
    assert store.get(CHAT_ID).step == "idle"
