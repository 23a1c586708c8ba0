import logging

from telegram import Update
from telegram.ext import ContextTypes

from bot.api_client import ApiError, api
from bot.keyboards import answer_letters, captain_keyboard, quiz_picker
from bot.state import AWAITING_ANSWER, AWAITING_NAME, ChatState, REGISTERED, store

logger = logging.getLogger(__name__)

CLOSED = "Answers are closed for now, wait for the next question."


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    store.delete(update.effective_chat.id)
    await update.message.reply_text(
        "👋 Welcome to quiz night! Register your team to play.",
        reply_markup=captain_keyboard(),
    )


async def choose_captain(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    await query.answer()
    chat_id = update.effective_chat.id

    try:
        quizzes = await api.get_active_quizzes()
    except ApiError:
        logger.exception("Could not load active quizzes")
        await query.message.reply_text("The quiz server is not reachable, try again in a minute.")
        return

    if not quizzes:
        await query.message.reply_text("No quiz is running right now. Ask the host for the join code and use /join CODE.")
        return
    if len(quizzes) == 1:
        store.set(chat_id, ChatState(AWAITING_NAME, quiz_id=quizzes[0]["id"]))
        await query.message.reply_text(f"Quiz «{quizzes[0]['title']}». Enter your team name:")
        return
    await query.message.reply_text("Pick your quiz:", reply_markup=quiz_picker(quizzes))


async def pick_quiz(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    await query.answer()
    quiz_id = int(query.data.split(":")[1])
    store.set(update.effective_chat.id, ChatState(AWAITING_NAME, quiz_id=quiz_id))
    await query.message.reply_text("Enter your team name:")


async def join(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if not context.args:
        await update.message.reply_text("Usage: /join CODE")
        return
    try:
        quiz = await api.get_quiz_by_code(context.args[0])
    except ApiError as e:
        if e.status == 404:
            await update.message.reply_text("No quiz with that code. Check it and try again.")
        else:
            logger.warning("Join by code failed: %s", e)
            await update.message.reply_text("The quiz server is not reachable, try again in a minute.")
        return
    store.set(update.effective_chat.id, ChatState(AWAITING_NAME, quiz_id=quiz["id"]))
    await update.message.reply_text(f"Quiz «{quiz['title']}». Enter your team name:")


async def _submit(update: Update, state: ChatState, question_id: int, answer: str) -> str:
    """Send one answer to the API and return the text to show the captain."""
    chat_id = update.effective_chat.id
    try:
        await api.submit_answer(question_id, state.team_id, answer)
    except ApiError as e:
        logger.warning("Answer from chat %s rejected: %s", chat_id, e)
        if e.status == 400:
            return f"Answer not accepted: {e.message}"
        return "Could not send the answer, try again."
    store.answered(chat_id)
    return f"Answer accepted: {answer} ✅"


async def _current_question(state: ChatState):
    """Question id, type and option count when answers are open according to the server, else None."""
    try:
        game = await api.get_game_state(state.quiz_id)
    except ApiError:
        return None
    open_slide = game.get("currentSlide") in ("question", "timer")
    if game.get("status") != "playing" or not game.get("currentQuestionId") or not open_slide:
        return None
    question = game.get("question") or {}
    return game["currentQuestionId"], question.get("questionType"), len(question.get("options") or [])


async def answer_button(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    letter = query.data.split(":")[1]
    chat_id = update.effective_chat.id
    state = store.get(chat_id)

    if state.step == REGISTERED:
        current = await _current_question(state)
        if current:
            store.await_answer(chat_id, *current)
            state = store.get(chat_id)

    if state.step != AWAITING_ANSWER:
        await query.answer(text=CLOSED)
        return

    reply = await _submit(update, state, state.question_id, letter)
    await query.answer(text=reply)
    await query.message.reply_text(reply)


async def text_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    chat_id = update.effective_chat.id
    text = (update.message.text or "").strip()
    state = store.get(chat_id)

    if state.step == AWAITING_NAME:
        if not 1 <= len(text) <= 50:
            await update.message.reply_text("The name must be 1 to 50 characters. Try again:")
            return
        try:
            team = await api.register_team(state.quiz_id, text, chat_id)
        except ApiError:
            logger.exception("Team registration failed for chat %s", chat_id)
            await update.message.reply_text("Registration failed. Try again:")
            return
        store.set(chat_id, ChatState(REGISTERED, quiz_id=state.quiz_id, team_id=team["id"]))
        await update.message.reply_text(f"Team «{text}» is registered! ✅ Wait for the quiz to start.")
        return

    if state.step == REGISTERED:
        current = await _current_question(state)
        if not current:
            await update.message.reply_text("The quiz has not started yet, or wait for the next question.")
            return
        store.await_answer(chat_id, *current)
        state = store.get(chat_id)

    if state.step == AWAITING_ANSWER:
        if state.question_type != "text":
            text = text.upper()
            letters = answer_letters(state.option_count)
            if text not in letters:
                await update.message.reply_text(f"Send a letter: {', '.join(letters[:-1])} or {letters[-1]}")
                return
        await update.message.reply_text(await _submit(update, state, state.question_id, text))
        return

    await update.message.reply_text("Send /start to begin.")
