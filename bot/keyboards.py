from typing import List, Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

ANSWER_LABELS = ["A", "B", "C", "D", "E", "F", "G", "H"]


def captain_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([[InlineKeyboardButton("🧑‍✈️ I'm the team captain", callback_data="role:captain")]])


def quiz_picker(quizzes: List[dict]) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(q["title"], callback_data=f"pick_quiz:{q['id']}")] for q in quizzes]
    )


def answer_letters(option_count: int) -> List[str]:
    """Letters a captain may send; a choice question without options still takes A to D."""
    if 2 <= option_count <= len(ANSWER_LABELS):
        return ANSWER_LABELS[:option_count]
    return ANSWER_LABELS[:4]


def answer_keyboard(option_count: int) -> Optional[InlineKeyboardMarkup]:
    """Two letters per row, or None when the question has no usable options."""
    if not 2 <= option_count <= len(ANSWER_LABELS):
        return None
    letters = ANSWER_LABELS[:option_count]
    rows = [
        [InlineKeyboardButton(letter, callback_data=f"answer:{letter}") for letter in letters[i:i + 2]]
        for i in range(0, len(letters), 2)
    ]
    return InlineKeyboardMarkup(rows)


def format_question(question: dict) -> str:
    options = question.get("options") or []
    lines = ["❓ Question", "", question.get("text", "")]
    if options:
        lines.append("")
        lines.extend(f"{ANSWER_LABELS[i]}) {opt}" for i, opt in enumerate(options[:len(ANSWER_LABELS)]))
    lines.append("")
    if question.get("questionType") == "text":
        lines.append("Send your answer as a message:")
    elif 2 <= len(options) <= len(ANSWER_LABELS):
        lines.append("Pick an answer with a button or send the letter:")
    else:
        lines.append("Send the answer letter: " + ", ".join(answer_letters(len(options))))
    return "\n".join(lines)
