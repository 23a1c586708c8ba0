"""In-memory conversation state of every captain chat. Lost on restart."""

from dataclasses import dataclass
from typing import Dict, List, Optional

IDLE = "idle"
AWAITING_NAME = "awaiting_name"
REGISTERED = "registered"
AWAITING_ANSWER = "awaiting_answer"


@dataclass
class ChatState:
    step: str = IDLE
    quiz_id: Optional[int] = None
    team_id: Optional[int] = None
    question_id: Optional[int] = None
    question_type: Optional[str] = None
    option_count: int = 0

    @property
    def is_registered(self) -> bool:
        return self.step in (REGISTERED, AWAITING_ANSWER) and self.team_id is not None


class ConversationStore:

    def __init__(self):
        self._chats: Dict[int, ChatState] = {}

    def get(self, chat_id: int) -> ChatState:
        return self._chats.get(chat_id) or ChatState()

    def set(self, chat_id: int, state: ChatState) -> None:
        self._chats[chat_id] = state

    def delete(self, chat_id: int) -> None:
        self._chats.pop(chat_id, None)

    def clear(self) -> None:
        self._chats.clear()

    def registered(self, quiz_id: Optional[int] = None) -> List[tuple]:
        """(chat_id, state) of every registered captain, optionally for one quiz."""
        return [
            (chat_id, state)
            for chat_id, state in self._chats.items()
            if state.is_registered and (quiz_id is None or state.quiz_id == quiz_id)
        ]

    def chat_for_team(self, team_id: int) -> Optional[int]:
        for chat_id, state in self._chats.items():
            if state.is_registered and state.team_id == team_id:
                return chat_id
        return None

    def await_answer(
        self, chat_id: int, question_id: int, question_type: Optional[str] = None, option_count: int = 0
    ) -> None:
        state = self.get(chat_id)
        self.set(chat_id, ChatState(AWAITING_ANSWER, state.quiz_id, state.team_id, question_id, question_type, option_count))

    def answered(self, chat_id: int) -> None:
        state = self.get(chat_id)
        self.set(chat_id, ChatState(REGISTERED, state.quiz_id, state.team_id))


store = ConversationStore()
