from typing import Any, Dict, List, Optional

import httpx

from bot.config import settings


class ApiError(Exception):
    """Non-2xx answer from the quiz API. `status` is the HTTP status code."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"API error {status}: {message}")


class QuizApiClient:

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.client = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout)

    async def close(self):
        await self.client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            # status 0: the API never answered
            raise ApiError(0, f"{type(e).__name__}: {e}") from e
        if response.status_code >= 400:
            try:
                message = response.json().get("error", response.text)
            except ValueError:
                message = response.text
            raise ApiError(response.status_code, str(message)[:200])
        return response.json()

    async def get_active_quizzes(self) -> List[Dict]:
        return await self._request("GET", "/api/quizzes/active")

    async def get_quiz_by_code(self, code: str) -> Dict:
        return await self._request("GET", f"/api/quizzes/by-code/{code}")

    async def register_team(self, quiz_id: int, name: str, telegram_chat_id: Optional[int] = None) -> Dict:
        return await self._request(
            "POST",
            f"/api/quizzes/{quiz_id}/teams",
            json={"name": name, "telegramChatId": telegram_chat_id},
        )

    async def submit_answer(self, question_id: int, team_id: int, answer_text: str) -> Dict:
        return await self._request(
            "POST",
            "/api/answers",
            json={"questionId": question_id, "teamId": team_id, "answerText": answer_text},
        )

    async def get_game_state(self, quiz_id: int) -> Dict:
        return await self._request("GET", f"/api/game/state/{quiz_id}")


api = QuizApiClient(settings.API_URL, timeout=settings.API_TIMEOUT_SEC)
