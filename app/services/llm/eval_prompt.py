import json
import re
from typing import Dict, List

from pydantic import BaseModel, ValidationError

from app.core.exceptions import LLMResponseError

_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


class TeamAnswer(BaseModel):
    team_id: int
    answer_text: str


class EvaluationResult(BaseModel):
    team_id: int
    score: float


def build_eval_prompt(correct_answers: List[str], team_answers: List[TeamAnswer], weight: float) -> str:
    teams = [{"teamId": t.team_id, "answer": t.answer_text} for t in team_answers]
    numbered = "\n".join(f"{i}. {answer}" for i, answer in enumerate(correct_answers, start=1))
    count = len(correct_answers)

    return f"""
You are grading team answers in a pub quiz. The question is free text.

Correct answers ({count} in total):
{numbered}

Maximum score for the question: {weight}

Team answers:
{json.dumps(teams, ensure_ascii=False, indent=2)}

For every team, count how many of the correct answers it named.
Accept synonyms, typos and a different word order when the meaning matches.
Count each correct answer at most once per team.

score = (matched / {count}) * {weight}, rounded to 1 decimal place.

Reply with JSON only (no markdown, no explanations):
{{
  "results": [
    {{ "teamId": 123, "matched": 2, "score": 1.5 }}
  ]
}}
""".strip()


def decode_json_reply(raw: str) -> Dict:
    """Strip Markdown code fences and decode. Raises LLMResponseError on anything malformed."""
    cleaned = _FENCE.sub("", raw or "").strip()
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"Provider returned invalid JSON: {e.msg}", details={"raw": cleaned[:200]})
    if not isinstance(parsed, dict):
        raise LLMResponseError("Provider returned JSON that is not an object")
    return parsed


def parse_eval_response(raw: str) -> Dict:
    return decode_json_reply(raw)


def to_results(parsed: Dict, weight: float) -> List[EvaluationResult]:
    try:
        rows = parsed["results"]
        results = [EvaluationResult(team_id=row["teamId"], score=row["score"]) for row in rows]
    except (KeyError, TypeError, ValidationError) as e:
        raise LLMResponseError(f"Provider returned an unexpected shape: {e}")

    for result in results:
        result.score = round(min(max(result.score, 0.0), weight), 1)
    return results
