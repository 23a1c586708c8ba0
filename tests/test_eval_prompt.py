import pytest

from app.core.exceptions import LLMResponseError
from app.services.llm.eval_prompt import TeamAnswer, build_eval_prompt, parse_eval_response, to_results


def test_parse_plain_json():
    assert parse_eval_response('{"results": []}') == {"results": []}


def test_parse_strips_json_fence():
    raw = '```json\n{"results": [{"teamId": 1, "matched": 1, "score": 0.5}]}\n```'
    assert parse_eval_response(raw)["results"][0]["score"] == 0.5


def test_parse_strips_bare_fence_and_whitespace():
    raw = '  \n```\n{"results": [{"teamId": 7, "score": 1}]}\n```  \n'
    assert parse_eval_response(raw) == {"results": [{"teamId": 7, "score": 1}]}


@pytest.mark.parametrize("raw", ["", "not json", "```json\n{results: }\n```", "[1, 2]"])
def test_parse_rejects_malformed(raw):
    with pytest.raises(LLMResponseError):
        parse_eval_response(raw)


def test_prompt_lists_answers_and_weight():
    prompt = build_eval_prompt(["Red", "Blue"], [TeamAnswer(team_id=3, answer_text="blu, red")], 2)
    assert "1. Red" in prompt
    assert "2. Blue" in prompt
    assert "Maximum score for the question: 2" in prompt
    assert '"teamId": 3' in prompt
    assert '"answer": "blu, red"' in prompt


def test_results_are_rounded_and_clamped():
    parsed = {"results": [
        {"teamId": 1, "score": 0.6666},
        {"teamId": 2, "score": 5},
        {"teamId": 3, "score": -1},
    ]}
    results = to_results(parsed, weight=1)
    assert [(r.team_id, r.score) for r in results] == [(1, 0.7), (2, 1.0), (3, 0.0)]


def test_results_with_wrong_shape_fail():
    with pytest.raises(LLMResponseError):
        to_results({"scores": []}, weight=1)
