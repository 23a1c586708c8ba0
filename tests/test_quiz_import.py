import io
import json
import logging
import zipfile
from pathlib import Path

import httpx
import pytest
from docx import Document
from PIL import Image

from app.core.config import settings
from app.core.exceptions import ImportFileError, LLMResponseError
from app.services import quiz_import
from app.services.llm import providers
from app.services.llm.import_prompt import build_import_prompt, parse_import_response
from app.services.llm.providers import LLMImage, Provider


def png(width=40, height=20):
    out = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(out, format="PNG")
    return out.getvalue()


def make_zip(entries):
    out = io.BytesIO()
    with zipfile.ZipFile(out, "w") as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return out.getvalue()


def make_docx(*paragraphs, table=None):
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table:
        grid = document.add_table(rows=1, cols=len(table))
        for cell, text in zip(grid.rows[0].cells, table):
            cell.text = text
    out = io.BytesIO()
    document.save(out)
    return out.getvalue()


DECK = {
    "deck/slide10.png": png(),
    "deck/slide2.png": png(),
    "deck/slide1.JPG": png(),
    "__MACOSX/deck/._slide1.png": b"resource fork",
    "deck/.hidden.png": png(),
    "deck/notes.txt": b"not a slide",
}

PLAN = {
    "demo_slide": 0,
    "questions": [
        {
            "question": "Capital of France?",
            "options": {"B": "Paris", "A": "Rome"},
            "correct": "b",
            "timer_position": "somewhere",
            "slides": {"question": 1, "timer": None, "answer": 2},
            "extra_slides": [7],
        },
    ],
}


def vision_provider(reply, seen, name="Gemini"):
    async def call(prompt, images=None):
        seen.append({"prompt": prompt, "images": images})
        return reply
    return Provider(name, "key", call)


# ---------------------------------------------------------------------------
# Archive, image and document handling
# ---------------------------------------------------------------------------

def test_extract_images_keeps_slides_in_natural_order():
    images = quiz_import.extract_images(make_zip(DECK))
    assert [i.name for i in images] == ["slide1.JPG", "slide2.png", "slide10.png"]
    assert images[0].ext == ".jpg"


def test_extract_images_rejects_non_zip():
    with pytest.raises(ImportFileError):
        quiz_import.extract_images(b"definitely not a zip")


def test_shrink_image_caps_width_as_jpeg():
    image = quiz_import.ExtractedImage(name="wide.png", data=png(2048, 1024), ext=".png")
    shrunk = quiz_import.shrink_image(image)
    assert shrunk.mime_type == "image/jpeg"
    assert Image.open(io.BytesIO(shrunk.data)).size == (1024, 512)


def test_unreadable_image_is_sent_unchanged():
    image = quiz_import.ExtractedImage(name="broken.png", data=b"\x89PNG broken", ext=".png")
    shrunk = quiz_import.shrink_image(image)
    assert shrunk.data == b"\x89PNG broken"
    assert shrunk.mime_type == "image/png"


def test_docx_text_reads_paragraphs_and_tables():
    text = quiz_import.docx_text(make_docx("1. Capital of France?", "", "Paris", table=["Answer", "B"]))
    assert text.splitlines() == ["1. Capital of France?", "Paris", "Answer", "B"]


def test_docx_without_text_or_not_a_docx():
    with pytest.raises(ImportFileError, match="No text"):
        quiz_import.docx_text(make_docx())
    with pytest.raises(ImportFileError, match="not a valid DOCX"):
        quiz_import.docx_text(b"plain bytes")


# ---------------------------------------------------------------------------
# Provider reply
# ---------------------------------------------------------------------------

def test_parse_import_response_normalises_reply():
    plan = parse_import_response("```json\n" + json.dumps(PLAN) + "\n```")
    question = plan.questions[0]
    assert question.options == ["Rome", "Paris"]
    assert question.timer_position == "center"
    assert question.time_limit_sec == 30
    assert question.slides.question == 1
    assert plan.demo_slide == 0


def test_parse_import_response_rejects_bad_replies():
    with pytest.raises(LLMResponseError):
        parse_import_response("I see some slides")
    with pytest.raises(LLMResponseError):
        parse_import_response('{"questions": []}')
    with pytest.raises(LLMResponseError):
        parse_import_response('{"questions": [{"question_type": "essay"}]}')


def test_import_prompt_lists_files_and_document():
    prompt = build_import_prompt(["a.png", "b.png"], docx_text="Capital of France?")
    assert "[0] a.png, [1] b.png" in prompt
    assert "Capital of France?" in prompt
    assert '"bottom-right"' in prompt
    assert "question document" not in build_import_prompt(["a.png"])


def test_preview_maps_indices_to_urls():
    urls = ["/api/media/0.png", "/api/media/1.png", "/api/media/2.png"]
    preview = quiz_import.to_preview(parse_import_response(json.dumps(PLAN)), urls)

    item = preview.questions[0]
    assert item.order_num == 1
    assert item.correct_answer == "B"
    assert item.slides.question == urls[1]
    # missing timer slide reuses the question slide
    assert item.slides.timer == urls[1]
    assert item.slides.answer == urls[2]
    # index 7 points past the deck
    assert item.slides.extra == []
    assert preview.demo_image_url == urls[0]
    assert preview.rules_image_url is None


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

def test_import_zip_returns_preview(admin_client, make_quiz, monkeypatch):
    quiz = make_quiz()
    seen = []
    monkeypatch.setattr(quiz_import, "get_vision_providers", lambda: [vision_provider(json.dumps(PLAN), seen)])

    response = admin_client.post(
        f"/api/quizzes/{quiz['id']}/import-zip",
        files={
            "file": ("deck.zip", make_zip(DECK), "application/zip"),
            "docx": ("questions.docx", make_docx("Capital of France? Paris"), "application/octet-stream"),
        },
    )
    assert response.status_code == 200, response.text
    body = response.json()

    assert len(seen[0]["images"]) == 3
    assert [i.name for i in seen[0]["images"]] == ["slide1.JPG", "slide2.png", "slide10.png"]
    assert "Capital of France? Paris" in seen[0]["prompt"]

    item = body["questions"][0]
    assert item["text"] == "Capital of France?"
    assert item["correctAnswer"] == "B"
    assert item["slides"]["question"] == item["slides"]["timer"]
    assert body["demoImageUrl"].startswith("/api/media/")
    stored = Path(settings.MEDIA_DIR) / item["slides"]["answer"].rsplit("/", 1)[-1]
    assert stored.read_bytes() == DECK["deck/slide10.png"]


def test_import_without_llm_keys_gives_one_question_per_slide(admin_client, make_quiz):
    quiz = make_quiz()
    response = admin_client.post(
        f"/api/quizzes/{quiz['id']}/import-zip",
        files={"file": ("deck.zip", make_zip(DECK), "application/zip")},
    )
    assert response.status_code == 200, response.text
    questions = response.json()["questions"]
    assert [q["orderNum"] for q in questions] == [1, 2, 3]
    assert all(q["slides"]["question"] == q["slides"]["timer"] for q in questions)
    assert questions[0]["options"] == ["", "", "", ""]


def test_import_with_chosen_model(admin_client, make_quiz, monkeypatch):
    quiz = make_quiz()
    seen_gemini, seen_pixtral = [], []
    monkeypatch.setattr(quiz_import, "get_vision_providers", lambda: [
        vision_provider("not json", seen_gemini),
        vision_provider(json.dumps(PLAN), seen_pixtral, name="Pixtral"),
    ])
    files = {"file": ("deck.zip", make_zip(DECK), "application/zip")}

    response = admin_client.post(f"/api/quizzes/{quiz['id']}/import-zip", files=files, data={"model": "Pixtral"})
    assert response.status_code == 200
    assert seen_gemini == [] and len(seen_pixtral) == 1

    response = admin_client.post(f"/api/quizzes/{quiz['id']}/import-zip", files=files, data={"model": "Nope"})
    assert response.status_code == 400
    assert "Unknown model" in response.json()["error"]

    # a chosen model that fails is not replaced by the one-per-slide plan
    response = admin_client.post(f"/api/quizzes/{quiz['id']}/import-zip", files=files, data={"model": "Gemini"})
    assert response.status_code == 502


def test_import_zip_rejects_bad_uploads(admin_client, make_quiz, monkeypatch):
    quiz = make_quiz()
    url = f"/api/quizzes/{quiz['id']}/import-zip"

    response = admin_client.post(url, files={"file": ("deck.zip", make_zip({"notes.txt": b"x"}), "application/zip")})
    assert response.status_code == 400
    assert "No images" in response.json()["error"]

    response = admin_client.post(url, files={"file": ("deck.zip", b"not a zip", "application/zip")})
    assert response.status_code == 400

    monkeypatch.setattr(settings, "IMPORT_MAX_MB", 0)
    response = admin_client.post(url, files={"file": ("deck.zip", make_zip(DECK), "application/zip")})
    assert response.status_code == 400
    assert "larger than 0 MB" in response.json()["error"]

    assert admin_client.post("/api/quizzes/999/import-zip", files={"file": ("d.zip", b"x", "application/zip")}).status_code == 404


def test_import_needs_admin(client):
    assert client.post("/api/quizzes/1/import-zip", files={"file": ("d.zip", b"x", "application/zip")}).status_code == 401
    assert client.post("/api/quizzes/1/import-save", json={"questions": []}).status_code == 401


def test_import_save_appends_questions_and_slides(admin_client, make_quiz, make_question):
    quiz = make_quiz()
    make_question(quiz["id"])
    preview = {
        "demoImageUrl": "/api/media/demo.png",
        "questions": [
            {
                "orderNum": 1,
                "text": "Which film is this?",
                "questionType": "text",
                "options": [],
                "correctAnswer": "Jaws",
                "timerPosition": "left",
                "slides": {
                    "videoWarning": "/api/media/warn.png",
                    "question": "/api/media/q.png",
                    "timer": "/api/media/q.png",
                    "answer": "/api/media/a.png",
                    "extra": ["/api/media/joke.png"],
                },
            },
            {"orderNum": 2, "text": "2 + 2?", "options": ["3", "4"], "correctAnswer": "b"},
        ],
    }

    response = admin_client.post(f"/api/quizzes/{quiz['id']}/import-save", json=preview)
    assert response.status_code == 201
    assert response.json() == {"created": 2}

    questions = admin_client.get(f"/api/quizzes/{quiz['id']}/questions").json()
    assert [q["orderNum"] for q in questions] == [1, 2, 3]

    film = questions[1]
    assert film["questionType"] == "text"
    assert film["timerPosition"] == "left"
    assert [s["type"] for s in film["slides"]] == ["video_warning", "question", "timer", "answer", "extra"]
    assert film["slides"][0]["imageUrl"] == "/api/media/warn.png"

    sums = questions[2]
    assert sums["correctAnswer"] == "B"
    assert [s["type"] for s in sums["slides"]] == ["question", "timer", "answer"]
    assert all(s["imageUrl"] is None for s in sums["slides"])

    assert admin_client.get(f"/api/quizzes/{quiz['id']}").json()["demoImageUrl"] == "/api/media/demo.png"


def test_import_save_needs_questions(admin_client, make_quiz):
    quiz = make_quiz()
    response = admin_client.post(f"/api/quizzes/{quiz['id']}/import-save", json={"questions": []})
    assert response.status_code == 400
    assert response.json()["error"] == "No questions provided"


# ---------------------------------------------------------------------------
# Usage log
# ---------------------------------------------------------------------------

class Collect(logging.Handler):
    def __init__(self):
        super().__init__()
        self.lines = []

    def emit(self, record):
        self.lines.append(json.loads(record.getMessage()))


async def test_chat_completion_sends_images_and_logs_usage(monkeypatch):
    sent = []

    def handler(request):
        sent.append(json.loads(request.content))
        return httpx.Response(200, json={
            "choices": [{"message": {"content": "{}"}}],
            "usage": {"prompt_tokens": 120, "completion_tokens": 30, "total_tokens": 150},
        })

    real_client = httpx.AsyncClient
    monkeypatch.setattr(providers.httpx, "AsyncClient", lambda **kw: real_client(transport=httpx.MockTransport(handler), **kw))
    monkeypatch.setattr(settings, "GROQ_API_KEY", "key")
    usage = Collect()
    logging.getLogger("llm.usage").addHandler(usage)
    try:
        await providers.ask_groq("Group these slides", [LLMImage(b"x", "image/png", "a.png")])
    finally:
        logging.getLogger("llm.usage").removeHandler(usage)

    payload = sent[0]
    assert payload["model"] == settings.GROQ_VISION_MODEL
    content = payload["messages"][0]["content"]
    assert content[0] == {"type": "text", "text": "Group these slides"}
    assert content[1]["image_url"]["url"] == "data:image/png;base64,eA=="

    line = usage.lines[0]
    assert line["provider"] == "Groq"
    assert line["model"] == settings.GROQ_VISION_MODEL
    assert (line["prompt_tokens"], line["completion_tokens"], line["total_tokens"]) == (120, 30, 150)
    assert line["images"] == 1
