"""Slide import: a ZIP of exported slide images (plus an optional DOCX with the questions)
becomes an editable preview of questions, grouped by an LLM.

Images are stored under MEDIA_DIR right away so the preview can show them; nothing
touches the database until the host saves the preview.
"""

import io
import logging
import re
import zipfile
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import List, Optional

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from fastapi.concurrency import run_in_threadpool
from PIL import Image, ImageOps

from app.core.exceptions import ImportFileError, LLMUnavailableError
from app.schemas.quiz_import.import_base import ImportPreview, ImportPreviewItem, ImportSlides
from app.services.llm.fallback import ask_with_fallback
from app.services.llm.import_prompt import ImportPlan, PlannedQuestion, build_import_prompt, parse_import_response
from app.services.llm.providers import LLMImage, get_vision_providers
from app.services.media_store import store_bytes

logger = logging.getLogger(__name__)

IMAGE_EXTS = (".png", ".jpg", ".jpeg", ".webp")
MIME_TYPES = {".png": "image/png", ".jpg": "image/jpeg", ".jpeg": "image/jpeg", ".webp": "image/webp"}
# wide enough to read slide text, small enough to keep prompts cheap
LLM_IMAGE_WIDTH = 1024


@dataclass
class ExtractedImage:
    name: str
    data: bytes
    ext: str


def _natural_key(name: str):
    return [int(part) if part.isdigit() else part for part in re.split(r"(\d+)", name.lower())]


def extract_images(zip_bytes: bytes) -> List[ExtractedImage]:
    """Slide images of the archive in natural file-name order (slide2 before slide10)."""
    try:
        archive = zipfile.ZipFile(io.BytesIO(zip_bytes))
    except zipfile.BadZipFile:
        raise ImportFileError("File is not a valid ZIP archive")

    images = []
    with archive:
        for entry in archive.infolist():
            if entry.is_dir() or "__MACOSX" in entry.filename:
                continue
            name = PurePosixPath(entry.filename).name
            if name.startswith(".") or name.startswith("__"):
                continue
            ext = PurePosixPath(name).suffix.lower()
            if ext not in IMAGE_EXTS:
                continue
            images.append(ExtractedImage(name=name, data=archive.read(entry), ext=ext))

    images.sort(key=lambda image: _natural_key(image.name))
    return images


def shrink_image(image: ExtractedImage) -> LLMImage:
    """JPEG copy at most LLM_IMAGE_WIDTH wide. Unreadable images are passed through as they are."""
    try:
        with Image.open(io.BytesIO(image.data)) as im:
            im = ImageOps.exif_transpose(im).convert("RGB")
            if im.width > LLM_IMAGE_WIDTH:
                height = round(im.height * LLM_IMAGE_WIDTH / im.width)
                im = im.resize((LLM_IMAGE_WIDTH, height), Image.LANCZOS)
            out = io.BytesIO()
            im.save(out, format="JPEG", quality=80)
    except (OSError, Image.DecompressionBombError) as e:
        logger.warning("Could not shrink %s, sending it unchanged: %s", image.name, e)
        return LLMImage(data=image.data, mime_type=MIME_TYPES[image.ext], name=image.name)
    return LLMImage(data=out.getvalue(), mime_type="image/jpeg", name=image.name)


def docx_text(docx_bytes: bytes) -> str:
    try:
        document = Document(io.BytesIO(docx_bytes))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError):
        raise ImportFileError("File is not a valid DOCX document")

    parts = [p.text.strip() for p in document.paragraphs if p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            for cell in row.cells:
                if cell.text.strip():
                    parts.append(cell.text.strip())

    if not parts:
        raise ImportFileError("No text found in the DOCX file")
    return "\n".join(parts)


@dataclass
class PreparedSlides:
    names: List[str]
    urls: List[str]
    llm_images: List[LLMImage]
    document: Optional[str]


def prepare_slides(zip_bytes: bytes, docx_bytes: Optional[bytes] = None) -> PreparedSlides:
    images = extract_images(zip_bytes)
    if not images:
        raise ImportFileError("No images found in the ZIP archive")
    document = docx_text(docx_bytes) if docx_bytes else None

    urls = [store_bytes(image.data, image.ext) for image in images]
    return PreparedSlides(
        names=[image.name for image in images],
        urls=urls,
        llm_images=[shrink_image(image) for image in images],
        document=document,
    )


def one_question_per_slide(count: int) -> ImportPlan:
    return ImportPlan(questions=[
        PlannedQuestion(options=["", "", "", ""], slides={"question": i}) for i in range(count)
    ])


def _slide_url(urls: List[str], index: Optional[int]) -> Optional[str]:
    # providers sometimes point past the last slide
    return urls[index] if isinstance(index, int) and 0 <= index < len(urls) else None


def _item_from_plan(order_num: int, planned: PlannedQuestion, urls: List[str]) -> ImportPreviewItem:
    def url(index):
        return _slide_url(urls, index)

    question_url = url(planned.slides.question)
    timer_url = url(planned.slides.timer)
    # either slide stands in for the other
    timer_url = timer_url or question_url
    question_url = question_url or timer_url

    correct = planned.correct.strip() or "A"
    if planned.question_type == "choice":
        correct = correct.upper()

    return ImportPreviewItem(
        order_num=order_num,
        text=planned.question,
        question_type=planned.question_type,
        options=planned.options,
        correct_answer=correct,
        explanation=planned.explanation,
        time_limit_sec=planned.time_limit_sec,
        timer_position=planned.timer_position,
        slides=ImportSlides(
            video_warning=url(planned.slides.video_warning),
            video_intro=url(planned.slides.video_intro),
            question=question_url,
            timer=timer_url,
            answer=url(planned.slides.answer),
            extra=[u for u in map(url, planned.extra_slides) if u],
        ),
    )


def to_preview(plan: ImportPlan, urls: List[str]) -> ImportPreview:
    return ImportPreview(
        questions=[_item_from_plan(i, planned, urls) for i, planned in enumerate(plan.questions, start=1)],
        demo_image_url=_slide_url(urls, plan.demo_slide),
        rules_image_url=_slide_url(urls, plan.rules_slide),
        thanks_image_url=_slide_url(urls, plan.thanks_slide),
        final_image_url=_slide_url(urls, plan.final_slide),
    )


async def build_preview(zip_bytes: bytes, docx_bytes: Optional[bytes] = None, model: Optional[str] = None) -> ImportPreview:
    """Store the slides and ask the vision providers how they group into questions.

    Without a chosen model, a total provider outage falls back to one question per slide
    so the host can fill the texts in by hand.
    """
    prepared = await run_in_threadpool(prepare_slides, zip_bytes, docx_bytes)
    logger.info("Importing %d slide(s)%s", len(prepared.urls), " with a DOCX" if prepared.document else "")

    try:
        plan = await ask_with_fallback(
            build_import_prompt(prepared.names, prepared.document),
            parse_import_response,
            providers=get_vision_providers(),
            images=prepared.llm_images,
            model=model,
        )
    except LLMUnavailableError as e:
        if model:
            raise
        logger.error("Slide import without LLM grouping: %s", e.message)
        plan = one_question_per_slide(len(prepared.urls))

    return to_preview(plan, prepared.urls)
