from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.database import SessionLocal
from app.models.admin_db.admin_crud import ensure_admin
from app.models.quiz_db.question_db import Question
from app.models.quiz_db.quiz_db import Quiz
from app.models.quiz_db.slide_db import Slide
from app.models.quiz_db.join_code import generate_unique_join_code

DEMO_TITLE = "Demo quiz (edge cases)"

VIDEO_LAYOUT = {"top": 21.3, "left": 25.1, "width": 49.9, "height": 52.7}

demo_questions = [
    {
        # choice with video warning/intro slides
        "text": "Which historical era is known as the age of knights and fair ladies?",
        "options": ["Antiquity", "Middle Ages", "Renaissance", "Modern era"],
        "correct_answer": "B",
        "explanation": "The Middle Ages (5th-15th c.) were the heyday of chivalry and tournaments.",
        "timer_position": "center",
        "slides": [
            {"type": "video_warning", "image_url": "seed/warning.png"},
            {"type": "video_intro", "image_url": "seed/video-question.png",
             "video_url": "seed/video.mp4", "video_layout": VIDEO_LAYOUT},
            {"type": "question", "image_url": "seed/1a.png"},
            {"type": "timer"},
            {"type": "answer", "image_url": "seed/1b.png"},
        ],
    },
    {
        "text": "Name the capitals of France, Germany, Japan and Australia.",
        "question_type": "text",
        "correct_answer": "Paris, Berlin, Tokyo, Canberra",
        "timer_position": "top-right",
    },
    {
        "text": "In which countries is the wedding ring worn on the right hand? (name 2)",
        "question_type": "text",
        "correct_answer": "Russia, Germany",
        "explanation": "In Russia and Germany the ring goes on the right hand, in France on the left.",
        "weight": 3,
        "timer_position": "bottom-left",
        "slides": [
            {"type": "question", "image_url": "seed/1a.png"},
            {"type": "timer"},
            {"type": "answer", "image_url": "seed/1b.png"},
            {"type": "extra", "image_url": "seed/video-answer.png",
             "video_url": "seed/video.mp4", "video_layout": VIDEO_LAYOUT},
        ],
    },
    {
        "text": "How many petals does a classic wedding rose have?",
        "options": ["21", "24", "36", "Depends on the variety"],
        "correct_answer": "D",
        "explanation": "Rose petals range from 5 on wild roses to over 100 on garden varieties.",
        "slides": [
            {"type": "question", "image_url": "seed/1a.png"},
            {"type": "timer"},
            {"type": "answer", "image_url": "seed/1b.png"},
            {"type": "extra", "image_url": "seed/extra-1.png"},
            {"type": "extra", "image_url": "seed/extra-2.png"},
        ],
    },
]


def seed_demo_quiz(db: Session) -> dict:
    """Replace the demo quiz with a fresh copy and return a summary of it."""
    existing = db.query(Quiz).filter(Quiz.title == DEMO_TITLE).all()
    for quiz in existing:
        db.delete(quiz)
    db.flush()

    quiz = Quiz(title=DEMO_TITLE, status="active", join_code=generate_unique_join_code(db))
    for order_num, data in enumerate(demo_questions, start=1):
        slides = data.get("slides") or [{"type": "question"}, {"type": "timer"}, {"type": "answer"}]
        question = Question(
            order_num=order_num,
            text=data["text"],
            options=data.get("options", []),
            correct_answer=data["correct_answer"],
            explanation=data.get("explanation"),
            question_type=data.get("question_type", "choice"),
            timer_position=data.get("timer_position", "center"),
            weight=data.get("weight", 1),
        )
        question.slides = [Slide(sort_order=i, **slide) for i, slide in enumerate(slides)]
        quiz.questions.append(question)

    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    return {
        "quizId": quiz.id,
        "quizTitle": quiz.title,
        "joinCode": quiz.join_code,
        "questionsCount": len(quiz.questions),
    }


def seed_all():
    db: Session = SessionLocal()
    try:
        if settings.ADMIN_USERNAME and settings.ADMIN_PASSWORD:
            ensure_admin(db, settings.ADMIN_USERNAME, settings.ADMIN_PASSWORD)
            print(f"Admin '{settings.ADMIN_USERNAME}' ready")
        result = seed_demo_quiz(db)
        print(f"Seeded '{result['quizTitle']}' with {result['questionsCount']} questions, code {result['joinCode']}")
    finally:
        db.close()


if __name__ == "__main__":
    import app.models.all_models  # noqa: F401

    seed_all()
