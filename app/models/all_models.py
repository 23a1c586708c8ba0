# Importing every model registers it on Base.metadata and lets string relationships resolve.
from app.models.admin_db.admin_db import Admin  # noqa: F401
from app.models.quiz_db.quiz_db import Quiz  # noqa: F401
from app.models.quiz_db.question_db import Question  # noqa: F401
from app.models.quiz_db.slide_db import Slide  # noqa: F401
from app.models.team_db.team_db import Team  # noqa: F401
from app.models.answer_db.answer_db import Answer  # noqa: F401
from app.models.game_db.game_state_db import GameState  # noqa: F401
