from __future__ import annotations

# Load the project `.env` early so `os.getenv` consumers (cache store) see it.
from exam_quiz.utils.env import load_project_dotenv

load_project_dotenv()
