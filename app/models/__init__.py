from app.models.brand import Brand
from app.models.mention import Mention
from app.models.prompt_run import PromptRun

__all__ = [
    "Brand",
    "Mention",
    "PromptRun",
]
