from dotenv import load_dotenv
load_dotenv()
import uvicorn

from clinic_fairness.core.config import settings
from clinic_fairness.main import app  # noqa: F401

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
