"""Run the mindtrace API server. Load .env before anything else."""
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env")

import uvicorn
from mindtrace.utils.config import API_HOST, API_PORT

if __name__ == "__main__":
    uvicorn.run(
        "mindtrace.api.server:app",
        host=API_HOST,
        port=API_PORT,
        reload=True,
    )
