import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# DEV default secret. Set LMS_SECRET_KEY in any shared deployment.
SECRET_KEY = os.getenv("LMS_SECRET_KEY", "change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE = timedelta(minutes=int(os.getenv("LMS_TOKEN_MINUTES", "60")))

DATABASE_URL = os.getenv("LMS_DATABASE_URL", f"sqlite:///{BASE_DIR}/lms.db")

LOG_LEVEL = os.getenv("LMS_LOG_LEVEL", "INFO")

# Every new teacher starts with these grading periods
DEFAULT_QUARTERS = ("1st Quarter", "2nd Quarter", "3rd Quarter", "4th Quarter")

# Progress dashboard
SCORE_DECIMALS = 2
DATASET_CACHE_SECONDS = 10
FILTERS_CACHE_SECONDS = 20
