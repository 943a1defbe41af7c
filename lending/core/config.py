import logging
import os

DATABASE_URL = os.getenv("LENDING_DB", "sqlite:///./lending.db")
LOG_LEVEL = os.getenv("LENDING_LOG", "INFO")

# fixed business configuration
LOAN_LIMIT = int(os.getenv("LENDING_LOAN_LIMIT", "5"))
LOAN_DAYS = int(os.getenv("LENDING_LOAN_DAYS", "14"))

WRITE_RETRIES = int(os.getenv("LENDING_WRITE_RETRIES", "3"))
DB_TIMEOUT = float(os.getenv("LENDING_DB_TIMEOUT", "30"))

logging.basicConfig(level=LOG_LEVEL,
                    format="%(asctime)s %(levelname)s %(name)s - %(message)s")
logger = logging.getLogger("lending")
