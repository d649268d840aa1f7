import os

from dotenv import load_dotenv

load_dotenv()

DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = int(os.getenv("DB_PORT", "5432"))
DB_NAME = os.getenv("DB_NAME", "workshop")
DB_USER = os.getenv("DB_USER", "postgres")
DB_PASS = os.getenv("DB_PASS", "")
DATABASE_URL = os.getenv("DATABASE_URL") or (
    f"postgresql+psycopg2://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)
# empty starts a throwaway server with testing.postgresql
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "")
SQL_ECHO = os.getenv("SQL_ECHO", "").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# utf-8-sig drops the BOM of files saved by spreadsheets
CSV_ENCODING = os.getenv("CSV_ENCODING", "utf-8-sig")
IMPORT_BATCH_SIZE = int(os.getenv("IMPORT_BATCH_SIZE", "500"))
