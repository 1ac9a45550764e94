import os
from dotenv import load_dotenv

load_dotenv()

user = os.getenv("DB_USER", "postgres")
password = os.getenv("DB_PASSWORD", "postgres")
host = os.getenv("DB_HOST", "localhost")
port = os.getenv("DB_PORT", "5432")
db_name = os.getenv("DB_NAME", "lootlab")
pool_size = int(os.getenv("DB_POOL_SIZE", "20"))
max_overflow = int(os.getenv("DB_MAX_OVERFLOW", "20"))

# "postgres" in production, "sqlite" for local development
database_backend = os.getenv("DATABASE_BACKEND", "postgres")
sqlite_path = os.getenv("SQLITE_PATH", "lootlab.sqlite3")

jwt_secret = os.getenv("JWT_SECRET", "")
jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
jwt_audience = os.getenv("JWT_AUDIENCE") or None

resend_api_key = os.getenv("RESEND_API_KEY", "")
resend_from_email = os.getenv("RESEND_FROM_EMAIL", "Crypto Gaming <onboarding@resend.dev>")

# 0 keeps verification codes forever
code_retention_days = int(os.getenv("CODE_RETENTION_DAYS", "0"))

log_level = os.getenv("LOG_LEVEL", "INFO")

if __name__ == "__main__":
    print(user, host, port, db_name, database_backend, sqlite_path)
