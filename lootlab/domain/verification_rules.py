"""One-time code rules: limits, windows, code format and the email body."""

import secrets
from datetime import datetime, timedelta

CODE_LENGTH = 6
CODE_TTL = timedelta(minutes=10)

ISSUE_WINDOW = timedelta(hours=1)
MAX_CODES_PER_EMAIL = 3
MAX_CODES_PER_ORIGIN = 5

ATTEMPT_WINDOW = timedelta(minutes=5)
MAX_ROWS_PER_ATTEMPT_WINDOW = 5

VERIFICATION_SUBJECT = "Your Verification Code"


def normalize_email(email: str) -> str:
    """Limits and lookups are keyed on the trimmed, lower-cased address."""
    return email.strip().lower()


def is_plausible_email(email: str) -> bool:
    return bool(email) and "@" in email


def generate_code() -> str:
    """Uniformly random 6-digit code, leading zeros kept."""
    return f"{secrets.randbelow(10 ** CODE_LENGTH):0{CODE_LENGTH}d}"


def expiry_for(issued_at: datetime) -> datetime:
    return issued_at + CODE_TTL


def email_over_limit(recent_codes: int) -> bool:
    return recent_codes >= MAX_CODES_PER_EMAIL


def origin_over_limit(recent_codes: int) -> bool:
    return recent_codes >= MAX_CODES_PER_ORIGIN


def attempts_over_limit(recent_rows: int) -> bool:
    return recent_rows > MAX_ROWS_PER_ATTEMPT_WINDOW


def render_verification_email(code: str) -> str:
    minutes = int(CODE_TTL.total_seconds() // 60)
    return f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
          <h1 style="color: #333; text-align: center;">Email Verification</h1>
          <p style="color: #666; font-size: 16px;">Thank you for signing up! Your verification code is:</p>
          <div style="background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); padding: 20px; border-radius: 10px; text-align: center; margin: 30px 0;">
            <h2 style="color: white; font-size: 36px; letter-spacing: 8px; margin: 0;">{code}</h2>
          </div>
          <p style="color: #666; font-size: 14px;">This code will expire in {minutes} minutes.</p>
          <p style="color: #999; font-size: 12px; margin-top: 30px;">If you didn't request this code, please ignore this email.</p>
        </div>
    """
