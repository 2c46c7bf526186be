import hmac

import bcrypt
from flask import current_app

def hash_password(plain_password: str) -> str:
    if not isinstance(plain_password, str) or len(plain_password) == 0:
        raise ValueError("Password must be a non-empty string")

    # bcrypt expects bytes
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), salt)
    return hashed.decode("utf-8")

def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8")
        )
    except ValueError:
        # malformed hash
        return False

def doctor_auth_configured() -> bool:
    return bool(current_app.config.get("DOCTOR_PASSWORD_HASH") or current_app.config.get("DOCTOR_PASSWORD"))

def verify_doctor_password(plain_password) -> bool:
    """
    Checks against DOCTOR_PASSWORD_HASH (bcrypt) when set, else DOCTOR_PASSWORD.
    """
    if not isinstance(plain_password, str):
        return False
    plain_password = plain_password.strip()

    password_hash = current_app.config.get("DOCTOR_PASSWORD_HASH")
    if password_hash:
        return verify_password(plain_password, password_hash)

    expected = (current_app.config.get("DOCTOR_PASSWORD") or "").strip()
    if not expected or not plain_password:
        return False
    return hmac.compare_digest(plain_password.encode("utf-8"), expected.encode("utf-8"))
