from functools import wraps
from flask import g
from scheduling.errors import AuthError
from security.session import get_session_from_request

def load_doctor_session():
    g.doctor_session = get_session_from_request()
    return g.doctor_session

def doctor_required(fn):
    """
    Usage: @doctor_required on admin routes (Bearer / X-Doctor-Token session).
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if load_doctor_session() is None:
            raise AuthError("Unauthorized")
        return fn(*args, **kwargs)
    return wrapper
