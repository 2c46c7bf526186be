from flask import current_app

from scheduling.clock import Clock
from scheduling.hours import WorkingHoursPolicy


def get_clock() -> Clock:
    return current_app.extensions["clock"]


def get_working_hours() -> WorkingHoursPolicy:
    return current_app.extensions["working_hours"]


def get_calendar():
    return current_app.extensions["calendar"]


def get_notifier():
    return current_app.extensions["notifier"]


def get_dispatcher():
    return current_app.extensions["side_effects"]
