from .db import db
from .audit_log import AuditLog
from .doctor_session import DoctorSession
from .ip_rate_limit import IpRateLimit
from .service import Service
from .booking import Booking
from .blocked_range import BlockedRange
from .enquiry import Enquiry
