from .email_service import MailSender, SmtpMailSender
from .storage import ImageStorage
from .exchange_state import apply_transition, role_of

__all__ = [
    'MailSender',
    'SmtpMailSender',
    'ImageStorage',
    'apply_transition',
    'role_of',
]
