from providers.base import MailboxProvider
from providers.gmail_provider import GmailProvider, MailboxAuthError
from providers.parsing import event_from_headers, parse_pdb_subject

__all__ = [
    "MailboxProvider",
    "GmailProvider",
    "MailboxAuthError",
    "event_from_headers",
    "parse_pdb_subject",
]
