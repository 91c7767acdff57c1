# app/mail/dispatcher.py
"""
Outbound ticket mail.

``deliver`` is the only place a transport is called. It turns transport
failures into a DispatchResult, so a failed send never unwinds the ticket
change that triggered it.
"""

from dataclasses import dataclass
from html import escape

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import (
    InvalidTransitionError,
    NotFoundError,
    PreconditionFailedError,
    TransientDispatchFailure,
)
from app.core.identity import Actor, Role
from app.core.logging_config import get_logger
from app.directory.services import ContactDirectory
from app.mail.transport import MailTransport, OutboundMail, get_mail_transport
from app.ticket import services as ticket_store
from app.ticket.models import Ticket
from app.ticket.lifecycle import is_terminal

logger = get_logger(__name__)


@dataclass(frozen=True)
class DispatchResult:
    sent: bool
    recipient: str | None = None
    warning: str | None = None


def deliver(transport: MailTransport, mail: OutboundMail) -> DispatchResult:
    try:
        transport.send(mail)
    except TransientDispatchFailure as exc:
        logger.warning("mail send failed", extra={"subject": mail.subject, "error": str(exc)})
        return DispatchResult(sent=False, recipient=mail.recipient, warning=str(exc))
    logger.info("mail sent", extra={"subject": mail.subject, "recipient": mail.recipient})
    return DispatchResult(sent=True, recipient=mail.recipient)


def _text(value) -> str:
    return escape(str(value)) if value not in (None, "") else "-"


class Dispatcher:
    def __init__(self, db: Session, directory: ContactDirectory, transport: MailTransport,
                 settings: Settings):
        self.db = db
        self.directory = directory
        self.transport = transport
        self.signature = settings.MAIL_SIGNATURE

    def _footer(self) -> str:
        return f"<p>{escape(self.signature)}</p>"

    def _send_as(self, sender_key: str, recipient_key: str | None, subject: str,
                 html: str) -> DispatchResult:
        sender = self.directory.resolve(sender_key)
        if sender is None or not sender.can_send:
            warning = f"Mail credentials missing for {sender_key}"
            logger.warning("mail skipped", extra={"subject": subject, "reason": warning})
            return DispatchResult(sent=False, warning=warning)
        recipient = self.directory.resolve(recipient_key)
        if recipient is None or not recipient.email:
            warning = f"No mail address for {recipient_key or 'recipient'}"
            logger.warning("mail skipped", extra={"subject": subject, "reason": warning})
            return DispatchResult(sent=False, warning=warning)
        mail = OutboundMail(
            sender=sender.email,
            sender_password=sender.mail_password,
            recipient=recipient.email,
            subject=subject,
            html=html,
        )
        return deliver(self.transport, mail)

    @staticmethod
    def warnings(*results: DispatchResult) -> list[str]:
        return [r.warning for r in results if r.warning]

    def remind(self, ticket_id: int, message: str | None, actor: Actor) -> DispatchResult:
        if actor.role != Role.SUPERVISOR:
            raise InvalidTransitionError("Only supervisors can send reminders")
        if not message or not message.strip():
            raise PreconditionFailedError("Reminder message required")
        ticket = ticket_store.get_ticket(self.db, ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket not found")
        if is_terminal(ticket.status):
            raise InvalidTransitionError(f"Ticket {ticket.id} is already {ticket.status}")
        if not ticket.assignee:
            raise PreconditionFailedError("This ticket has no assigned technician.")

        worker = self.directory.resolve(ticket.assignee)
        if worker is None or not worker.email:
            raise PreconditionFailedError("Technician email not found")
        sender = self.directory.resolve(actor.identity)
        if sender is None or not sender.can_send:
            raise PreconditionFailedError("Supervisor mail credentials missing")

        html = (
            f"<p>Dear {_text(ticket.assignee)},</p>"
            f"<p>This is a gentle reminder from <strong>{_text(actor.display_name)}</strong> "
            "regarding the overdue ticket:</p>"
            f"<p><strong>Ticket ID:</strong> {ticket.id}<br/>"
            f"<strong>User:</strong> {_text(ticket.originator_name)}<br/>"
            f"<strong>Issue:</strong> {_text(ticket.issue_text)}<br/>"
            f"<strong>End Date:</strong> {_text(ticket.end_date)}</p>"
            "<hr/><p><strong>Supervisor Message:</strong></p>"
            f"<p><em>{_text(message.strip())}</em></p>"
            f"{self._footer()}"
        )
        mail = OutboundMail(
            sender=sender.email,
            sender_password=sender.mail_password,
            recipient=worker.email,
            subject=f"Reminder: Ticket #{ticket.id} Overdue",
            html=html,
        )
        return deliver(self.transport, mail)

    def notify_assigned(self, ticket: Ticket, actor: Actor) -> list[str]:
        to_worker = self._send_as(
            actor.identity,
            ticket.assignee,
            "Ticket Assigned by Supervisor",
            f"<p>Dear {_text(ticket.assignee)},</p>"
            f"<p>A new issue has been assigned by <strong>{_text(actor.display_name)}</strong>.</p>"
            f"<p><strong>User:</strong> {_text(ticket.originator_name)}<br/>"
            f"<strong>Issue:</strong> {_text(ticket.issue_text)}<br/>"
            f"<strong>Start:</strong> {_text(ticket.start_date)}<br/>"
            f"<strong>End:</strong> {_text(ticket.end_date)}</p>"
            f"{self._footer()}",
        )
        to_originator = self._send_as(
            actor.identity,
            ticket.originator_username,
            "Your Ticket Has Been Assigned",
            f"<p>Dear <strong>{_text(ticket.originator_name)}</strong>,</p>"
            "<p>Your issue has been assigned to a technician by "
            f"<strong>{_text(actor.display_name)}</strong>.</p>"
            f"<p><strong>Issue:</strong> {_text(ticket.issue_text)}</p>"
            "<p>Our team will begin working on it shortly.</p>"
            f"{self._footer()}",
        )
        return self.warnings(to_worker, to_originator)

    def notify_rejected_by_supervisor(self, ticket: Ticket, actor: Actor) -> list[str]:
        result = self._send_as(
            actor.identity,
            ticket.originator_username,
            "Your Ticket has been Rejected",
            f"<p>Dear <strong>{_text(ticket.originator_name)}</strong>,</p>"
            "<p>Your submitted ticket has been <strong>REJECTED</strong> by "
            f"<strong>{_text(actor.display_name)}</strong>.</p>"
            f"<p><strong>Issue:</strong> {_text(ticket.issue_text)}</p>"
            f"<p><strong>Reason:</strong> {_text(ticket.remarks)}</p>"
            f"{self._footer()}",
        )
        return self.warnings(result)

    def notify_taken_over(self, ticket: Ticket, actor: Actor) -> list[str]:
        result = self._send_as(
            actor.identity,
            ticket.originator_username,
            "Issue Taken Over",
            f"<p>Dear {_text(ticket.originator_name)},</p>"
            f"<p>Your issue has been taken over by <strong>{_text(actor.display_name)}</strong>.</p>"
            f"{self._footer()}",
        )
        return self.warnings(result)

    def notify_completed(self, ticket: Ticket, actor: Actor) -> list[str]:
        result = self._send_as(
            actor.identity,
            ticket.originator_username,
            f"Issue Fixed by {actor.display_name}",
            f"<p>Dear {_text(ticket.originator_name)},</p>"
            f"<p>Your issue \"{_text(ticket.issue_text)}\" is marked as <strong>COMPLETE</strong>.</p>"
            f"<p><strong>Technician Note:</strong><br/>{_text(ticket.remarks)}</p>"
            f"<p>From: {_text(actor.display_name)}</p>",
        )
        return self.warnings(result)

    def notify_rejected_by_worker(self, ticket: Ticket, actor: Actor,
                                  subject: str | None = None) -> list[str]:
        result = self._send_as(
            actor.identity,
            ticket.destination,
            subject or f"Ticket Rejected by {actor.display_name}",
            f"<p>Dear {_text(ticket.destination)},</p>"
            f"<p>Technician <strong>{_text(actor.display_name)}</strong> rejected ticket "
            f"#{ticket.id}:</p>"
            f"<p><strong>User:</strong> {_text(ticket.originator_name)}<br/>"
            f"<strong>Issue:</strong> {_text(ticket.issue_text)}</p>"
            f"<p><strong>Reason:</strong><br/>{_text(ticket.remarks)}</p>"
            f"{self._footer()}",
        )
        return self.warnings(result)


def get_dispatcher(
    db: Session = Depends(get_db),
    transport: MailTransport = Depends(get_mail_transport),
    settings: Settings = Depends(get_settings),
) -> Dispatcher:
    return Dispatcher(db, ContactDirectory(db), transport, settings)
