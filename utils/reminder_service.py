# utils/reminder_service.py
import logging
from datetime import date

from loans.lifecycle import overdue_loans
from notifications.utils import push_notification
from utils.transactions import atomic

logger = logging.getLogger(__name__)


def send_overdue_reminders(organization_id, as_of=None):
    """
    Notify every borrower whose disbursed loan is past its due date.
    Operator-triggered (CLI or HTTP); there is no background scheduler.
    """
    as_of = as_of or date.today()
    loans = overdue_loans(organization_id, as_of)

    reminders_sent = []
    with atomic():
        for loan in loans:
            days_late = (as_of - loan.expected_repayment_date).days
            message = (f"⏰ Reminder: loan {loan.loan_number} was due on "
                       f"{loan.expected_repayment_date.isoformat()} ({days_late} days ago). "
                       f"Outstanding: {loan.outstanding_balance}")
            push_notification(loan.member_id, message, "loan_overdue",
                              {"loan_id": loan.id, "days_late": days_late})
            reminders_sent.append(message)

    logger.info("[Reminder Service] org %s: %d overdue reminders", organization_id, len(reminders_sent))
    return reminders_sent
