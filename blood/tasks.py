import logging

from botocore.exceptions import BotoCoreError, ClientError
from celery import shared_task

from blood.models import PasswordResetCode
from blood.services import notifications as notification_service
from blood.services import password_reset
from blood.services import sms as sms_service


logger = logging.getLogger(__name__)

EMAIL_RETRY_BASE_SECONDS = 60


def _load_emergency_request(emergency_request_id: int):
    from organization.models import EmergencyRequest

    return EmergencyRequest.objects.select_related('organization').get(pk=emergency_request_id)


def _alert_targets(emergency_request, donor_ids=None):
    donors = notification_service.matching_members(emergency_request)
    if donor_ids is None:
        return donors
    wanted = set(donor_ids)
    return [donor for donor in donors if donor.pk in wanted]


@shared_task(bind=True, max_retries=3)
def send_emergency_emails(self, emergency_request_id: int, donor_ids=None) -> int:
    """Email each target donor. A retry is queued for the donors not reached yet, never the whole list."""

    emergency_request = _load_emergency_request(emergency_request_id)
    donors = _alert_targets(emergency_request, donor_ids)
    sent = 0
    for index, donor in enumerate(donors):
        try:
            sent += notification_service.send_emergency_email(emergency_request, donor)
        except OSError as exc:  # SMTPException and connection errors
            pending = [row.pk for row in donors[index:]]
            logger.warning(
                "Emergency email for request %s failed after %s sent; retrying %s donor(s): %s",
                emergency_request_id,
                sent,
                len(pending),
                exc,
            )
            raise self.retry(
                exc=exc,
                args=(emergency_request_id, pending),
                countdown=EMAIL_RETRY_BASE_SECONDS * 2 ** self.request.retries,
            )
    logger.info("Sent %s emergency email(s) for request %s", sent, emergency_request_id)
    return sent


# Publish failures are skipped per number inside the service, so only client
# setup errors (raised before any text goes out) reach the retry.
@shared_task(bind=True, autoretry_for=(BotoCoreError, ClientError), retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_emergency_sms(self, emergency_request_id: int, donor_ids=None) -> dict:
    emergency_request = _load_emergency_request(emergency_request_id)
    donors = _alert_targets(emergency_request, donor_ids)
    result = sms_service.notify_emergency_donors(emergency_request, donors)
    return {'delivered': result.delivered, 'attempted': result.attempted, 'reason': result.reason}


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={'max_retries': 3})
def send_password_reset_email(self, reset_code_id: int) -> int:
    reset = PasswordResetCode.objects.select_related('user').get(pk=reset_code_id)
    return password_reset.email_code(reset)


def dispatch_emergency_alerts(emergency_request, donors) -> None:
    """Queue email and SMS delivery for donors already notified in-app."""

    if not donors:
        return
    donor_ids = [donor.pk for donor in donors]
    send_emergency_emails.delay(emergency_request.pk, donor_ids)
    send_emergency_sms.delay(emergency_request.pk, donor_ids)
