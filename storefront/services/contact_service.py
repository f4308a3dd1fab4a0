"""Contact form handling."""
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from storefront.schemas.contact import ContactRequest
from storefront.services.email_service import EmailService
from storefront.services.settings_service import SettingsService


logger = logging.getLogger(__name__)


SUCCESS_MESSAGES = {
    "it": "Messaggio inviato con successo. Ti risponderemo al più presto.",
    "en": "Message sent successfully. We will get back to you soon.",
}


class ContactService:
    def __init__(self, db: AsyncSession, email_service: EmailService):
        self.db = db
        self.email_service = email_service

    async def submit(self, data: ContactRequest) -> str:
        """
        Send the receipt to the sender and forward the message to the shop.

        The submission succeeds even when the emails do not go out; the
        message is in the log either way.
        """
        logger.info(
            f"Contact form submission from {data.name} <{data.email}>: "
            f"{data.subject} - {data.message[:100]}"
        )

        receipt_sent = await run_in_threadpool(
            self.email_service.send_contact_receipt_email,
            to_email=data.email,
            customer_name=data.name,
            subject=data.subject,
            message=data.message,
            locale=data.locale,
        )
        if not receipt_sent:
            logger.warning(f"Contact receipt email to {data.email} failed")

        admin_email = await SettingsService(self.db).get_admin_email()
        if admin_email:
            admin_sent = await run_in_threadpool(
                self.email_service.send_contact_admin_notification,
                admin_email=admin_email,
                customer_name=data.name,
                customer_email=data.email,
                subject=data.subject,
                message=data.message,
                phone=data.phone,
            )
            if not admin_sent:
                logger.warning(f"Contact admin notification to {admin_email} failed")
        else:
            logger.warning("No admin email configured, contact form not forwarded")

        return SUCCESS_MESSAGES[data.locale]
