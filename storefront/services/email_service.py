import smtplib
from html import escape
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, List, Union
import logging

logger = logging.getLogger(__name__)


BRAND_NAME = "Antichità Barbaglia"

ITALIAN_MONTHS = [
    "gennaio", "febbraio", "marzo", "aprile", "maggio", "giugno",
    "luglio", "agosto", "settembre", "ottobre", "novembre", "dicembre",
]


def format_price(amount: Union[Decimal, float, int, None]) -> str:
    """Format an amount the Italian way: 1.234,56 €"""
    value = Decimal(str(amount or 0)).quantize(Decimal("0.01"))
    whole, cents = f"{value:,.2f}".split(".")
    return f"{whole.replace(',', '.')},{cents} €"


def format_date(value: datetime, locale: str = "it") -> str:
    if locale == "it":
        return f"{value.day} {ITALIAN_MONTHS[value.month - 1]} {value.year}"
    return value.strftime("%B %d, %Y").replace(" 0", " ")


def _address_lines(address: Optional[Dict]) -> List[str]:
    if not address:
        return []
    city_line = " ".join(p for p in [address.get("postal"), address.get("city")] if p)
    return [line for line in [
        address.get("name"),
        address.get("address"),
        city_line,
        address.get("country"),
    ] if line]


class EmailService:
    """Email service for sending transactional emails via SMTP."""

    def __init__(
        self,
        smtp_host: str = "smtp.gmail.com",
        smtp_port: int = 587,
        smtp_user: str = "",
        smtp_password: str = "",
        from_email: str = "",
        from_name: str = BRAND_NAME,
        base_url: str = "http://localhost:3000"
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email or smtp_user
        self.from_name = from_name
        self.base_url = base_url.rstrip("/")

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email over SMTP.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML body of the email
            text_content: Plain text body (optional fallback)

        Returns:
            True if email sent successfully, False otherwise
        """
        if not self.smtp_user or not self.smtp_password:
            logger.warning(f"Email not configured. Skipping email to {to_email}")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain', 'utf-8'))
            msg.attach(MIMEText(html_content, 'html', 'utf-8'))

            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, to_email, msg.as_string())

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except smtplib.SMTPAuthenticationError:
            logger.error("SMTP Authentication failed. Check email credentials.")
            return False
        except smtplib.SMTPException as e:
            logger.error(f"SMTP error: {e}")
            return False
        except TimeoutError:
            logger.error("SMTP connection timed out")
            return False
        except OSError as e:
            logger.error(f"Network error sending email: {e}")
            return False

    # ==================== LAYOUT ====================

    def _layout(self, title: str, body: str, locale: str = "it") -> str:
        footer = (
            "Pezzi unici, restaurati con cura." if locale == "it"
            else "Unique pieces, carefully restored."
        )
        return f"""
        <!DOCTYPE html>
        <html lang="{locale}">
        <head>
            <meta charset="utf-8">
        </head>
        <body style="font-family: Georgia, serif; max-width: 600px; margin: 0 auto; padding: 20px; background: #faf7f0; color: #3b2f2f;">
            <div style="background: #5c4033; padding: 24px; text-align: center; border-radius: 8px 8px 0 0;">
                <h1 style="color: #f5e6c8; margin: 0; font-size: 24px;">{BRAND_NAME}</h1>
            </div>
            <div style="background: white; padding: 30px; border: 1px solid #e8dcc4;">
                <h2 style="margin-top: 0;">{title}</h2>
                {body}
            </div>
            <div style="background: #3b2f2f; color: #f5e6c8; padding: 16px; text-align: center; border-radius: 0 0 8px 8px; font-size: 12px;">
                <p style="margin: 0;"><strong>{BRAND_NAME}</strong> - {footer}</p>
                <p style="margin: 6px 0 0 0;"><a href="{self.base_url}" style="color: #f5e6c8;">{self.base_url}</a></p>
            </div>
        </body>
        </html>
        """

    def _items_table(self, items: List[Dict]) -> str:
        rows = ""
        for item in items:
            image = (
                f'<img src="{escape(item["image_url"])}" width="60" height="60" style="object-fit: cover; border-radius: 4px;" alt="">'
                if item.get("image_url") else ""
            )
            rows += f"""
                <tr>
                    <td style="padding: 10px; border-bottom: 1px solid #e8dcc4; width: 70px;">{image}</td>
                    <td style="padding: 10px; border-bottom: 1px solid #e8dcc4;">
                        <a href="{self.base_url}/shop/{escape(item.get('product_slug') or '')}" style="color: #5c4033;">{escape(item.get('product_title') or '')}</a>
                    </td>
                    <td style="padding: 10px; border-bottom: 1px solid #e8dcc4; text-align: center;">{item.get('quantity', 1)}</td>
                    <td style="padding: 10px; border-bottom: 1px solid #e8dcc4; text-align: right;">{format_price(item.get('price'))}</td>
                </tr>
            """
        return f'<table style="width: 100%; border-collapse: collapse;">{rows}</table>'

    def _product_card(self, product_title: str, product_price, product_image_url: Optional[str], badge: str = "") -> str:
        image = (
            f'<img src="{escape(product_image_url)}" width="120" height="120" style="object-fit: cover; border-radius: 4px;" alt="">'
            if product_image_url else ""
        )
        return f"""
            <div style="border: 1px solid #e8dcc4; border-radius: 8px; padding: 16px; margin: 24px 0; background: #fffef8;">
                {image}
                <p style="font-size: 18px; font-weight: bold; margin: 8px 0 0 0;">{escape(product_title)}</p>
                <p style="font-size: 20px; font-weight: bold; color: #5c4033; margin: 8px 0;">{format_price(product_price)}</p>
                {badge}
            </div>
        """

    # ==================== ORDER EMAILS ====================

    def send_order_confirmation_email(
        self,
        to_email: str,
        order_number: str,
        customer_name: str,
        items: List[Dict],
        subtotal: Decimal,
        shipping_cost: Decimal,
        total: Decimal,
        shipping_address: Optional[Dict] = None,
        order_date: Optional[datetime] = None,
        locale: str = "it"
    ) -> bool:
        """Send the order confirmation after a successful payment."""
        order_date = order_date or datetime.now()
        if locale == "it":
            subject = f"Conferma ordine {order_number} - {BRAND_NAME}"
            title = "Grazie per il tuo ordine!"
            intro = f"Gentile {customer_name or 'Cliente'}, abbiamo ricevuto il tuo pagamento. Ecco il riepilogo dell'ordine."
            labels = ("Numero Ordine", "Data", "Subtotale", "Spedizione", "Totale", "Indirizzo di Spedizione")
        else:
            subject = f"Order Confirmation {order_number} - {BRAND_NAME}"
            title = "Thank you for your order!"
            intro = f"Dear {customer_name or 'Customer'}, we have received your payment. Here is your order summary."
            labels = ("Order Number", "Date", "Subtotal", "Shipping", "Total", "Shipping Address")

        address = "<br>".join(escape(line) for line in _address_lines(shipping_address))
        html_content = self._layout(title, f"""
            <p>{escape(intro)}</p>
            <p><strong>{labels[0]}:</strong> {escape(order_number)}<br>
               <strong>{labels[1]}:</strong> {format_date(order_date, locale)}</p>
            {self._items_table(items)}
            <p style="text-align: right;">
                {labels[2]}: {format_price(subtotal)}<br>
                {labels[3]}: {format_price(shipping_cost)}<br>
                <strong>{labels[4]}: {format_price(total)}</strong>
            </p>
            {f'<p><strong>{labels[5]}:</strong><br>{address}</p>' if address else ''}
        """, locale)

        item_lines = "\n".join(
            f"- {item.get('product_title')} x{item.get('quantity', 1)}: {format_price(item.get('price'))}"
            for item in items
        )
        text_content = f"""{title}

{intro}

{labels[0]}: {order_number}
{labels[1]}: {format_date(order_date, locale)}

{item_lines}

{labels[2]}: {format_price(subtotal)}
{labels[3]}: {format_price(shipping_cost)}
{labels[4]}: {format_price(total)}
"""
        return self.send_email(to_email, subject, html_content, text_content)

    def send_order_shipped_email(
        self,
        to_email: str,
        order_number: str,
        customer_name: str,
        items: List[Dict],
        total: Decimal,
        shipping_address: Optional[Dict] = None,
        tracking_number: Optional[str] = None,
        carrier_name: Optional[str] = None,
        tracking_url: Optional[str] = None,
        shipped_at: Optional[datetime] = None,
        locale: str = "it"
    ) -> bool:
        """Send order shipped notification email."""
        shipped_at = shipped_at or datetime.now()
        if locale == "it":
            subject = f"Il tuo ordine {order_number} è stato spedito!"
            title = "Il tuo ordine è in viaggio!"
            intro = (
                f"Gentile {customer_name or 'Cliente'}, siamo lieti di informarti che il tuo ordine "
                "è stato spedito e sta viaggiando verso di te."
            )
            labels = ("Numero Ordine", "Data Spedizione", "Corriere", "Numero di Tracciamento",
                      "Traccia il tuo Ordine", "Totale", "Indirizzo di Consegna")
            delivery = "La consegna è prevista entro 3-5 giorni lavorativi."
        else:
            subject = f"Your order {order_number} has been shipped!"
            title = "Your order is on its way!"
            intro = (
                f"Dear {customer_name or 'Customer'}, we are pleased to inform you that your order "
                "has been shipped and is on its way to you."
            )
            labels = ("Order Number", "Shipped Date", "Carrier", "Tracking Number",
                      "Track your Order", "Total", "Delivery Address")
            delivery = "Delivery is expected within 3-5 business days."

        link = tracking_url or f"{self.base_url}/order-tracking?order={order_number}"
        tracking_block = ""
        if carrier_name or tracking_number:
            tracking_block = f"""
            <div style="background: #faf7f0; padding: 20px; border-radius: 8px; margin: 20px 0;">
                {f'<p style="margin: 0;"><strong>{labels[2]}:</strong> {escape(carrier_name)}</p>' if carrier_name else ''}
                {f'<p style="margin: 10px 0 0 0;"><strong>{labels[3]}:</strong> {escape(tracking_number)}</p>' if tracking_number else ''}
            </div>
            """
        address = "<br>".join(escape(line) for line in _address_lines(shipping_address))

        html_content = self._layout(title, f"""
            <p>{escape(intro)}</p>
            <p><strong>{labels[0]}:</strong> {escape(order_number)}<br>
               <strong>{labels[1]}:</strong> {format_date(shipped_at, locale)}</p>
            {tracking_block}
            <div style="text-align: center; margin: 20px 0;">
                <a href="{escape(link)}" style="display: inline-block; background: #5c4033; color: white; padding: 14px 28px; text-decoration: none; border-radius: 5px;">{labels[4]}</a>
            </div>
            {self._items_table(items)}
            <p style="text-align: right;"><strong>{labels[5]}: {format_price(total)}</strong></p>
            {f'<p><strong>{labels[6]}:</strong><br>{address}</p>' if address else ''}
            <p>{delivery}</p>
        """, locale)

        text_content = f"""{title}

{intro}

{labels[0]}: {order_number}
{f'{labels[2]}: {carrier_name}' if carrier_name else ''}
{f'{labels[3]}: {tracking_number}' if tracking_number else ''}

{labels[4]}: {link}

{delivery}
"""
        return self.send_email(to_email, subject, html_content, text_content)

    def send_admin_new_order_email(
        self,
        admin_email: str,
        order_number: str,
        customer_name: str,
        customer_email: str,
        items: List[Dict],
        subtotal: Decimal,
        shipping_cost: Decimal,
        total: Decimal,
        customer_phone: Optional[str] = None,
        shipping_address: Optional[Dict] = None,
        order_date: Optional[datetime] = None,
        is_guest: bool = False
    ) -> bool:
        """Tell the shop owner a new order was paid. Always in Italian."""
        order_date = order_date or datetime.now()
        subject = f"Nuovo ordine #{order_number} - {format_price(total)}"
        address = "<br>".join(escape(line) for line in _address_lines(shipping_address))
        customer_kind = "Ospite" if is_guest else "Cliente registrato"

        html_content = self._layout(f"Nuovo ordine #{escape(order_number)}", f"""
            <p><strong>Data:</strong> {format_date(order_date)}<br>
               <strong>Cliente:</strong> {escape(customer_name)} ({customer_kind})<br>
               <strong>Email:</strong> {escape(customer_email)}<br>
               {f'<strong>Telefono:</strong> {escape(customer_phone)}<br>' if customer_phone else ''}
            </p>
            {self._items_table(items)}
            <p style="text-align: right;">
                Subtotale: {format_price(subtotal)}<br>
                Spedizione: {format_price(shipping_cost)}<br>
                <strong>Totale: {format_price(total)}</strong>
            </p>
            {f'<p><strong>Indirizzo di Spedizione:</strong><br>{address}</p>' if address else ''}
            <p><a href="{self.base_url}/admin/orders">Gestisci ordini</a></p>
        """)

        text_content = f"""Nuovo ordine #{order_number}

Cliente: {customer_name} <{customer_email}> ({customer_kind})
Totale: {format_price(total)}

{self.base_url}/admin/orders
"""
        return self.send_email(admin_email, subject, html_content, text_content)

    # ==================== WISHLIST EMAILS ====================

    def send_wishlist_sold_email(
        self,
        to_email: str,
        customer_name: str,
        product_title: str,
        product_slug: str,
        product_price: Decimal,
        product_image_url: Optional[str] = None,
        locale: str = "it"
    ) -> bool:
        """Tell a wishlister that a saved piece has been sold."""
        if locale == "it":
            subject = f'Il tuo articolo "{product_title}" è stato venduto'
            title = "Un articolo dalla tua lista desideri è stato venduto"
            intro = (
                f"Gentile {customer_name or 'Cliente'}, ci dispiace informarti che il seguente "
                "articolo della tua lista desideri è stato venduto:"
            )
            badge_text, cta = "VENDUTO", "Scopri altri pezzi"
        else:
            subject = f'Your wishlist item "{product_title}" has been sold'
            title = "An item from your wishlist has been sold"
            intro = (
                f"Dear {customer_name or 'Customer'}, we are sorry to let you know that the "
                "following item from your wishlist has been sold:"
            )
            badge_text, cta = "SOLD", "Discover other pieces"

        badge = f'<span style="background: #b91c1c; color: white; padding: 4px 12px; border-radius: 4px; font-size: 12px;">{badge_text}</span>'
        html_content = self._layout(title, f"""
            <p>{escape(intro)}</p>
            {self._product_card(product_title, product_price, product_image_url, badge)}
            <div style="text-align: center; margin: 24px 0;">
                <a href="{self.base_url}/shop" style="display: inline-block; background: #5c4033; color: white; padding: 14px 28px; text-decoration: none; border-radius: 5px;">{cta}</a>
            </div>
        """, locale)

        text_content = f"""{title}

{intro}

{product_title} - {format_price(product_price)}

{cta}: {self.base_url}/shop
"""
        return self.send_email(to_email, subject, html_content, text_content)

    def send_back_in_stock_email(
        self,
        to_email: str,
        customer_name: str,
        product_title: str,
        product_slug: str,
        product_price: Decimal,
        product_image_url: Optional[str] = None,
        locale: str = "it"
    ) -> bool:
        """Tell a wishlister that a saved piece can be bought again."""
        if locale == "it":
            subject = f'"{product_title}" è di nuovo disponibile!'
            title = "Un articolo che desideravi è di nuovo disponibile!"
            intro = (
                f"Gentile {customer_name or 'Cliente'}, ottime notizie! Il seguente articolo che avevi "
                "salvato nella tua lista desideri è tornato disponibile:"
            )
            urgency = "I nostri pezzi sono unici e potrebbero essere venduti rapidamente. Non aspettare troppo!"
            badge_text, cta = "DISPONIBILE", "Acquista Ora"
        else:
            subject = f'"{product_title}" is back in stock!'
            title = "An item you wanted is back in stock!"
            intro = (
                f"Dear {customer_name or 'Customer'}, great news! The following item you saved to "
                "your wishlist is now available again:"
            )
            urgency = "Our pieces are unique and may sell quickly. Don't wait too long!"
            badge_text, cta = "AVAILABLE", "Buy Now"

        product_url = f"{self.base_url}/shop/{product_slug}"
        badge = f'<span style="background: #16a34a; color: white; padding: 4px 12px; border-radius: 4px; font-size: 12px;">{badge_text}</span>'
        html_content = self._layout(title, f"""
            <p>{escape(intro)}</p>
            {self._product_card(product_title, product_price, product_image_url, badge)}
            <p>{urgency}</p>
            <div style="text-align: center; margin: 24px 0;">
                <a href="{escape(product_url)}" style="display: inline-block; background: #16a34a; color: white; padding: 14px 28px; text-decoration: none; border-radius: 5px;">{cta}</a>
            </div>
        """, locale)

        text_content = f"""{title}

{intro}

{product_title} - {format_price(product_price)}

{urgency}

{cta}: {product_url}
"""
        return self.send_email(to_email, subject, html_content, text_content)

    # ==================== CONTACT FORM ====================

    def send_contact_receipt_email(
        self,
        to_email: str,
        customer_name: str,
        subject: str,
        message: str,
        locale: str = "it"
    ) -> bool:
        """Confirm to the sender that the contact form was received."""
        if locale == "it":
            email_subject = f"Abbiamo ricevuto il tuo messaggio - {BRAND_NAME}"
            title = "Grazie per averci contattato"
            intro = f"Gentile {customer_name}, abbiamo ricevuto il tuo messaggio e ti risponderemo al più presto."
            subject_label, message_label = "Oggetto", "Messaggio"
        else:
            email_subject = f"We received your message - {BRAND_NAME}"
            title = "Thank you for contacting us"
            intro = f"Dear {customer_name}, we have received your message and will get back to you as soon as possible."
            subject_label, message_label = "Subject", "Message"

        html_content = self._layout(title, f"""
            <p>{escape(intro)}</p>
            <div style="background: #faf7f0; padding: 16px; border-radius: 8px;">
                <p><strong>{subject_label}:</strong> {escape(subject)}</p>
                <p><strong>{message_label}:</strong></p>
                <p style="white-space: pre-wrap;">{escape(message)}</p>
            </div>
        """, locale)

        text_content = f"""{title}

{intro}

{subject_label}: {subject}

{message}
"""
        return self.send_email(to_email, email_subject, html_content, text_content)

    def send_contact_admin_notification(
        self,
        admin_email: str,
        customer_name: str,
        customer_email: str,
        subject: str,
        message: str,
        phone: Optional[str] = None
    ) -> bool:
        """Forward a contact form message to the shop owner."""
        email_subject = f"[Nuovo Messaggio] {subject} - da {customer_name}"
        text_content = f"""Nuovo messaggio dal modulo di contatto

Da: {customer_name} <{customer_email}>
{f'Telefono: {phone}' if phone else ''}
Oggetto: {subject}

Messaggio:
{message}

---
Rispondi direttamente a questa email per contattare il cliente.
""".strip()
        html_content = f"<pre style=\"font-family: Georgia, serif;\">{escape(text_content)}</pre>"
        return self.send_email(admin_email, email_subject, html_content, text_content)


def get_email_service() -> EmailService:
    """Get configured email service instance."""
    from storefront.config import settings

    return EmailService(
        smtp_host=settings.SMTP_HOST,
        smtp_port=settings.SMTP_PORT,
        smtp_user=settings.SMTP_USER,
        smtp_password=settings.SMTP_PASSWORD,
        from_email=settings.SMTP_FROM_EMAIL,
        from_name=settings.SMTP_FROM_NAME,
        base_url=settings.BASE_URL
    )
