"""
Email service for offer notifications and offer emails.
Uses Flask-Mail for SMTP integration with UTF-8 support.
"""
import logging
import time
from html import escape
from typing import Any, Dict, Optional

from flask import current_app
from flask_mail import Mail, Message

from offerdesk.utils.number_format import format_number

logger = logging.getLogger(__name__)

mail = Mail()


def init_mail(app):
    """Initialize Flask-Mail with app."""
    mail.init_app(app)


def _mail_enabled() -> bool:
    """
    Check if mail is properly configured and enabled.
    Disabled mail is reported as a successful no-op so dev setups keep working.
    """
    cfg = current_app.config
    return bool(
        not cfg.get("MAIL_SUPPRESS_SEND", False)
        and cfg.get("MAIL_SERVER")
        and cfg.get("MAIL_USERNAME")
    )


def offer_url(offer_id: int) -> str:
    base_url = current_app.config.get('APP_URL', 'http://localhost:5000').rstrip('/')
    return f"{base_url}/offers/{offer_id}"


def send_email(to: str, subject: str, html: Optional[str] = None, text: Optional[str] = None) -> Dict[str, Any]:
    """
    Send one email.

    Returns:
        ``{'success': True}`` or ``{'success': False, 'error': message}``
    """
    if not to:
        return {'success': False, 'error': 'Recipient email is required'}
    if not subject:
        return {'success': False, 'error': 'Email subject is required'}
    if not html and not text:
        return {'success': False, 'error': 'Email content (html or text) is required'}

    if not _mail_enabled():
        logger.warning(f"[MAIL DISABLED] Email skipped for {to}")
        return {'success': True}

    try:
        msg = Message(subject=subject, recipients=[to], body=text, html=html)
        mail.send(msg)
        logger.info(f"[EMAIL] Email sent to {to}")
        return {'success': True}
    except Exception as e:
        logger.exception(f"[EMAIL] Failed to send email to {to}: {e}")
        return {'success': False, 'error': str(e) or 'Failed to send email'}


def send_email_with_retry(to: str, subject: str, html: Optional[str] = None, text: Optional[str] = None,
                          max_attempts: Optional[int] = None) -> Dict[str, Any]:
    """Send an email, retrying with linear backoff (``backoff * attempt`` seconds)."""
    cfg = current_app.config
    max_attempts = max_attempts or cfg.get('EMAIL_MAX_ATTEMPTS', 2)
    backoff = cfg.get('EMAIL_RETRY_BACKOFF_SECONDS', 1)

    result = {'success': False, 'error': 'Failed to send email'}
    for attempt in range(1, max_attempts + 1):
        result = send_email(to, subject, html, text)
        if result['success']:
            return result
        logger.error(f"[EMAIL] Attempt {attempt}/{max_attempts} to {to} failed: {result.get('error')}")
        if attempt < max_attempts and backoff:
            time.sleep(backoff * attempt)
    return result


def notify(recipient_email: str, subject: str, html_body: str, text_body: str) -> Dict[str, Any]:
    """
    Notification entry point used by the promotion flow.

    Runs inside the promotion request, so it is limited to
    ``OFFER_NOTIFY_MAX_ATTEMPTS`` tries.
    """
    max_attempts = current_app.config.get('OFFER_NOTIFY_MAX_ATTEMPTS')
    return send_email_with_retry(recipient_email, subject, html_body, text_body, max_attempts=max_attempts)


def render_offer_notification(offer) -> Dict[str, str]:
    """Subject, HTML and text for the "new offer" notification of a promoted offer."""
    link = offer_url(offer.id)
    from_party = offer.from_party or offer.business_name or 'Business'
    to_party = offer.to_party or 'Buyer'
    subject = f"New Offer: {offer.offer_name}"

    rows = [('Offer', offer.offer_name), ('From', from_party)]
    if offer.quantity:
        rows.append(('Quantity', offer.quantity))
    if offer.grand_total is not None:
        rows.append(('Grand Total', format_number(offer.grand_total)))
    if offer.shipment_date:
        rows.append(('Shipment Date', offer.shipment_date.isoformat()))

    table_rows = "".join(
        f"""
            <tr>
                <td><strong>{escape(label)}:</strong></td>
                <td>{escape(str(value))}</td>
            </tr>
            """
        for label, value in rows
    )

    html_body = f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="UTF-8">
            <style>
                body {{ font-family: Arial, sans-serif; color: #333; }}
                .container {{ max-width: 600px; margin: auto; padding: 20px; }}
                .header {{ background: #007bff; color: #fff; padding: 20px; text-align: center; }}
                .content {{ background: #fff; padding: 30px; }}
                .button {{
                    display: inline-block;
                    padding: 12px 30px;
                    background: #28a745;
                    color: #fff !important;
                    text-decoration: none;
                    border-radius: 5px;
                }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header">
                    <h1>New Offer</h1>
                </div>
                <div class="content">
                    <p>Dear <strong>{escape(to_party)}</strong>,</p>
                    <p><strong>{escape(from_party)}</strong> has sent you a new offer.</p>
                    <table cellpadding="6">{table_rows}</table>
                    <div style="text-align:center;margin:30px 0;">
                        <a href="{link}" class="button">View Offer</a>
                    </div>
                </div>
            </div>
        </body>
        </html>
        """

    details = "\n".join(f"- {label}: {value}" for label, value in rows)
    text_body = f"""
Dear {to_party},

{from_party} has sent you a new offer.

{details}

View Offer: {link}
"""
    return {'subject': subject, 'html': html_body, 'text': text_body}


def send_offer_email_template(offer, buyer_email: str, buyer_name: str, subject: str, message: str) -> Dict[str, Any]:
    """Send the offer summary with a personal message to a buyer."""
    link = offer_url(offer.id)
    product_count = len(offer.products)
    total = format_number(offer.grand_total) if offer.grand_total is not None else '0'
    message = message or ''

    validity_row = ''
    validity_line = ''
    if offer.offer_validity_date:
        validity_row = f"""
                <tr>
                    <td><strong>Valid Until:</strong></td>
                    <td>{offer.offer_validity_date.isoformat()}</td>
                </tr>"""
        validity_line = f"- Valid Until: {offer.offer_validity_date.isoformat()}\n"

    html_body = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <div style="background: #007bff; color: #fff; padding: 20px; text-align: center;">
                <h1 style="margin: 0;">New Offer Available</h1>
            </div>
            <div style="padding: 20px; background: #f9f9f9;">
                <p>Dear {escape(buyer_name or 'Buyer')},</p>
                <div style="background: #fff; padding: 20px;">{escape(message).replace(chr(10), '<br>')}</div>
                <h3>Offer Summary</h3>
                <table cellpadding="6">
                <tr>
                    <td><strong>Offer Name:</strong></td>
                    <td>{escape(offer.offer_name)}</td>
                </tr>
                <tr>
                    <td><strong>From:</strong></td>
                    <td>{escape(offer.from_party)}</td>
                </tr>
                <tr>
                    <td><strong>Destination:</strong></td>
                    <td>{escape(offer.destination)}</td>
                </tr>
                <tr>
                    <td><strong>Products:</strong></td>
                    <td>{product_count} items</td>
                </tr>
                <tr>
                    <td><strong>Grand Total:</strong></td>
                    <td>{total}</td>
                </tr>{validity_row}
                </table>
                <p style="text-align:center;margin:30px 0;">
                    <a href="{link}">View Full Offer Details</a>
                </p>
                <p>Best regards,<br><strong>{escape(offer.from_party)}</strong></p>
            </div>
        </div>
        """

    text_body = f"""
{message}

Offer Details:
- Offer Name: {offer.offer_name}
- From: {offer.from_party}
- Destination: {offer.destination}
- Products: {product_count} items
- Grand Total: {total}
{validity_line}
View Full Offer: {link}

Best regards,
{offer.from_party}
"""
    return send_email_with_retry(buyer_email, subject, html_body, text_body)
