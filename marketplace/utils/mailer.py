import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from flask import current_app

def send_email(to: str, subject: str, html: str):
    cfg = current_app.config
    if cfg.get("MAIL_SUPPRESS_SEND"):
        current_app.logger.info("Mail suppressed: %r to %s", subject, to)
        return

    msg = EmailMessage()
    msg["From"] = f"{cfg['EMAIL_FROM_NAME']} <{cfg['EMAIL_FROM_ADDRESS']}>"
    msg["To"] = to
    msg["Subject"] = subject
    msg["Reply-To"] = cfg["EMAIL_FROM_ADDRESS"]
    msg["Message-ID"] = make_msgid(domain=cfg["EMAIL_FROM_ADDRESS"].split("@")[-1])

    msg.set_content("This is an automated message. Please view in HTML.")
    msg.add_alternative(html, subtype="html")

    current_app.logger.debug("Connecting to SMTP %s:%s", cfg["SMTP_HOST"], cfg["SMTP_PORT"])

    with smtplib.SMTP_SSL(cfg["SMTP_HOST"], cfg["SMTP_PORT"], timeout=20) as server:
        server.login(cfg["EMAIL_FROM_ADDRESS"], cfg["SMTP_PASSWORD"])
        server.send_message(msg)
    current_app.logger.info("Email sent to %s", to)
