"""
Alert Module

Builds the location report and sends it out: as text-mode SMS over
the modem session, and by email through a pluggable sender.
"""

import logging
import smtplib
import ssl
from email.message import EmailMessage

from .encoding import calculate_sms_parts, split_message, to_gsm7_text
from .errors import EmailError, ModemUnresponsive
from .models import Report
from .session import CTRL_Z

# Get logger
logger = logging.getLogger('CellLocator')

MAP_LINK = 'https://maps.google.com/?q={lat},{lng}'


def map_link(fix):
    return MAP_LINK.format(lat=fix.latitude, lng=fix.longitude)


def compose_report(survey, fix, address):
    """
    Combine the results of one run into a single multi-line report.

    Args:
        survey: CellSurvey from the acquirer
        fix: LocationFix from the geolocation lookup
        address: AddressRecord from the reverse geocoder

    Returns:
        Report: Report text and the map link it embeds
    """
    cell = survey.cell
    link = map_link(fix)

    cell_lines = [f"MCC={cell.mcc} MNC={cell.mnc} LAC={cell.lac} CID={cell.cid}"]
    if survey.operator.name:
        cell_lines.append(f"Operator: {survey.operator.name}")
    if survey.signal.is_known:
        cell_lines.append(f"Signal: {survey.signal.rssi_code}/31")

    text = "\n".join([
        "Cell Info:",
        *cell_lines,
        "Location (Lat,Lng):",
        f"{fix.latitude},{fix.longitude} (Accuracy: {fix.accuracy_m}m)",
        "Address:",
        address.formatted_address,
        "Google Maps:",
        link,
    ])
    return Report(text=text, map_link=link)


class NullEmailSender:
    """Email collaborator that only logs; used when email is not configured."""

    def send_email(self, report):
        logger.info("Email delivery not configured, skipping")


class SmtpEmailSender:
    """Sends the report over SMTP with implicit TLS."""

    def __init__(self, server, port, sender, password, recipient, timeout=30):
        self.server = server
        self.port = port
        self.sender = sender
        self.password = password
        self.recipient = recipient
        self.timeout = timeout

    def send_email(self, report):
        message = EmailMessage()
        message['Subject'] = 'Device location report'
        message['From'] = self.sender
        message['To'] = self.recipient
        message.set_content(report.text)

        try:
            with smtplib.SMTP_SSL(self.server, self.port, timeout=self.timeout,
                                  context=ssl.create_default_context()) as smtp:
                smtp.login(self.sender, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailError(f"Email to {self.recipient} failed: {e}") from e
        logger.info(f"Email sent to {self.recipient}")


class AlertDispatcher:
    """Sends a Report by email and text message."""

    def __init__(self, session, phone_number, email_sender=None,
                 prompt_wait=1.0, body_wait=0.5, settle=5.0):
        """
        Args:
            session: ModemSession owning the serial link
            phone_number: SMS recipient
            email_sender: Object with send_email(report); NullEmailSender if None
            prompt_wait: Seconds to wait for the modem after each command
            body_wait: Seconds between the body and the Ctrl+Z terminator
            settle: Seconds to let the modem transmit after Ctrl+Z
        """
        self.session = session
        self.phone_number = phone_number
        self.email_sender = email_sender or NullEmailSender()
        self.prompt_wait = prompt_wait
        self.body_wait = body_wait
        self.settle = settle

    def send_email(self, report):
        self.email_sender.send_email(report)

    def send_sms(self, report):
        """
        Send the report as one or more text-mode SMS.

        No acknowledgement is parsed; the send counts as done once the
        sequence completes.

        Returns:
            int: Number of SMS parts sent

        Raises:
            ModemUnresponsive: The modem rejected text mode
        """
        response = self.session.exchange('AT+CMGF=1', self.prompt_wait)
        if not response.contains('OK'):
            raise ModemUnresponsive(f"Text mode not accepted: {response.text!r}")

        text = to_gsm7_text(report.text)
        num_parts, chars_per_part = calculate_sms_parts(text)
        parts = split_message(text, chars_per_part)
        logger.debug(f"Report: {len(text)} chars, parts={num_parts}, limit={chars_per_part}")

        for i, part in enumerate(parts, 1):
            logger.debug(f"Sending part {i}/{len(parts)}: {len(part)} chars")
            self.session.send(f'AT+CMGS="{self.phone_number}"')
            self.session.receive(self.prompt_wait)
            self.session.write(part)
            self.session.settle(self.body_wait)
            self.session.write(CTRL_Z)
            self.session.settle(self.settle)

        logger.info(f"SMS sent to {self.phone_number} ({len(parts)} part(s))")
        return len(parts)
