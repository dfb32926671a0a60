import html as html_lib
from typing import Tuple

from gusto.services.interfaces.notification_sender import RegistrationNotification

FOOTER_TEXT = (
    "Government College of Engineering, Erode - Department of Information Technology\n"
    "gustogcee@gmail.com\n"
)


def build_registration_email(message: RegistrationNotification) -> Tuple[str, str, str]:
    """Return (subject, html, text) for a registration confirmation."""
    subject = f"Registration Confirmed - GUSTO'26 [{message.unique_code}]"

    text_lines = [
        f"Hi {message.name},",
        "",
        "Thank you for registering for GUSTO'26! Your registration has been received.",
        "",
        f"Your registration code: {message.unique_code}",
        "Bring this code on the event day for check-in.",
        "",
        "Your events:",
    ]
    for event in message.events:
        line = f"  - {event.title} ({event.category})"
        if event.submission_email:
            line += f" - send your entry to {event.submission_email}"
        text_lines.append(line)
    text_lines += [
        "",
        f"Amount paid: Rs. {message.amount} (pending verification)",
        "",
        "Please carry your registration code and a valid college ID card on the event day.",
        "",
        FOOTER_TEXT,
    ]
    text = "\n".join(text_lines)

    rows = []
    for event in message.events:
        submission = (
            f'<a href="mailto:{html_lib.escape(event.submission_email)}">'
            f"{html_lib.escape(event.submission_email)}</a>"
            if event.submission_email
            else "-"
        )
        rows.append(
            "<tr>"
            f'<td style="padding:10px 14px;border-bottom:1px solid #eee;font-weight:600;">{html_lib.escape(event.title)}</td>'
            f'<td style="padding:10px 14px;border-bottom:1px solid #eee;">{html_lib.escape(event.category)}</td>'
            f'<td style="padding:10px 14px;border-bottom:1px solid #eee;">{submission}</td>'
            "</tr>"
        )

    html = f"""
    <html>
      <body style="margin:0;padding:0;background:#f4f4f7;font-family:Arial,sans-serif;">
        <div style="max-width:600px;margin:0 auto;padding:24px;">
          <div style="background:#fff;border-radius:12px;overflow:hidden;">
            <div style="background:#F54E00;padding:32px 24px;text-align:center;">
              <h1 style="margin:0;color:#fff;font-size:24px;">GUSTO'26</h1>
              <p style="margin:6px 0 0;color:#fff;font-size:14px;">Registration Confirmed</p>
            </div>
            <div style="padding:28px 24px;">
              <p>Hi <strong>{html_lib.escape(message.name)}</strong>,</p>
              <p>Thank you for registering for GUSTO'26! Your registration has been received.</p>
              <div style="background:#FFF5F0;border:2px solid #F54E00;border-radius:10px;padding:20px;text-align:center;margin:0 0 24px;">
                <p style="margin:0 0 6px;color:#666;font-size:12px;text-transform:uppercase;">Your Registration Code</p>
                <p style="margin:0;color:#F54E00;font-size:28px;font-weight:800;letter-spacing:3px;">{html_lib.escape(message.unique_code)}</p>
                <p style="margin:8px 0 0;color:#888;font-size:11px;">Bring this code on the event day for check-in</p>
              </div>
              <h3 style="margin:0 0 12px;">Your Registered Events</h3>
              <table style="width:100%;border-collapse:collapse;font-size:13px;color:#444;">
                <thead>
                  <tr style="background:#f8f8f8;">
                    <th style="padding:10px 14px;text-align:left;">Event</th>
                    <th style="padding:10px 14px;text-align:left;">Category</th>
                    <th style="padding:10px 14px;text-align:left;">Submission</th>
                  </tr>
                </thead>
                <tbody>
                  {"".join(rows)}
                </tbody>
              </table>
              <p style="margin:20px 0 0;">Amount paid: <strong>Rs. {message.amount}</strong> (pending verification)</p>
              <p style="margin:16px 0 0;padding:16px;background:#f9f9fb;border-left:4px solid #F54E00;">
                Please carry your registration code and a valid college ID card on the event day.
              </p>
            </div>
            <div style="background:#f8f8f8;padding:16px 24px;text-align:center;color:#999;font-size:12px;">
              Government College of Engineering, Erode - Department of Information Technology<br>
              gustogcee@gmail.com
            </div>
          </div>
        </div>
      </body>
    </html>
    """
    return subject, html, text
