"""
Outbound notifications: SMTP email with Jinja2 templates and Twilio SMS,
both with a file-based developer preview mode.
"""
