"""
Email Service

Renders the Jinja2 email templates and hands the result to the mailer.
"""
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from tenantcore.config import get_settings
from tenantcore.notifications.mailer import MailerService, MailResponse, Recipients

logger = logging.getLogger(__name__)


class EmailService:
    """Templated transactional email."""

    def __init__(self, mailer: Optional[MailerService] = None, template_dir: Optional[str] = None):
        self.mailer = mailer or MailerService()
        template_path = Path(template_dir or get_settings().mail_template_dir)
        if not template_path.exists():
            logger.warning(f"Email template directory not found: {template_path}")
        self.template_env = Environment(
            loader=FileSystemLoader(str(template_path)),
            autoescape=select_autoescape(["html"]),
        )

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        try:
            template = self.template_env.get_template(f"{template_name}.html")
        except TemplateNotFound:
            raise ValueError(f'Template "{template_name}" not found')
        return template.render(**context)

    async def send_welcome_email(self, to: str, name: str, **context) -> MailResponse:
        html = self.render_template("welcome", dict(context, name=name))
        return await self.mailer.send_mail(to=to, subject="Welcome to Our Platform!", html=html)

    async def send_password_reset_email(
        self, to: str, name: str, reset_link: str, expires_in: str
    ) -> MailResponse:
        html = self.render_template("password-reset", {
            "name": name,
            "reset_link": reset_link,
            "expires_in": expires_in,
        })
        return await self.mailer.send_mail(to=to, subject="Password Reset Request", html=html)

    async def send_invitation_email(
        self, to: str, inviter_name: str, organization_name: str, invite_link: str
    ) -> MailResponse:
        html = self.render_template("invitation", {
            "inviter_name": inviter_name,
            "organization_name": organization_name,
            "invite_link": invite_link,
        })
        return await self.mailer.send_mail(
            to=to,
            subject=f"You've been invited to join {organization_name}",
            html=html,
        )

    async def send_templated_email(
        self, to: Recipients, subject: str, template_name: str, context: Dict[str, Any]
    ) -> MailResponse:
        html = self.render_template(template_name, context)
        return await self.mailer.send_mail(to=to, subject=subject, html=html)

    async def send_email(
        self,
        to: Recipients,
        subject: str,
        text: Optional[str] = None,
        html: Optional[str] = None,
    ) -> MailResponse:
        """Send a plain email without a template."""
        return await self.mailer.send_mail(to=to, subject=subject, text=text, html=html)
