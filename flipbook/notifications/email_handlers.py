from flipbook.services import email_service
from flipbook.utils.template import render_template
from flipbook.config import settings


def send_user_email(template, subject, to, **ctx) -> bool:
    html = render_template(template, site_name=settings.site_name, **ctx)
    return email_service.send_email(to=to, subject=subject, html=html)


def send_admin_email(template, subject, **ctx) -> bool:
    if not settings.admin_email:
        return False
    html = render_template(template, site_name=settings.site_name, **ctx)
    return email_service.send_email(to=settings.admin_email, subject=subject, html=html)
