"""Outreach email content."""
from __future__ import annotations

from dataclasses import dataclass

from jinja2 import DictLoader, Environment, select_autoescape

from ..models import ContactRecord


@dataclass(frozen=True)
class TemplateSettings:
    """Branding used in the message body and signature."""

    organisation: str = "WhiteCoat DVM"
    signer: str = "Mitch Bratton"
    website: str = "https://whitecoatdvm.com"
    logo_url: str = "https://i.imgur.com/t9F7dAa.png"
    monthly_price: str = "$20"
    partner_share: str = "$10"


@dataclass(frozen=True)
class OutreachMessage:
    subject: str
    text: str
    html: str


SUBJECT = "Partnership opportunity for {{ name }}"

TEXT_BODY = """Hi {{ name }} Team,

I'm reaching out from {{ organisation }}, a 24/7 virtual vet care service available in all 50 states.

We'd like to partner with {{ name }} to offer your adopters, social media followers, and supporters access to unlimited virtual veterinary consultations for just {{ price }}/month, and you earn {{ share }}/month for every subscriber you refer.

Here's how it works:
- Subscribers pay {{ price }}/month for unlimited 24/7 virtual vet consultations
- You earn {{ share }}/month per active subscriber
- Promote to your adopters, social followers, email list, anyone!
- Available nationwide in all 50 states

Why this works for shelters:
- New adopters get immediate vet access for those "is this normal?" questions
- Reduces returns due to unexpected health concerns
- Creates sustainable recurring revenue for your organization

Would you have 15 minutes this week to discuss? I can also send over materials you can share with your community.

Best,
{{ signer }}
{{ organisation }}
{{ website }}"""

HTML_BODY = """<!DOCTYPE html>
<html>
<head>
    <style>
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
        .container { max-width: 600px; margin: 0 auto; padding: 20px; }
        .panel { background: #e8f4f8; padding: 15px; border-radius: 8px; margin: 20px 0; }
        .panel li { margin: 8px 0; }
        .signature { margin-top: 30px; color: #666; }
    </style>
</head>
<body>
    <div class="container">
        <div style="text-align: center; margin-bottom: 30px;">
            <img src="{{ logo_url }}" alt="{{ organisation }}" style="max-width: 200px; height: auto;">
        </div>
        <p>Hi {{ name }} Team,</p>
        <p>I'm reaching out from <strong>{{ organisation }}</strong>, a 24/7 virtual vet care service available in <strong>all 50 states</strong>.</p>
        <p>We'd like to partner with <strong>{{ name }}</strong> to offer your adopters, social media followers, and supporters access to unlimited virtual veterinary consultations for just <strong>{{ price }}/month</strong>, and you earn <strong>{{ share }}/month</strong> for every subscriber you refer.</p>
        <div class="panel">
            <p><strong>Here's how it works:</strong></p>
            <ul>
                <li>Subscribers pay {{ price }}/month for unlimited 24/7 virtual vet consultations</li>
                <li>You earn {{ share }}/month per active subscriber</li>
                <li>Promote to your adopters, social followers, email list, anyone!</li>
                <li>Available nationwide in all 50 states</li>
            </ul>
        </div>
        <p><strong>Would you have 15 minutes this week to discuss?</strong> I can also send over materials you can share with your community.</p>
        <div class="signature">
            <p>Best,<br>
            <strong>{{ signer }}</strong><br>
            {{ organisation }}<br>
            <a href="{{ website }}">{{ website }}</a></p>
        </div>
    </div>
</body>
</html>"""


_env = Environment(
    loader=DictLoader({"subject.txt": SUBJECT, "outreach.txt": TEXT_BODY, "outreach.html": HTML_BODY}),
    autoescape=select_autoescape(["html"]),
)


def render_outreach(contact: ContactRecord, settings: TemplateSettings | None = None) -> OutreachMessage:
    settings = settings or TemplateSettings()
    context = {
        "name": contact.name,
        "organisation": settings.organisation,
        "signer": settings.signer,
        "website": settings.website,
        "logo_url": settings.logo_url,
        "price": settings.monthly_price,
        "share": settings.partner_share,
    }
    return OutreachMessage(
        subject=_env.get_template("subject.txt").render(context),
        text=_env.get_template("outreach.txt").render(context),
        html=_env.get_template("outreach.html").render(context),
    )


__all__ = ["TemplateSettings", "OutreachMessage", "render_outreach"]
