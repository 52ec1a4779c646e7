from shelter_outreach.models import ContactRecord
from shelter_outreach.senders.templates import TemplateSettings, render_outreach


def test_render_outreach_personalises_every_part():
    message = render_outreach(ContactRecord(name="Austin Pets Alive", email="info@austinpetsalive.org"))

    assert message.subject == "Partnership opportunity for Austin Pets Alive"
    assert message.text.startswith("Hi Austin Pets Alive Team,")
    assert "<strong>Austin Pets Alive</strong>" in message.html


def test_html_body_escapes_names():
    message = render_outreach(ContactRecord(name="Cats & Dogs <Rescue>", email="a@b.org"))

    assert "Cats &amp; Dogs &lt;Rescue&gt;" in message.html
    assert "Cats & Dogs <Rescue>" in message.text


def test_custom_settings():
    settings = TemplateSettings(organisation="Vet Line", signer="Sam", monthly_price="$15", partner_share="$5")

    message = render_outreach(ContactRecord(name="Shelter"), settings)

    assert "$15/month" in message.text
    assert "$5/month" in message.text
    assert message.text.rstrip().endswith("Sam\nVet Line\nhttps://whitecoatdvm.com")
