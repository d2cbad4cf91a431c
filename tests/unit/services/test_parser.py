from listpilot.schemas.job import Contact
from listpilot.services.jobs.parser import parse_contacts


def test_parse_mixed_input():
    contacts = parse_contacts("a@x.com,Jo,Do\n\n b@x.com \n,NoEmail")
    assert contacts == [
        Contact(email="a@x.com", first_name="Jo", last_name="Do"),
        Contact(email="b@x.com", first_name="", last_name=""),
    ]


def test_parse_trims_fields_and_ignores_extra_columns():
    contacts = parse_contacts("  c@x.com ,  Cy , Cole , extra,more  ")
    assert contacts == [Contact(email="c@x.com", first_name="Cy", last_name="Cole")]


def test_parse_first_name_only():
    assert parse_contacts("d@x.com,Di") == [Contact(email="d@x.com", first_name="Di")]


def test_parse_keeps_input_order_and_duplicates():
    emails = [c.email for c in parse_contacts("b@x.com\na@x.com\nb@x.com")]
    assert emails == ["b@x.com", "a@x.com", "b@x.com"]


def test_parse_windows_line_endings():
    assert len(parse_contacts("a@x.com\r\nb@x.com\r\n")) == 2


def test_parse_nothing_valid():
    assert parse_contacts("") == []
    assert parse_contacts("   \n\n , Jo , Do\n,") == []
