# listpilot/services/jobs/parser.py
"""
Parsing of pasted contact batches.

Each line is `email[,firstName[,lastName]]`. Blank lines and lines without an
email are skipped without error; extra columns are ignored.
"""
from typing import List

from listpilot.schemas.job import Contact


def parse_contacts(raw_text: str) -> List[Contact]:
    """
    Parse raw multi-line text into contacts, preserving input order.

    Args:
        raw_text: Text with one contact per line

    Returns:
        List[Contact]: Parsed contacts (possibly empty)
    """
    contacts = []
    for line in (raw_text or "").splitlines():
        line = line.strip()
        if not line:
            continue

        fields = [field.strip() for field in line.split(",")]
        email = fields[0]
        if not email:
            continue

        contacts.append(Contact(
            email=email,
            first_name=fields[1] if len(fields) > 1 else "",
            last_name=fields[2] if len(fields) > 2 else "",
        ))

    return contacts
