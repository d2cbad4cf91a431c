"""
Client for the Brevo v3 HTTP API.

Proxy operations raise ProviderError on failure. `create_contact`, used by the
import job engine, never raises: it folds every outcome into a
ContactSubmission so that a failing contact is recorded and the job moves on.
"""
import json
import logging
from typing import Any, Dict, List, NamedTuple, Optional, Tuple
from urllib.parse import quote

import httpx

from listpilot.core.config import settings
from listpilot.core.exceptions import ProviderAuthError, ProviderError, ValidationError
from listpilot.schemas.account import ConnectionStatus
from listpilot.schemas.job import Contact
from listpilot.schemas.provider import TemplateUpdate

logger = logging.getLogger("listpilot.provider")

# Brevo answers 201 for a created contact and 204 for an updated one
CONTACT_SUCCESS_CODES = (201, 204)


class ContactSubmission(NamedTuple):
    """Outcome of submitting one contact."""
    success: bool
    status_code: Optional[int]
    body: Any


def parse_response_body(response: httpx.Response) -> Any:
    """
    Decode a response body.

    Empty bodies become {"status": code}; bodies that are not JSON are kept as
    {"rawResponse": text, "status": code}.
    """
    text = response.text
    if not text:
        return {"status": response.status_code}
    try:
        return json.loads(text)
    except ValueError:
        return {"rawResponse": text, "status": response.status_code}


def _compact_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """Drop filters the caller did not set."""
    return {k: v for k, v in params.items() if v is not None and v != ""}


class BrevoClient:
    """
    Thin async wrapper around the Brevo API for one account's API key.

    Usage:
        async with BrevoClient(api_key) as brevo:
            lists = await brevo.get_lists()
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not api_key:
            raise ValidationError(message="Brevo API key is missing")

        self._client = httpx.AsyncClient(
            base_url=base_url or settings.BREVO_BASE_URL,
            headers={
                "api-key": api_key,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=timeout if timeout is not None else settings.BREVO_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "BrevoClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        """
        Send a request and raise ProviderError for transport or HTTP errors.
        """
        logger.info(f"Calling Brevo: {method} {path}")
        try:
            response = await self._client.request(method, path, params=params, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Brevo {method} {path} failed: {type(e).__name__}: {e}")
            raise ProviderError(
                message=f"Could not reach Brevo: {e}",
                details={"message": str(e)},
            )

        logger.info(f"Brevo {method} {path} responded {response.status_code}")
        if response.is_error:
            details = parse_response_body(response)
            logger.error(f"Brevo {method} {path} failed: Status={response.status_code} {details}")
            if response.status_code == 401:
                raise ProviderAuthError(details={"response": details})
            raise ProviderError(
                message=f"Brevo request failed (Status: {response.status_code})",
                status_code=response.status_code,
                details={"response": details},
            )
        return response

    # Contacts

    async def create_contact(self, list_id: str, contact: Contact) -> ContactSubmission:
        """
        Add one contact to one list.

        Success is a 201 or 204 answer; anything else, including network
        failures, is returned as an unsuccessful submission.
        """
        try:
            list_ids = [int(list_id)]
        except (TypeError, ValueError):
            return ContactSubmission(False, None, {"message": f"Invalid list id: {list_id!r}"})

        attributes = {}
        if contact.first_name:
            attributes["FIRSTNAME"] = contact.first_name
        if contact.last_name:
            attributes["LASTNAME"] = contact.last_name

        payload = {
            "email": contact.email,
            "attributes": attributes,
            "listIds": list_ids,
            "updateEnabled": False,
        }

        try:
            response = await self._client.post("/contacts", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Failed importing {contact.email}: {type(e).__name__}: {e}")
            return ContactSubmission(False, None, {"message": str(e) or type(e).__name__})

        body = parse_response_body(response)
        if response.status_code in CONTACT_SUCCESS_CODES:
            logger.debug(f"Imported {contact.email} into list {list_id}: {response.status_code}")
            return ContactSubmission(True, response.status_code, body)

        logger.error(f"Failed importing {contact.email}: Status={response.status_code} {body}")
        return ContactSubmission(False, response.status_code, body)

    async def get_list_contacts(self, list_id: str, *, page: int, per_page: int) -> Dict[str, Any]:
        """
        Get one page of a list's contacts.

        Returns:
            Dict: {"contacts": [...], "total": int}
        """
        offset = (page - 1) * per_page
        response = await self._request(
            "GET",
            f"/contacts/lists/{list_id}/contacts",
            params={"limit": per_page, "offset": offset},
        )
        data = parse_response_body(response)
        if isinstance(data, dict) and "contacts" in data and "count" in data:
            return {"contacts": data["contacts"], "total": data["count"]}

        logger.error(f"Unexpected list contacts response for list {list_id}: {data}")
        return {"contacts": [], "total": 0}

    async def delete_contacts(self, emails: List[str]) -> Dict[str, List[Any]]:
        """
        Delete contacts one by one.

        Returns:
            Dict: {"success": [email, ...], "failed": [{"email", "reason"}, ...]}
        """
        results: Dict[str, List[Any]] = {"success": [], "failed": []}
        for email in emails:
            try:
                response = await self._request("DELETE", f"/contacts/{quote(email, safe='')}")
            except ProviderError as e:
                response_details = e.details.get("response")
                reason = None
                if isinstance(response_details, dict):
                    reason = response_details.get("message")
                results["failed"].append({"email": email, "reason": reason or e.message})
                continue

            if response.status_code == 204:
                results["success"].append(email)
            else:
                results["failed"].append({"email": email, "reason": f"Unexpected status {response.status_code}"})

        logger.info(f"Deleted {len(results['success'])} contacts, {len(results['failed'])} failed")
        return results

    # Account

    async def get_account(self) -> Dict[str, Any]:
        """Get the Brevo account the key belongs to."""
        response = await self._request("GET", "/account")
        return parse_response_body(response)

    async def check_status(self) -> Tuple[ConnectionStatus, Any]:
        """
        Probe the API key.

        Returns:
            Tuple: (status, account payload or error details)
        """
        try:
            return ConnectionStatus.CONNECTED, await self.get_account()
        except ProviderError as e:
            return ConnectionStatus.FAILED, e.details.get("response", {"message": e.message})

    # Lists

    async def get_lists(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Get contact lists as [{"id", "name"}]."""
        response = await self._request(
            "GET",
            "/contacts/lists",
            params={"limit": limit or settings.BREVO_LISTS_LIMIT},
        )
        data = parse_response_body(response)
        if isinstance(data, dict) and isinstance(data.get("lists"), list):
            return [{"id": l["id"], "name": l["name"]} for l in data["lists"]]

        raise ProviderError(message="Unexpected response fetching lists.", status_code=500)

    # Senders

    async def get_senders(self) -> List[Dict[str, Any]]:
        """Get sender identities."""
        response = await self._request("GET", "/senders")
        data = parse_response_body(response)
        if isinstance(data, dict) and isinstance(data.get("senders"), list):
            return [
                {"id": s["id"], "name": s["name"], "email": s["email"], "active": s.get("active")}
                for s in data["senders"]
            ]

        raise ProviderError(message="Unexpected response fetching senders.", status_code=500)

    async def update_sender(self, sender_id: str, name: str) -> None:
        """Rename a sender."""
        await self._request("PUT", f"/senders/{sender_id}", payload={"name": name})

    # SMTP statistics

    async def get_aggregated_report(self, **filters: Any) -> Dict[str, Any]:
        """Aggregated SMTP statistics (days, startDate, endDate, tag)."""
        response = await self._request(
            "GET", "/smtp/statistics/aggregatedReport", params=_compact_params(filters)
        )
        data = parse_response_body(response)
        if isinstance(data, dict):
            return data

        raise ProviderError(message="Unexpected response for aggregated stats.", status_code=500)

    async def get_reports(self, **filters: Any) -> List[Dict[str, Any]]:
        """Daily SMTP reports."""
        response = await self._request(
            "GET", "/smtp/statistics/reports", params=_compact_params(filters)
        )
        data = parse_response_body(response)
        if isinstance(data, dict) and isinstance(data.get("reports"), list):
            return data["reports"]
        return []

    async def get_events(self, **filters: Any) -> List[Dict[str, Any]]:
        """Transactional email events (delivered, bounces, opens, ...)."""
        response = await self._request(
            "GET", "/smtp/statistics/events", params=_compact_params(filters)
        )
        data = parse_response_body(response)
        if isinstance(data, dict) and isinstance(data.get("events"), list):
            return data["events"]
        return []

    # SMTP templates

    async def get_templates(
        self,
        *,
        template_status: Optional[bool] = True,
        limit: int = 50,
        offset: int = 0,
        sort: str = "desc"
    ) -> Dict[str, Any]:
        """Get SMTP templates as {"templates", "count"}."""
        params = {"limit": limit, "offset": offset, "sort": sort}
        if template_status is not None:
            params["templateStatus"] = template_status

        response = await self._request("GET", "/smtp/templates", params=params)
        data = parse_response_body(response)
        if isinstance(data, dict) and isinstance(data.get("templates"), list):
            return {"templates": data["templates"], "count": data.get("count", len(data["templates"]))}
        return {"templates": [], "count": 0}

    async def update_template(self, template_id: str, update: TemplateUpdate) -> bool:
        """
        Update an SMTP template.

        Returns:
            bool: False when the update carried nothing to change
        """
        payload = build_template_payload(update)
        if not payload:
            logger.info(f"No valid fields provided to update template {template_id}")
            return False

        await self._request("PUT", f"/smtp/templates/{template_id}", payload=payload)
        return True


def build_template_payload(update: TemplateUpdate) -> Dict[str, Any]:
    """
    Build the Brevo template update body.

    A sender needs an email or an id (email preferred); its name is only sent
    when non-empty. A name-only sender is passed through as is.
    """
    payload: Dict[str, Any] = {}
    if update.subject is not None:
        payload["subject"] = update.subject
    if update.html_content is not None:
        payload["htmlContent"] = update.html_content

    sender = update.sender
    if sender is not None:
        if sender.email or sender.id:
            payload["sender"] = {}
            if sender.name:
                payload["sender"]["name"] = sender.name
            if sender.email:
                payload["sender"]["email"] = sender.email
            else:
                payload["sender"]["id"] = sender.id
        elif sender.name:
            logger.warning("Updating template sender with name only; Brevo may require an email or id")
            payload["sender"] = {"name": sender.name}
        else:
            logger.warning(f"Ignoring invalid template sender: {sender}")

    return payload
