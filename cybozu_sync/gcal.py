from __future__ import annotations

import datetime as dt
import logging
from typing import List

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from .models import Event, SyncPlan, SyncResult

SCOPES = ["https://www.googleapis.com/auth/calendar"]


def _load_credentials(client_secrets_file: str, token_file: str) -> Credentials:
    creds = None
    if token_file:
        try:
            creds = Credentials.from_authorized_user_file(token_file, SCOPES)
        except (OSError, ValueError):
            creds = None
    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            creds.refresh(Request())
        else:
            flow = InstalledAppFlow.from_client_secrets_file(client_secrets_file, SCOPES)
            creds = flow.run_local_server(port=0)
        with open(token_file, "w") as token:
            token.write(creds.to_json())
    return creds


def build_service(client_secrets_file: str, token_file: str):
    creds = _load_credentials(client_secrets_file, token_file)
    return build("calendar", "v3", credentials=creds)


class CalendarStore:
    """The three Calendar API calls the sync needs, bound to one calendar."""

    def __init__(self, service, calendar_id: str):
        self.service = service
        self.calendar_id = calendar_id

    def list(self, time_min: dt.datetime, time_max: dt.datetime) -> List[Event]:
        logging.info("Fetching existing events from %s to %s", time_min, time_max)
        events: List[Event] = []
        page_token = None
        while True:
            events_result = (
                self.service.events()
                .list(
                    calendarId=self.calendar_id,
                    timeMin=time_min.isoformat(),
                    timeMax=time_max.isoformat(),
                    singleEvents=True,
                    orderBy="startTime",
                    showDeleted=False,
                    maxResults=2500,
                    pageToken=page_token,
                )
                .execute()
            )
            for item in events_result.get("items", []):
                try:
                    events.append(Event.from_gcal(item))
                except ValueError as exc:
                    logging.warning("Ignoring event %s with unreadable times: %s", item.get("id"), exc)
            page_token = events_result.get("nextPageToken")
            if not page_token:
                break
        logging.info("Found %d existing events", len(events))
        return events

    def insert(self, event: Event) -> Event:
        created = self.service.events().insert(calendarId=self.calendar_id, body=event.to_gcal_body()).execute()
        return Event.from_gcal(created)

    def delete(self, event_id: str) -> None:
        self.service.events().delete(calendarId=self.calendar_id, eventId=event_id, sendUpdates="all").execute()


def apply_plan(store: CalendarStore, plan: SyncPlan, dry_run: bool = False) -> SyncResult:
    """Insert then delete, one call at a time.

    A failed call is logged and recorded in the result; the remaining actions
    are still attempted.
    """
    result = SyncResult()

    logging.info("Inserting %d new events...", len(plan.to_insert))
    for event in plan.to_insert:
        if dry_run:
            logging.info("[dry-run] Insert: %s %s-%s", event.summary, event.start, event.end)
            continue
        try:
            store.insert(event)
        except Exception as exc:
            logging.error("Failed to insert %s %s-%s: %s", event.summary, event.start, event.end, exc)
            result.errors.append(f"insert {event.summary}: {exc}")
            continue
        logging.info("Inserted: %s", event.summary)
        result.inserted += 1
    logging.info("Inserted %d events.", result.inserted)

    logging.info("Deleting %d removed events...", len(plan.to_delete))
    for event in plan.to_delete:
        if dry_run:
            logging.info("[dry-run] Delete: %s %s-%s", event.summary, event.start, event.end)
            continue
        try:
            store.delete(event.id)
        except Exception as exc:
            logging.error("Failed to delete %s (%s): %s", event.summary, event.id, exc)
            result.errors.append(f"delete {event.summary}: {exc}")
            continue
        logging.info("Deleted: %s", event.summary)
        result.deleted += 1
    logging.info("Deleted %d events.", result.deleted)

    logging.info("Sync complete. %d inserted, %d deleted, %d failed", result.inserted, result.deleted, len(result.errors))
    return result
