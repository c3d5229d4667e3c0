import json
import logging
from typing import List, Optional
from google.oauth2 import service_account
from googleapiclient.discovery import build
from config import config

logger = logging.getLogger("crm_drive.google_auth")


class GoogleAuthService:
    """
    Service Account authentication for one named Google endpoint.
    Supports Domain-Wide Delegation (impersonation) if GOOGLE_IMPERSONATE_EMAIL is set.
    """

    def __init__(self, scopes: List[str], api_endpoint: Optional[str] = None):
        self.scopes = scopes
        self.api_endpoint = api_endpoint
        self.creds = None
        self._authenticate()

    def _authenticate(self):
        if not config.GOOGLE_SERVICE_ACCOUNT_JSON:
            logger.warning("GOOGLE_SERVICE_ACCOUNT_JSON not set. Google Drive calls will fail.")
            return

        try:
            # Inline JSON or a path to the key file
            if config.GOOGLE_SERVICE_ACCOUNT_JSON.strip().startswith("{"):
                info = json.loads(config.GOOGLE_SERVICE_ACCOUNT_JSON)
                self.creds = service_account.Credentials.from_service_account_info(info, scopes=self.scopes)
            else:
                self.creds = service_account.Credentials.from_service_account_file(
                    config.GOOGLE_SERVICE_ACCOUNT_JSON, scopes=self.scopes
                )

            if config.GOOGLE_IMPERSONATE_EMAIL:
                logger.info("Authentication: impersonating Workspace user", extra={"endpoint": self.api_endpoint})
                self.creds = self.creds.with_subject(config.GOOGLE_IMPERSONATE_EMAIL)

        except (ValueError, OSError) as e:
            logger.error(f"Authentication failed: {e}", extra={"endpoint": self.api_endpoint})
            self.creds = None

    def get_service(self, service_name: str, version: str):
        if not self.creds:
            return None
        client_options = {"api_endpoint": self.api_endpoint} if self.api_endpoint else None
        return build(
            service_name,
            version,
            credentials=self.creds,
            client_options=client_options,
            cache_discovery=False,
        )
