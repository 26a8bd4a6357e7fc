import json
import os
import threading
from typing import Any, Dict, List, Optional

import google_auth_httplib2
import httplib2
from google.auth.exceptions import RefreshError, TransportError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from registration_desk.exceptions import ConfigurationError, SheetsAccessError
from registration_desk.logging_config import get_logger

SCOPES = ['https://www.googleapis.com/auth/spreadsheets']

logger = get_logger("sheets")


# === Column letter helper ===
def column_letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA."""
    letters = ""
    index += 1
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(65 + remainder) + letters
    return letters


# === Credentials ===
def load_credentials(credentials_json: Optional[str] = None,
                     credentials_path: Optional[str] = None,
                     scopes: List[str] = SCOPES):
    """Service account credentials from inline JSON (preferred) or a key file."""
    if credentials_json:
        try:
            info = json.loads(credentials_json)
            return service_account.Credentials.from_service_account_info(info, scopes=scopes)
        except ValueError as e:
            raise ConfigurationError("GOOGLE_CREDENTIALS 環境變數格式錯誤，需為有效的 JSON 字串") from e

    if credentials_path:
        path = os.path.abspath(credentials_path)
        if not os.path.exists(path):
            raise ConfigurationError(f"找不到憑證檔案: {path}")
        return service_account.Credentials.from_service_account_file(path, scopes=scopes)

    raise ConfigurationError("請設定 GOOGLE_CREDENTIALS 或 GOOGLE_CREDENTIALS_PATH 環境變數")


class SheetsGateway:
    """Reads and writes one tab of one spreadsheet.

    The Sheets client is built on first use and kept for the life of the
    process; it is never refreshed. Each request runs over its own
    authorized HTTP transport because httplib2 connections are not
    thread-safe.
    """

    def __init__(self, spreadsheet_id: Optional[str], sheet_name: str,
                 credentials_json: Optional[str] = None,
                 credentials_path: Optional[str] = None,
                 service=None):
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self._credentials_json = credentials_json
        self._credentials_path = credentials_path
        self._credentials = None
        self._sheet_api = service.spreadsheets() if service is not None else None
        self._init_lock = threading.Lock()

    def _get_sheet_api(self):
        if self._sheet_api is not None:
            return self._sheet_api
        with self._init_lock:
            if self._sheet_api is None:
                self._credentials = load_credentials(self._credentials_json, self._credentials_path)
                service = build('sheets', 'v4', credentials=self._credentials, cache_discovery=False)
                self._sheet_api = service.spreadsheets()
                logger.info("Google Sheets client initialized for sheet '%s'", self.sheet_name)
        return self._sheet_api

    def _get_spreadsheet_id(self) -> str:
        if not self.spreadsheet_id:
            raise ConfigurationError("請設定 GOOGLE_SHEET_ID 環境變數")
        return self.spreadsheet_id

    def _execute(self, request) -> Dict[str, Any]:
        try:
            if self._credentials is None:
                return request.execute()
            http = google_auth_httplib2.AuthorizedHttp(self._credentials, http=httplib2.Http())
            return request.execute(http=http)
        except HttpError as e:
            logger.error("Sheets API error on '%s': %s", self.sheet_name, e)
            raise SheetsAccessError(f"無法存取 Google Sheet。錯誤代碼: {e.resp.status}",
                                    http_status=e.resp.status) from e
        except RefreshError as e:
            logger.error("Service account token refresh failed: %s", e)
            raise ConfigurationError("Google 服務帳戶憑證無效或已撤銷，請更新 GOOGLE_CREDENTIALS") from e
        except (OSError, httplib2.HttpLib2Error, TransportError) as e:
            logger.error("Sheets transport error on '%s': %s", self.sheet_name, e)
            raise SheetsAccessError("無法連線至 Google Sheet") from e

    # === Read the whole tab (header row + data rows) ===
    def read_all(self) -> List[List[str]]:
        sheet_api = self._get_sheet_api()
        request = sheet_api.values().get(spreadsheetId=self._get_spreadsheet_id(),
                                         range=self.sheet_name)
        result = self._execute(request)
        values = result.get('values', [])
        logger.debug("Read %d rows from '%s'", len(values), self.sheet_name)
        return values

    # === Write a horizontal run of cells in one row ===
    def write_row_cells(self, row_position: int, start_column: int, values: List[Any]) -> None:
        """Write ``values`` into ``row_position`` starting at 0-based ``start_column``.

        Uses USER_ENTERED so the Sheets API coerces dates and numbers itself.
        """
        sheet_api = self._get_sheet_api()
        end_column = start_column + len(values) - 1
        cell_range = (f"{self.sheet_name}!{column_letter(start_column)}{row_position}:"
                      f"{column_letter(end_column)}{row_position}")
        body = {
            "values": [values]
        }
        request = sheet_api.values().update(
            spreadsheetId=self._get_spreadsheet_id(),
            range=cell_range,
            valueInputOption="USER_ENTERED",
            body=body
        )
        self._execute(request)
        logger.info("Updated %s", cell_range)
