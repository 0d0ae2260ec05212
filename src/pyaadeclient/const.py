"""Constants for the AADE digital client API."""

from .models import Environment

BASE_URLS = {
    Environment.PRODUCTION: "https://mydatapi.aade.gr/DCL/",
    Environment.DEVELOPMENT: "https://mydataapidev.aade.gr/DCL/",
}

SEND_CLIENT_ENDPOINT = "SendClient"
UPDATE_CLIENT_ENDPOINT = "UpdateClient"
CANCEL_CLIENT_ENDPOINT = "CancelClient"
REQUEST_CLIENTS_ENDPOINT = "RequestClients"
CLIENT_CORRELATIONS_ENDPOINT = "ClientCorrelations"

USER_ID_HEADER = "aade-user-id"
SUBSCRIPTION_KEY_HEADER = "ocp-apim-subscription-key"
CONTENT_TYPE_HEADER = "Content-Type"
XML_CONTENT_TYPE = "application/xml; charset=UTF-8"

DEFAULT_HEADERS = {
    "Accept": "application/xml",
    "User-Agent": "pyaadeclient",
}

# Free-text comments sent with rental declarations (Greek, as shown to AADE).
RENTAL_COMMENT = "Ενοικίαση {plate}"
COMPLETION_COMMENT = "Ολοκλήρωση ενοικίασης"

NOT_CONFIGURED_NOTE = "AADE not configured, submission skipped."
