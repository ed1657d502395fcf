"""
Access to secrets stored in Google Secret Manager.
"""

import json
from functools import lru_cache

from google.cloud import secretmanager

from util.constants import GCP_PROJECT, SERVICE_ACCOUNT_FILE, SERVICE_ACCOUNT_SECRET


@lru_cache
def get_secret_client() -> secretmanager.SecretManagerServiceClient:
    return secretmanager.SecretManagerServiceClient()


def get_secret(secret_id: str, version: str = "latest") -> str:
    """
    Reads the payload of a secret version from Secret Manager
    """
    name = f"projects/{GCP_PROJECT}/secrets/{secret_id}/versions/{version}"
    response = get_secret_client().access_secret_version(request={"name": name})
    return response.payload.data.decode("UTF-8")


@lru_cache
def get_service_account_info() -> dict:
    """
    The service account key used to authenticate push deliveries.

    Read from TIPS_SERVICE_ACCOUNT_FILE when set, otherwise from Secret Manager.
    """
    if SERVICE_ACCOUNT_FILE:
        with open(SERVICE_ACCOUNT_FILE, "r") as f:
            return json.load(f)
    return json.loads(get_secret(SERVICE_ACCOUNT_SECRET))
