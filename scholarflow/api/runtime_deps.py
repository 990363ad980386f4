from __future__ import annotations

from scholarflow.services.domains.orcid.client import create_orcid_client
from scholarflow.services.domains.profiles.orcid_import import OrcidClientFactory


def get_orcid_client_factory() -> OrcidClientFactory:
    return create_orcid_client
