"""Shared API dependencies for relay state and the chain client."""

from typing import Annotated

from fastapi import Depends

from octchat.services.octra import OctraClient, get_octra_client
from octchat.services.relay import Relay, get_relay


def get_relay_dep() -> Relay:
    """Return the relay instance serving this process."""
    return get_relay()


def get_octra_client_dep() -> OctraClient:
    """Return the shared Octra RPC client."""
    return get_octra_client()


RelayDep = Annotated[Relay, Depends(get_relay_dep)]
OctraClientDep = Annotated[OctraClient, Depends(get_octra_client_dep)]
