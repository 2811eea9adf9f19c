from fastapi import Request

from peerlink.services.connection_hub import ConnectionHub
from peerlink.services.relay import SignalingRelay


def get_relay(request: Request) -> SignalingRelay:
    return request.app.state.relay


def get_hub(request: Request) -> ConnectionHub:
    return request.app.state.hub
