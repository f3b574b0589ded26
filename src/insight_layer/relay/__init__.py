from insight_layer.relay.protocol import ClusterRelay
from insight_layer.relay.http_relay_client import HttpRelayClient

__all__ = ["ClusterRelay", "HttpRelayClient"]
