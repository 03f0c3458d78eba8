from dashmachine.client.infrastructure.gateway_client import (
    GatewayPlatformClient as GatewayPlatformClient,
)

__all__ = ["GatewayPlatformClient"]
