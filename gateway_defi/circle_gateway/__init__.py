"""Circle Gateway integration.

Unified USDC balance across the Gateway Wallet contracts of several chains,
and signed burn intents that mint the balance into a vault on one chain.

- :py:mod:`gateway_defi.circle_gateway.domains` - domain registry
- :py:mod:`gateway_defi.circle_gateway.api` - Gateway REST API client
- :py:mod:`gateway_defi.circle_gateway.burn_intent` - burn intent construction
- :py:mod:`gateway_defi.circle_gateway.signing` - EIP-712 signing
- :py:mod:`gateway_defi.circle_gateway.balance` - unified balance with cache
- :py:mod:`gateway_defi.circle_gateway.service` - orchestration
- :py:mod:`gateway_defi.circle_gateway.server` - HTTP routes
"""
