"""
Snow globe relay service package.

This service is responsible for:
- Tracking WebSocket connections from phone controllers and wall displays.
- Validating, rate limiting and normalizing shake events from controllers.
- Broadcasting shakes, strong motion samples, presence and stats to displays.

The HTTP/WebSocket server is implemented with Tornado.
"""
