# nutshell/core/__init__.py
"""
Core application modules.
Contains the infrastructure shared by the API and the client:
- db: Database configuration and connection management
- envelope: The {type, data} push message contract
- pubsub: Broadcast hub that fans envelopes out to every open WebSocket
"""
