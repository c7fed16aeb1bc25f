"""API Resilience Implementations.

Contains the throttle-aware requester and the helpers that read the
server's rate-limit headers.
Bounded Context: API Resilience
"""
