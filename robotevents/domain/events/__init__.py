"""Domain Event definitions.

Represents significant occurrences (requests, throttles, retries, collected
pages) that logging or callers may react to.
"""
