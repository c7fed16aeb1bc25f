"""Domain Layer: value objects, events, errors and the ports infrastructure implements."""
