"""Interface for presenting results to the user.

Defines the contract for displaying collected pages, errors, warnings and
informational messages, allowing different UI implementations.
"""

import abc
from typing import Any, List, Mapping, Sequence

from robotevents.domain.models.pagination import PageMeta


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    @abc.abstractmethod
    def display_page_meta(self, resource: str, meta: PageMeta) -> None:
        """Displays the metadata of a single fetched page.

        Args:
            resource: Path of the collection the page belongs to.
            meta: The page's metadata block.
        """
        pass

    @abc.abstractmethod
    def display_items(self, resource: str, items: Sequence[Mapping[str, Any]], limit: int = 20) -> None:
        """Displays a preview of collected items.

        Args:
            resource: Path of the collection.
            items: Items in collection order.
            limit: Maximum number of rows shown.
        """
        pass

    def display_resources(self, resources: Mapping[str, List[str]]) -> None:
        """Displays the named resources and the ids each one needs."""
        pass
