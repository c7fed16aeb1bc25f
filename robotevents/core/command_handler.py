"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), resolves the named
resource and query, runs the request through a RobotEventsClient and hands
the outcome to the UserInterface.
"""

import json
import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Tuple

from robotevents.core.client import RobotEventsClient
from robotevents.domain.exceptions import RobotEventsError
from robotevents.domain.interfaces.user_interface import UserInterface
from robotevents.domain.models.query import Query
from robotevents.domain.models.resources import RESOURCE_TEMPLATES, required_ids, resource_path

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], RobotEventsClient]


class CommandHandler:
    """Handles incoming commands and delegates to the client."""

    def __init__(self, client_factory: ClientFactory, ui: UserInterface):
        """Initializes the CommandHandler.

        Args:
            client_factory: Builds a fresh client per command; the client is
                closed when the command finishes.
            ui: Where results and errors are shown.
        """
        self.client_factory = client_factory
        self.ui = ui

    def _resolve(
        self, resource: str, ids: Dict[str, int], params: Iterable[str], per_page: Optional[int],
    ) -> Tuple[str, Query]:
        path = resource_path(resource, **ids)
        query = Query.from_pairs(params)
        if per_page is not None:
            query = query.with_per_page(per_page)
        return path, query

    async def handle_collect(
        self,
        resource: str,
        ids: Dict[str, int],
        params: Iterable[str] = (),
        per_page: Optional[int] = None,
        output: Optional[Path] = None,
    ) -> bool:
        """Handles the 'collect' command. Returns True on success."""
        logger.info(f"Handling 'collect' for resource: {resource} ids={ids}")
        try:
            path, query = self._resolve(resource, ids, params, per_page)
        except (KeyError, ValueError) as e:
            self.ui.display_error(str(e).strip("'\""))
            return False

        try:
            async with self.client_factory() as client:
                items = await client.collect_all(path, query)
        except RobotEventsError as e:
            logger.error(f"Collect command failed for {path}: {e}")
            self.ui.display_error(f"Collection of {path} failed: {e}")
            return False

        self.ui.display_items(path, items)
        if output is not None:
            try:
                output.write_text(json.dumps(items, indent=2, ensure_ascii=False), encoding="utf-8")
            except (OSError, TypeError) as e:
                logger.error(f"Failed to write {output}: {e}", exc_info=True)
                self.ui.display_error(f"Could not write output file {output}: {e}")
                return False
            self.ui.display_info(f"Wrote {len(items)} item(s) to {output}")
        return True

    async def handle_page(
        self,
        resource: str,
        ids: Dict[str, int],
        params: Iterable[str] = (),
        page: int = 1,
        per_page: Optional[int] = None,
    ) -> bool:
        """Handles the 'page' command. Returns True on success."""
        logger.info(f"Handling 'page' for resource: {resource} ids={ids} page={page}")
        try:
            path, query = self._resolve(resource, ids, params, per_page)
        except (KeyError, ValueError) as e:
            self.ui.display_error(str(e).strip("'\""))
            return False

        try:
            async with self.client_factory() as client:
                result = await client.fetch_page(path, query, page=page)
        except RobotEventsError as e:
            logger.error(f"Page command failed for {path}: {e}")
            self.ui.display_error(f"Fetching page {page} of {path} failed: {e}")
            return False

        self.ui.display_page_meta(path, result.meta)
        self.ui.display_items(path, result.items)
        return True

    def handle_list_resources(self) -> None:
        """Handles the 'resources' command."""
        self.ui.display_resources({name: required_ids(name) for name in RESOURCE_TEMPLATES})
