"""Paths of the paginated collections exposed by the v2 API.

Only collection endpoints are listed; single-object lookups such as
``/teams/{id}`` are not paginated and are not part of the client.
"""

import string
from typing import Dict, List

from robotevents.domain.models.common import ResourcePath

# Named collections, keyed by the name used on the command line.
RESOURCE_TEMPLATES: Dict[str, str] = {
    "teams": "/teams",
    "team-events": "/teams/{team_id}/events",
    "team-matches": "/teams/{team_id}/matches",
    "team-rankings": "/teams/{team_id}/rankings",
    "team-skills": "/teams/{team_id}/skills",
    "team-awards": "/teams/{team_id}/awards",
    "seasons": "/seasons",
    "season-events": "/seasons/{season_id}/events",
    "programs": "/programs",
    "events": "/events",
    "event-teams": "/events/{event_id}/teams",
    "event-skills": "/events/{event_id}/skills",
    "event-awards": "/events/{event_id}/awards",
    "division-matches": "/events/{event_id}/divisions/{division_id}/matches",
    "division-rankings": "/events/{event_id}/divisions/{division_id}/rankings",
    "division-finalist-rankings": "/events/{event_id}/divisions/{division_id}/finalistRankings",
}


def required_ids(name: str) -> List[str]:
    """Returns the placeholder names a resource template needs, in order."""
    template = _template(name)
    return [field for _, field, _, _ in string.Formatter().parse(template) if field]


def resource_path(name: str, **ids: int) -> ResourcePath:
    """Resolves a named resource into a concrete path.

    Raises:
        KeyError: If the resource name is unknown.
        ValueError: If an id the template needs is missing.
    """
    template = _template(name)
    missing = [field for field in required_ids(name) if field not in ids]
    if missing:
        raise ValueError(f"Resource '{name}' requires: {', '.join(missing)}")
    return ResourcePath(template.format(**ids))


def _template(name: str) -> str:
    try:
        return RESOURCE_TEMPLATES[name]
    except KeyError:
        raise KeyError(f"Unknown resource '{name}'. Known: {', '.join(sorted(RESOURCE_TEMPLATES))}") from None


# --- Convenience builders ---

def teams() -> ResourcePath:
    return resource_path("teams")


def team_events(team_id: int) -> ResourcePath:
    return resource_path("team-events", team_id=team_id)


def team_matches(team_id: int) -> ResourcePath:
    return resource_path("team-matches", team_id=team_id)


def team_rankings(team_id: int) -> ResourcePath:
    return resource_path("team-rankings", team_id=team_id)


def team_skills(team_id: int) -> ResourcePath:
    return resource_path("team-skills", team_id=team_id)


def team_awards(team_id: int) -> ResourcePath:
    return resource_path("team-awards", team_id=team_id)


def seasons() -> ResourcePath:
    return resource_path("seasons")


def season_events(season_id: int) -> ResourcePath:
    return resource_path("season-events", season_id=season_id)


def programs() -> ResourcePath:
    return resource_path("programs")


def events() -> ResourcePath:
    return resource_path("events")


def event_teams(event_id: int) -> ResourcePath:
    return resource_path("event-teams", event_id=event_id)


def event_skills(event_id: int) -> ResourcePath:
    return resource_path("event-skills", event_id=event_id)


def event_awards(event_id: int) -> ResourcePath:
    return resource_path("event-awards", event_id=event_id)


def division_matches(event_id: int, division_id: int) -> ResourcePath:
    return resource_path("division-matches", event_id=event_id, division_id=division_id)


def division_rankings(event_id: int, division_id: int) -> ResourcePath:
    return resource_path("division-rankings", event_id=event_id, division_id=division_id)


def division_finalist_rankings(event_id: int, division_id: int) -> ResourcePath:
    return resource_path("division-finalist-rankings", event_id=event_id, division_id=division_id)
