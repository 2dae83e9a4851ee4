"""Named player actions expanded into server console commands.

Names and free-text arguments are interpolated verbatim; the server console
has no quoting, so callers must not rely on this for untrusted input.
"""

from collections import namedtuple

from mccontrol.core.errors import EmptyCommand, NotRunning, UnknownAction
from mccontrol.services import supervisor as supervisor_service

ActionTemplate = namedtuple("ActionTemplate", ["template", "default_extra", "requires_extra"])

PLAYER_ACTIONS = {
    "kick": ActionTemplate("kick {name} {extra}", "Kicked by admin", False),
    "ban": ActionTemplate("ban {name} {extra}", "Banned by admin", False),
    "unban": ActionTemplate("pardon {name}", None, False),
    "op": ActionTemplate("op {name}", None, False),
    "deop": ActionTemplate("deop {name}", None, False),
    "gamemode": ActionTemplate("gamemode {extra} {name}", "survival", False),
    "survival": ActionTemplate("gamemode survival {name}", None, False),
    "creative": ActionTemplate("gamemode creative {name}", None, False),
    "spectator": ActionTemplate("gamemode spectator {name}", None, False),
    "adventure": ActionTemplate("gamemode adventure {name}", None, False),
    "tp": ActionTemplate("tp {name} {extra}", None, True),
    "heal": ActionTemplate("effect give {name} minecraft:instant_health 1 255", None, False),
    "feed": ActionTemplate("effect give {name} minecraft:saturation 1 255", None, False),
    "kill": ActionTemplate("kill {name}", None, False),
    "invsee": ActionTemplate("invsee {name}", None, False),
}


def build_player_command(action, name, extra=None):
    """Return the console command for ``action`` applied to ``name``."""
    action_template = PLAYER_ACTIONS.get((action or "").strip().lower())
    if action_template is None:
        raise UnknownAction()
    name = (name or "").strip()
    if not name:
        raise EmptyCommand("Player name is required")
    extra = (extra or "").strip() or action_template.default_extra
    if action_template.requires_extra and not extra:
        raise UnknownAction(f"{action} requires a destination")
    return action_template.template.format(name=name, extra=extra or "")


def run_player_action(ctx, action, name, extra=None):
    """Expand and send a player action; the server must be running."""
    if not supervisor_service.is_running(ctx):
        raise NotRunning()
    command = build_player_command(action, name, extra)
    return supervisor_service.send_command(ctx, command)
