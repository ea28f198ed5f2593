"""Lock command parsing - turns `.lock`/`.unlock` comments into LockCommands."""

from src.coordination.requests import LockCommand

from .config import Settings

DETAILS_FLAGS = ("--details", "--info")
TASK_FLAG = "--task"
REASON_FLAG = "--reason"


class CommandError(ValueError):
    """A lock command with arguments it cannot place."""


def parse_lock_command(body: str, settings: Settings) -> LockCommand | None:
    """Parse a lock, unlock, or lock-info comment.

    Recognised forms::

        .lock [<environment>] [--reason <text>] [--task <name>] [--details|--info] [--global]
        .unlock [<environment>] [--task <name>] [--global]
        .wcid [<environment>] [--task <name>] [--global]

    Returns None when the comment is not a lock command.

    Raises:
        CommandError: a bare argument follows the environment or a flag
    """
    tokens = body.strip().split()
    if not tokens:
        return None

    match tokens[0]:
        case settings.lock_trigger:
            command = LockCommand(action="lock")
        case settings.unlock_trigger:
            command = LockCommand(action="unlock")
        case settings.lock_info_alias:
            command = LockCommand(action="info", details=True)
        case _:
            return None

    flags = {settings.global_lock_flag, TASK_FLAG, REASON_FLAG, *DETAILS_FLAGS}
    args = tokens[1:]
    i = 0
    while i < len(args):
        token = args[i]
        if token == settings.global_lock_flag:
            command.global_ = True
        elif token in DETAILS_FLAGS:
            command.details = True
        elif token == TASK_FLAG:
            if i + 1 < len(args) and args[i + 1] not in flags:
                i += 1
                command.task = args[i]
        elif token == REASON_FLAG:
            words = []
            while i + 1 < len(args) and args[i + 1] not in flags:
                i += 1
                words.append(args[i])
            command.reason = " ".join(words) or None
        elif i == 0:
            command.environment = token
        else:
            raise CommandError(f"Unexpected argument `{token}`")
        i += 1

    if command.details and command.action == "lock":
        command.action = "info"
    if command.action != "lock":
        command.reason = None
    return command
