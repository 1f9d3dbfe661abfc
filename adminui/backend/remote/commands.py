"""
Command Whitelist.

The closed vocabulary of operations the panel may run on the managed host,
and the builders for every parameterised feature (services, processes,
scripts, screen sessions, authorized keys).

Commands are argument vectors. A shell string only exists after
``CommandPlan.render()``, which quotes every argument with ``shlex``;
operator input is never concatenated into a command line.

Usage:
    plan = resolve_action("firewall", ["8080", "allow", "tcp"])
    plan.render()
    # "( ufw delete deny 8080/tcp || true ) && ufw allow 8080/tcp"
"""

import posixpath
import re
import shlex
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from adminui.backend.core.exceptions import CommandNotAllowedError, ValidationError

PM2_NAME_RE = re.compile(r"^[A-Za-z0-9_.@-]{1,64}$")
SYSTEMD_NAME_RE = re.compile(r"^[A-Za-z0-9_.@-]{1,64}$")
SCREEN_SESSION_RE = re.compile(r"^\d+\.[A-Za-z0-9_.-]{1,64}$")
PUBLIC_KEY_RE = re.compile(
    r"^(?P<type>ssh-(?:rsa|ed25519|dss)|ecdsa-sha2-nistp(?:256|384|521)"
    r"|sk-ssh-ed25519@openssh\.com|sk-ecdsa-sha2-nistp256@openssh\.com)"
    r"\s+(?P<body>[A-Za-z0-9+/]+={0,3})(?:\s+(?P<comment>[^\r\n]*))?$"
)

SIGNALS: dict[int, str] = {1: "HUP", 2: "INT", 9: "KILL", 15: "TERM"}
SERVICE_ACTIONS = ("start", "stop", "restart")
SCREEN_ACTIONS = ("stop", "restart", "attach")


class RemoteAction(str, Enum):
    """Operation names accepted by the execute endpoint."""

    RESTART_SSH = "restart-ssh"
    RESTART_SERVICE = "restart-service"
    CHECK_DISK = "check-disk"
    CHECK_MEMORY = "check-memory"
    CHECK_UPTIME = "check-uptime"
    CHECK_FIREWALL_STATUS = "check-firewall-status"
    ENABLE_FIREWALL = "enable-firewall"
    DISABLE_FIREWALL = "disable-firewall"
    CHECK_PM2 = "check-pm2"
    FIREWALL = "firewall"


FIXED_ACTIONS: dict[RemoteAction, tuple[str, ...]] = {
    RemoteAction.RESTART_SSH: ("systemctl", "restart", "sshd"),
    RemoteAction.RESTART_SERVICE: ("systemctl", "restart", "nginx"),
    RemoteAction.CHECK_DISK: ("df", "-h"),
    RemoteAction.CHECK_MEMORY: ("free", "-h"),
    RemoteAction.CHECK_UPTIME: ("uptime",),
    RemoteAction.CHECK_FIREWALL_STATUS: ("ufw", "status", "verbose"),
    RemoteAction.ENABLE_FIREWALL: ("ufw", "--force", "enable"),
    RemoteAction.DISABLE_FIREWALL: ("ufw", "disable"),
    RemoteAction.CHECK_PM2: ("pm2", "jlist"),
}


@dataclass(frozen=True)
class CommandStep:
    """One program invocation inside a plan."""

    argv: tuple[str, ...]
    ignore_failure: bool = False

    def render(self, sudo: bool = False) -> str:
        argv = ("sudo", "-n", *self.argv) if sudo else self.argv
        line = shlex.join(argv)
        if self.ignore_failure:
            return f"( {line} || true )"
        return line


@dataclass(frozen=True)
class CommandPlan:
    """Ordered steps for one operation; later steps run only if earlier ones succeed."""

    action: str
    steps: tuple[CommandStep, ...]

    def render(self, sudo: bool = False) -> str:
        return " && ".join(step.render(sudo) for step in self.steps)


def _plan(action: str, *steps: Sequence[str] | CommandStep) -> CommandPlan:
    return CommandPlan(
        action=action,
        steps=tuple(s if isinstance(s, CommandStep) else CommandStep(tuple(s)) for s in steps),
    )


# =============================================================================
# Whitelist dispatch
# =============================================================================


def resolve_action(name: str, args: Sequence[Any] | None = None) -> CommandPlan:
    """
    Map an operation name and arguments to a command plan.

    Raises:
        CommandNotAllowedError: Name is not in the whitelist
        ValidationError: Arguments are malformed
    """
    try:
        action = RemoteAction(name)
    except ValueError:
        raise CommandNotAllowedError(str(name))

    args = list(args or [])
    if action is RemoteAction.FIREWALL:
        if len(args) not in (2, 3):
            raise ValidationError(
                "firewall expects [port, allow|deny, protocol?]",
                details={"args": args},
            )
        return firewall_plan(args[0], args[1], args[2] if len(args) == 3 else None)

    if args:
        raise ValidationError(f"{action.value} takes no arguments", details={"args": args})
    return _plan(action.value, FIXED_ACTIONS[action])


def firewall_plan(port: Any, rule_action: str, protocol: str | None = None) -> CommandPlan:
    """
    Allow or deny a port.

    The opposite rule is deleted first, so a port is never both allowed
    and denied.
    """
    port_number = validate_port(port)
    rule_action = str(rule_action).lower()
    if rule_action not in ("allow", "deny"):
        raise ValidationError("Firewall action must be allow or deny", details={"action": rule_action})

    proto = validate_protocol(protocol)
    rule = f"{port_number}/{proto}" if proto else str(port_number)
    opposite = "deny" if rule_action == "allow" else "allow"

    return _plan(
        "firewall",
        CommandStep(("ufw", "delete", opposite, rule), ignore_failure=True),
        ("ufw", rule_action, rule),
    )


# =============================================================================
# Parameter validation
# =============================================================================


def validate_port(value: Any) -> int:
    try:
        port = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError("Port must be an integer", details={"port": value})
    if not 1 <= port <= 65535:
        raise ValidationError("Port must be between 1 and 65535", details={"port": port})
    return port


def validate_protocol(value: str | None) -> str | None:
    if value is None or value == "":
        return None
    proto = str(value).lower()
    if proto not in ("tcp", "udp"):
        raise ValidationError("Protocol must be tcp or udp", details={"protocol": value})
    return proto


def validate_service(kind: str, name: str, allowed_services: Sequence[str]) -> str:
    """
    Check a service name for systemctl or pm2.

    systemd units must be listed in remote.allowed_services; PM2 process
    names only need to be well formed.
    """
    if kind == "systemd":
        unit = name.removesuffix(".service")
        if not SYSTEMD_NAME_RE.match(unit) or unit not in allowed_services:
            raise ValidationError(
                f"Service is not in the allowed list: {name}",
                details={"allowed": list(allowed_services)},
            )
        return unit
    if kind == "pm2":
        if not PM2_NAME_RE.match(name):
            raise ValidationError(f"Invalid PM2 process name: {name}")
        return name
    raise ValidationError(f"Unknown service type: {kind}", details={"allowed": ["systemd", "pm2"]})


def validate_script_path(path: str, directories: Sequence[str]) -> str:
    """
    Return the normalised script path if it lies inside an allowed directory.

    Rejects relative paths and any ``..`` segment before normalising, then
    compares on directory boundaries so ``/opt/scripts-old`` does not match
    ``/opt/scripts``.
    """
    if not path or "\x00" in path or "\n" in path:
        raise ValidationError("Script path is empty or malformed")
    if not path.startswith("/"):
        raise ValidationError("Script path must be absolute", details={"path": path})
    if ".." in path.split("/"):
        raise ValidationError("Script path must not contain '..'", details={"path": path})

    normalized = posixpath.normpath(path)
    for directory in directories:
        root = posixpath.normpath(directory)
        if normalized.startswith(root.rstrip("/") + "/"):
            return normalized

    raise ValidationError(
        "Script is outside the allowed directories",
        details={"path": path, "allowed": list(directories)},
    )


def validate_pid(value: Any) -> int:
    try:
        pid = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError("PID must be an integer", details={"pid": value})
    if pid <= 1:
        raise ValidationError("PID must be greater than 1", details={"pid": pid})
    return pid


def validate_signal(value: Any) -> str:
    """Accept 1, 2, 9, 15 or HUP, INT, KILL, TERM (with or without SIG); return the name."""
    if value is None or value == "":
        return "TERM"
    text = str(value).strip().upper().removeprefix("SIG")
    if text.isdigit() and int(text) in SIGNALS:
        return SIGNALS[int(text)]
    if text in SIGNALS.values():
        return text
    raise ValidationError(
        f"Signal not allowed: {value}",
        details={"allowed": sorted(SIGNALS.values())},
    )


def validate_screen_session(name: str) -> str:
    if not name or not SCREEN_SESSION_RE.match(name):
        raise ValidationError(
            "Screen session must look like <pid>.<name>",
            details={"session": name},
        )
    return name


def parse_public_key(text: str) -> tuple[str, str, str | None]:
    """
    Split an OpenSSH public key line into (type, base64 body, comment).

    Raises:
        ValidationError: Not a single OpenSSH public key line
    """
    match = PUBLIC_KEY_RE.match((text or "").strip())
    if not match:
        raise ValidationError("Not a valid OpenSSH public key")
    comment = (match.group("comment") or "").strip() or None
    return match.group("type"), match.group("body"), comment


def _home_relative(path: str) -> str:
    # SSH sessions start in the login user's home directory
    return path[2:] if path.startswith("~/") else path


# =============================================================================
# Builders
# =============================================================================


def services_plan(allowed_services: Sequence[str]) -> CommandPlan:
    units = [f"{name}.service" for name in allowed_services]
    return _plan(
        "list-services",
        CommandStep(
            ("systemctl", "list-units", "--type=service", "--all", "--no-legend", "--plain", *units),
            ignore_failure=True,
        ),
    )


def pm2_plan() -> CommandPlan:
    return _plan("list-pm2", FIXED_ACTIONS[RemoteAction.CHECK_PM2])


def manage_service_plan(
    kind: str,
    name: str,
    action: str,
    allowed_services: Sequence[str],
) -> CommandPlan:
    action = action.lower()
    if action not in SERVICE_ACTIONS:
        raise ValidationError(
            f"Service action not allowed: {action}",
            details={"allowed": list(SERVICE_ACTIONS)},
        )
    name = validate_service(kind, name, allowed_services)
    if kind == "systemd":
        return _plan("manage-service", ("systemctl", action, name))
    return _plan("manage-service", ("pm2", action, name))


def ports_plan() -> CommandPlan:
    return _plan("list-ports", ("ss", "-tulnpH"))


def processes_plan() -> CommandPlan:
    return _plan(
        "list-processes",
        ("ps", "-eo", "pid,user,%cpu,%mem,comm,args", "--sort=-%cpu", "--no-headers"),
    )


def kill_plan(pid: Any, signal: Any = None) -> CommandPlan:
    return _plan("kill-process", ("kill", "-s", validate_signal(signal), str(validate_pid(pid))))


def scripts_plan(directories: Sequence[str]) -> CommandPlan:
    """List *.sh files; missing directories are skipped."""
    return _plan(
        "list-scripts",
        *(
            CommandStep(
                ("find", directory, "-maxdepth", "2", "-type", "f", "-name", "*.sh"),
                ignore_failure=True,
            )
            for directory in directories
        ),
    )


def execute_script_plan(path: str, directories: Sequence[str]) -> CommandPlan:
    return _plan("execute-script", ("bash", validate_script_path(path, directories)))


def screen_list_plan() -> CommandPlan:
    # screen -ls exits 1 when there are no sessions
    return _plan("list-screens", CommandStep(("screen", "-ls"), ignore_failure=True))


def screen_manage_plan(session: str, action: str) -> CommandPlan:
    """
    Stop a screen session, or restart the program running in it.

    Restart sends Ctrl-C to the session window, then recalls and re-runs
    the previous shell command (Up arrow + Enter).
    """
    session = validate_screen_session(session)
    if action == "stop":
        return _plan("screen-stop", ("screen", "-S", session, "-X", "quit"))
    if action == "restart":
        return _plan(
            "screen-restart",
            ("screen", "-S", session, "-p", "0", "-X", "stuff", "^C"),
            ("sleep", "1"),
            ("screen", "-S", session, "-p", "0", "-X", "stuff", "^[[A^M"),
        )
    raise ValidationError(
        f"Screen action not allowed: {action}",
        details={"allowed": list(SCREEN_ACTIONS)},
    )


def status_plan() -> CommandPlan:
    """Uptime, load, memory, CPU count and root filesystem usage, separated by ``---`` lines."""
    separator = ("echo", "---")
    return _plan(
        "status",
        ("cat", "/proc/uptime", "/proc/loadavg"),
        separator,
        ("free", "-b"),
        separator,
        ("nproc",),
        separator,
        ("df", "-P", "/"),
    )


def authorized_key_add_plan(public_key: str, authorized_keys_path: str) -> CommandPlan:
    """Append a key to authorized_keys unless an identical line is already there."""
    key_type, body, comment = parse_public_key(public_key)
    line = " ".join(part for part in (key_type, body, comment) if part)
    path = _home_relative(authorized_keys_path)
    directory = posixpath.dirname(path) or "."
    return _plan(
        "add-ssh-key",
        ("mkdir", "-p", "-m", "700", directory),
        ("touch", path),
        ("sh", "-c", 'grep -qxF -- "$1" "$2" || printf "%s\\n" "$1" >> "$2"', "sh", line, path),
        ("chmod", "600", path),
    )


def authorized_key_remove_plan(public_key: str, authorized_keys_path: str) -> CommandPlan:
    """Drop every authorized_keys line carrying this key material."""
    key_type, body, _ = parse_public_key(public_key)
    path = _home_relative(authorized_keys_path)
    return _plan(
        "remove-ssh-key",
        (
            "sh",
            "-c",
            '[ -f "$2" ] || exit 0; grep -vF -- "$1" "$2" > "$2.tmp"; mv "$2.tmp" "$2" && chmod 600 "$2"',
            "sh",
            f"{key_type} {body}",
            path,
        ),
    )
