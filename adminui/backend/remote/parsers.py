"""
Command Output Parsers.

Pure functions turning the text produced by the builders in
``remote.commands`` into schema rows. Lines that do not parse are skipped.
"""

import json
import posixpath
import re

from adminui.backend.schemas.server import (
    PortInfo,
    ProcessInfo,
    ScreenSession,
    ScriptInfo,
    ServerStatus,
    ServiceInfo,
)

_SCREEN_LINE_RE = re.compile(
    r"^\s*(?P<id>(?P<pid>\d+)\.(?P<name>\S+))\s+(?:\((?P<started>[^)]*)\)\s+)?\((?P<state>[^)]+)\)"
)
_PORT_PROCESS_RE = re.compile(r'users:\(\("(?P<name>[^"]+)",pid=(?P<pid>\d+)')


def format_uptime(seconds: int) -> str:
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def _percent(part: int, total: int) -> float | None:
    return round(part * 100 / total, 1) if total else None


def parse_status(output: str, host: str) -> ServerStatus:
    """
    Parse the status probe output.

    Sections are separated by ``---`` lines: /proc/uptime + /proc/loadavg,
    ``free -b``, ``nproc``, ``df -P /``.
    """
    sections: list[list[str]] = [[]]
    for line in output.splitlines():
        if line.strip() == "---":
            sections.append([])
        elif line.strip():
            sections[-1].append(line)
    sections += [[] for _ in range(4 - len(sections))]
    proc, memory, cpus, disk = sections[:4]

    status = ServerStatus(online=True, host=host)

    if proc:
        try:
            status.uptime_seconds = int(float(proc[0].split()[0]))
            status.uptime = format_uptime(status.uptime_seconds)
        except (IndexError, ValueError):
            pass
    if len(proc) > 1:
        try:
            status.load_average = [float(v) for v in proc[1].split()[:3]]
        except ValueError:
            pass

    for line in memory:
        fields = line.split()
        if fields and fields[0] == "Mem:" and len(fields) >= 3:
            try:
                total, used = int(fields[1]), int(fields[2])
            except ValueError:
                break
            status.memory_total = total
            status.memory_used = used
            status.memory_percent = _percent(used, total)

    if cpus:
        try:
            status.cpu_count = int(cpus[0].strip())
        except ValueError:
            pass

    for line in disk[1:]:
        fields = line.split()
        if len(fields) >= 6:
            try:
                total_kb, used_kb = int(fields[1]), int(fields[2])
            except ValueError:
                continue
            status.disk_total = total_kb * 1024
            status.disk_used = used_kb * 1024
            status.disk_percent = _percent(used_kb, total_kb)
            break

    return status


def parse_systemctl_units(output: str) -> list[ServiceInfo]:
    """Rows of ``systemctl list-units --plain --no-legend``: UNIT LOAD ACTIVE SUB DESCRIPTION."""
    services: list[ServiceInfo] = []
    for line in output.splitlines():
        fields = line.split(None, 4)
        if len(fields) < 4 or not fields[0].endswith(".service"):
            continue
        unit, _load, active, sub = fields[:4]
        services.append(
            ServiceInfo(
                name=unit.removesuffix(".service"),
                type="systemd",
                running=active == "active" and sub == "running",
                state=f"{active}/{sub}",
                description=fields[4].strip() if len(fields) > 4 else None,
            )
        )
    return services


def parse_pm2_jlist(output: str) -> list[ServiceInfo] | None:
    """
    Parse ``pm2 jlist``.

    Returns:
        Process rows, or None when the output is not a JSON list (PM2 not installed)
    """
    # pm2 may print banner lines such as "[PM2] Spawning PM2 daemon" before the JSON document
    lines = output.strip().splitlines()
    start = next(
        (i for i, line in enumerate(lines) if line.lstrip().startswith(("[{", "[]"))),
        None,
    )
    if start is None:
        return None
    try:
        items = json.loads("\n".join(lines[start:]))
    except json.JSONDecodeError:
        return None
    if not isinstance(items, list):
        return None

    services: list[ServiceInfo] = []
    for item in items:
        if not isinstance(item, dict) or "name" not in item:
            continue
        env = item.get("pm2_env") or {}
        monit = item.get("monit") or {}
        state = str(env.get("status", "unknown"))
        services.append(
            ServiceInfo(
                name=str(item["name"]),
                type="pm2",
                running=state == "online",
                state=state,
                pid=item.get("pid") or None,
                cpu=monit.get("cpu"),
                memory=monit.get("memory"),
                restarts=env.get("restart_time"),
            )
        )
    return services


def parse_ports(output: str) -> list[PortInfo]:
    """Rows of ``ss -tulnpH``: Netid State Recv-Q Send-Q Local Peer [Process]."""
    ports: list[PortInfo] = []
    for line in output.splitlines():
        fields = line.split()
        if len(fields) < 6:
            continue
        netid, state, local = fields[0], fields[1], fields[4]
        address, _, port_text = local.rpartition(":")
        if not port_text.isdigit():
            continue
        process = _PORT_PROCESS_RE.search(line)
        ports.append(
            PortInfo(
                protocol=netid,
                state=state,
                local_address=address or "*",
                port=int(port_text),
                process=process.group("name") if process else None,
                pid=int(process.group("pid")) if process else None,
            )
        )
    ports.sort(key=lambda p: (p.port, p.protocol))
    return ports


def parse_processes(output: str, limit: int = 30) -> list[ProcessInfo]:
    """Rows of ``ps -eo pid,user,%cpu,%mem,comm,args --no-headers``, at most ``limit``."""
    processes: list[ProcessInfo] = []
    for line in output.splitlines():
        fields = line.split(None, 5)
        if len(fields) < 5:
            continue
        try:
            row = ProcessInfo(
                pid=int(fields[0]),
                user=fields[1],
                cpu=float(fields[2]),
                memory=float(fields[3]),
                command=fields[4],
                args=fields[5] if len(fields) > 5 else fields[4],
            )
        except ValueError:
            continue
        processes.append(row)
        if len(processes) >= limit:
            break
    return processes


def parse_screen_sessions(output: str) -> list[ScreenSession]:
    """Session lines of ``screen -ls``, e.g. ``12345.worker (01/02/24 10:00:00) (Detached)``."""
    sessions: list[ScreenSession] = []
    for line in output.splitlines():
        match = _SCREEN_LINE_RE.match(line)
        if not match:
            continue
        sessions.append(
            ScreenSession(
                id=match.group("id"),
                pid=int(match.group("pid")),
                name=match.group("name"),
                state=match.group("state"),
                started=match.group("started"),
            )
        )
    return sessions


def parse_script_listing(output: str) -> list[ScriptInfo]:
    """Absolute paths printed by ``find``, sorted and de-duplicated."""
    paths = sorted({line.strip() for line in output.splitlines() if line.strip().startswith("/")})
    return [
        ScriptInfo(path=path, name=posixpath.basename(path), directory=posixpath.dirname(path))
        for path in paths
    ]
