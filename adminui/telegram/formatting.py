"""
Message Formatting.

HTML renderings of service results for Telegram messages. Every value
that comes from the host or the operator is escaped.
"""

from html import escape

from adminui.backend.core.utils import truncate
from adminui.backend.models.activity import ActivityLog
from adminui.backend.schemas.server import (
    CommandOutcome,
    PortInfo,
    ProcessInfo,
    ServerStatus,
    ServiceInfo,
)

# Telegram rejects messages over 4096 characters; leave room for markup
MESSAGE_LIMIT = 3500
OUTCOME_EMOJI = {"succeeded": "✅", "failed": "❌", "pending": "⏳"}


def human_bytes(value: int | None) -> str:
    if value is None:
        return "N/A"
    size = float(value)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if size < 1024 or unit == "TB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def join_lines(lines: list[str]) -> str:
    """Join lines, dropping whole lines past the message limit."""
    kept: list[str] = []
    size = 0
    for line in lines:
        size += len(line) + 1
        if size > MESSAGE_LIMIT:
            kept.append(f"... {len(lines) - len(kept)} more")
            break
        kept.append(line)
    return "\n".join(kept)


def pre(text: str) -> str:
    """Preformatted block, truncated to fit a message."""
    body = truncate(text.strip(), MESSAGE_LIMIT) or "(no output)"
    return f"<pre>{escape(body)}</pre>"


def format_status(status: ServerStatus) -> str:
    if not status.online:
        return (
            f"🔴 <b>{escape(status.host)}</b> is unreachable\n\n"
            f"{escape(status.error or 'Unknown error')}"
        )

    load = ", ".join(f"{v:.2f}" for v in status.load_average) if status.load_average else "N/A"
    lines = [
        f"🟢 <b>{escape(status.host)}</b>",
        "",
        f"⏱️ Uptime: {escape(status.uptime)}",
        f"📈 Load: {load}" + (f" ({status.cpu_count} CPU)" if status.cpu_count else ""),
        f"🧠 Memory: {human_bytes(status.memory_used)} / {human_bytes(status.memory_total)}"
        + (f" ({status.memory_percent}%)" if status.memory_percent is not None else ""),
        f"💾 Disk: {human_bytes(status.disk_used)} / {human_bytes(status.disk_total)}"
        + (f" ({status.disk_percent}%)" if status.disk_percent is not None else ""),
    ]
    if status.error:
        lines += ["", f"⚠️ {escape(status.error)}"]
    return "\n".join(lines)


def format_disk(status: ServerStatus) -> str:
    if not status.online:
        return format_status(status)
    return (
        f"💾 <b>Disk /</b> on {escape(status.host)}\n\n"
        f"Used: {human_bytes(status.disk_used)} of {human_bytes(status.disk_total)}"
        + (f" ({status.disk_percent}%)" if status.disk_percent is not None else "")
    )


def format_services(services: list[ServiceInfo], pm2_available: bool) -> str:
    if not services:
        return "No services found."
    lines = ["⚙️ <b>Services</b>", ""]
    for service in services:
        icon = "🟢" if service.running else "🔴"
        lines.append(f"{icon} {escape(service.name)} <i>({service.type}, {escape(service.state)})</i>")
    if not pm2_available:
        lines += ["", "<i>PM2 is not installed</i>"]
    return join_lines(lines)


def format_processes(processes: list[ProcessInfo]) -> str:
    if not processes:
        return "No processes found."
    rows = [f"{'PID':>7} {'CPU%':>5} {'MEM%':>5}  COMMAND"]
    rows += [f"{p.pid:>7} {p.cpu:>5.1f} {p.memory:>5.1f}  {p.command}" for p in processes]
    return "🔝 <b>Top processes</b>\n" + pre("\n".join(rows))


def format_ports(ports: list[PortInfo]) -> str:
    if not ports:
        return "No listening ports."
    rows = [
        f"{p.protocol:<4} {p.port:>5}  {p.local_address:<16} {p.process or '-'}"
        for p in ports
    ]
    return "🔌 <b>Listening ports</b>\n" + pre("\n".join(rows))


def format_outcome(title: str, outcome: CommandOutcome) -> str:
    if outcome.ok:
        header = f"✅ <b>{escape(title)}</b>"
        body = outcome.output
    else:
        status = "timeout" if outcome.exit_status is None else f"exit {outcome.exit_status}"
        header = f"❌ <b>{escape(title)}</b> ({status})"
        body = outcome.error or outcome.output
    return f"{header}\n{pre(body)}" if body.strip() else header


def format_logs(entries: list[ActivityLog]) -> str:
    if not entries:
        return "No activity yet."
    lines = ["📜 <b>Recent activity</b>", ""]
    for entry in entries:
        icon = OUTCOME_EMOJI.get(entry.outcome, "•")
        when = entry.timestamp.strftime("%m-%d %H:%M")
        details = f" {escape(truncate(entry.details, 60))}" if entry.details else ""
        lines.append(
            f"{icon} <code>{when}</code> {escape(entry.username)}: "
            f"<b>{escape(entry.action)}</b>{details}"
        )
    return join_lines(lines)
