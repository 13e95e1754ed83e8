"""
texts.py — Teksty wiadomości bota i drobne formatery.
"""
from __future__ import annotations

from contracts import AdminReport, BroadcastReport

OWNER_ONLY = "❌ Owner only command."
CALC_USAGE = "Usage: /calc 12*(3+4)"
BROADCAST_USAGE = "Usage: /broadcast Your message here"


def start_text(title: str, bot_username: str) -> str:
    return (
        f"🧮 *{title} Bot* — welcome!\n\n"
        "What you can do 👇\n\n"
        "• Send any expression straight to the bot, e.g. `12*(3+4)`\n"
        "• `/calculator` – open the button calculator\n"
        "• `/calc 12*(3+4)` – one-shot calculation\n"
        "• In a group, write `4*5` (the bot must be admin) and it replies `4×5 = 20`\n"
        f"• Inline mode: type `@{bot_username} 12+3` in any chat and send the result\n\n"
        "Admin (Owner Only) 🛡\n"
        "• `/admin` – users, groups and uptime\n"
        "• `/broadcast Your message` – notify everyone using the bot\n\n"
        "_Tip: try /calculator for the button UI_ 😉"
    )


def pretty_expression(text: str) -> str:
    """4*5/2 → 4×5÷2"""
    return text.replace("*", "×").replace("/", "÷")


def format_uptime(seconds: float) -> str:
    """90061 → '1d 1h 1m 1s'; sekundy zawsze obecne."""
    sec = int(seconds)
    days, sec = divmod(sec, 86400)
    hours, sec = divmod(sec, 3600)
    mins, sec = divmod(sec, 60)

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if mins:
        parts.append(f"{mins}m")
    parts.append(f"{sec}s")
    return " ".join(parts)


def admin_report_text(title: str, report: AdminReport) -> str:
    lines = [
        f"🔐 {title} — Admin Dashboard",
        "",
        f"👤 Bot Users: {report.total_users}",
        f"👥 Total Groups (all-time): {report.total_groups}",
        f"👥 Active Groups: {len(report.active_groups)}",
        f"⏱ Uptime: {format_uptime(report.uptime_seconds)}",
    ]
    if report.active_groups:
        lines.append("")
        lines.append("📜 Active Group List:")
        for idx, g in enumerate(report.active_groups, start=1):
            lines.append(f"{idx}. {g.title or '(no title)'} [{g.chat_id}]")
        if report.total_groups > len(report.active_groups):
            lines.append(f"… and more ({report.total_groups} groups total)")
    return "\n".join(lines)


def broadcast_text(title: str, message: str) -> str:
    return f"📢 [{title} Broadcast]\n\n{message}"


def broadcast_summary(report: BroadcastReport) -> str:
    return (
        "✅ Broadcast finished.\n\n"
        f"👤 Users: {report.user_ok} sent, {report.user_fail} failed.\n"
        f"👥 Groups: {report.group_ok} sent, {report.group_fail} failed."
    )
