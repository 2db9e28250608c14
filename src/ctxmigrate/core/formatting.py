"""Text shortening for table cells and status lines."""

from __future__ import annotations

ELLIPSIS = "..."


def compress_path(path: str, max_len: int = 40) -> str:
    """Shorten a relative path by eliding middle directories.

    Keeps the first segment (usually the tool directory) and as many
    trailing segments as fit; falls back to the bare filename.

    Examples:
        .claude/commands/review/security.md -> .claude/.../review/security.md
        .github/copilot-instructions.md -> unchanged
    """
    if len(path) <= max_len:
        return path
    parts = path.split("/")
    if len(parts) <= 2:
        return path

    head, tail = parts[0], [parts[-1]]
    for part in reversed(parts[1:-1]):
        candidate = "/".join([head, ELLIPSIS, part, *tail])
        if len(candidate) > max_len:
            break
        tail.insert(0, part)

    shortened = "/".join([head, ELLIPSIS, *tail])
    return shortened if len(shortened) <= max_len else parts[-1]


def truncate_at_word(text: str, max_len: int = 40) -> str:
    """Cut ``text`` to ``max_len`` characters at a space, ending with an ellipsis."""
    if len(text) <= max_len:
        return text
    room = max_len - len(ELLIPSIS)
    if room <= 0:
        return ELLIPSIS
    head, space, _ = text[: room + 1].rpartition(" ")
    return (head if space and head else text[:room]).rstrip() + ELLIPSIS


def format_duration(seconds: float) -> str:
    """Elapsed time for run summaries: "0.3s", "1m 30s", "1h 5m"."""
    if seconds < 0:
        raise ValueError("Duration must be non-negative")
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"
