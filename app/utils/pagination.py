from flask import current_app


def page_size(requested=None) -> int:
    """Resolve a requested page size against DEFAULT_PAGE_SIZE and MAX_PAGE_SIZE."""
    cfg = current_app.config
    if not requested:
        return cfg["DEFAULT_PAGE_SIZE"]
    return min(requested, cfg["MAX_PAGE_SIZE"])
