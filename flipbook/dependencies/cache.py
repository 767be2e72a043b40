from fastapi import Request

from flipbook.services.page_cache import PageCache


def get_page_cache(request: Request) -> PageCache:
    return request.app.state.page_cache
