"""로딩 상태 플레이스홀더 HTML 조각.

Loading-state placeholder fragment served while the team list loads:
an avatar with two text bars, then three placeholder rows, each with a
title bar and clock/user pills.
"""

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router: APIRouter = APIRouter()

SKELETON_ITEM_COUNT = 3

SKELETON_HTML = """<div class="skeleton-container animate-pulse">
<div class="mb-4 flex items-center">
<div class="skeleton-avatar h-8 w-8 rounded-full bg-gray-200"></div>
<div class="space-y-1">
<div class="skeleton-text h-4 w-16 rounded-md bg-gray-200"></div>
<div class="skeleton-text h-4 w-24 rounded-md bg-gray-200"></div>
</div>
</div>
<ul class="divide-y divide-neutral-200 rounded-md border border-gray-200 bg-white">
{{ITEMS}}
</ul>
</div>"""

SKELETON_ITEM_HTML = """<li class="skeleton-item flex w-full items-center justify-between px-4 py-4">
<div class="flex-grow truncate text-sm">
<div><div class="skeleton-text h-5 w-32 rounded-md bg-gray-200"></div></div>
<ul class="mt-2 flex space-x-4">
<li class="flex items-center whitespace-nowrap"><span class="icon icon-clock mr-1.5 inline h-4 w-4 text-gray-200" aria-hidden="true"></span><div class="skeleton-text h-4 w-12 rounded-md bg-gray-200"></div></li>
<li class="flex items-center whitespace-nowrap"><span class="icon icon-user mr-1.5 inline h-4 w-4 text-gray-200" aria-hidden="true"></span><div class="skeleton-text h-4 w-16 rounded-md bg-gray-200"></div></li>
</ul>
</div>
</li>"""


def _render() -> HTMLResponse:
    items = "\n".join(SKELETON_ITEM_HTML for _ in range(SKELETON_ITEM_COUNT))
    return HTMLResponse(SKELETON_HTML.replace("{{ITEMS}}", items))


@router.get("/skeleton", response_class=HTMLResponse)
async def skeleton() -> HTMLResponse:
    """팀 목록 로딩 플레이스홀더를 반환합니다 (인증 불필요)."""
    return _render()
