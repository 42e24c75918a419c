"""뷰어 API 라우터 패키지 — 로그인한 사용자 기준 프로시저.

Viewer API Router package — Procedures executed on behalf of the
signed-in user, aggregated into one router.

Included routers:
    - teams: 팀/멤버십 프로시저 (Team and membership procedures)
    - skeleton: 팀 목록 로딩 플레이스홀더 (Team list loading placeholder)
"""

from fastapi import APIRouter

from teamhub.api.viewer.skeleton import router as skeleton_router
from teamhub.api.viewer.teams import router as teams_router

viewer_router: APIRouter = APIRouter()

# 팀 프로시저: /teams/<procedureName> (Team procedures)
viewer_router.include_router(teams_router, prefix="/teams", tags=["Teams"])
# 로딩 플레이스홀더: /teams/skeleton (인증 불필요, no auth)
viewer_router.include_router(skeleton_router, prefix="/teams", tags=["Teams"])
