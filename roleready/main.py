import logging

from dotenv import load_dotenv

load_dotenv()

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from roleready.api.v1.activity import router as activity_router
from roleready.api.v1.ats import router as ats_router
from roleready.api.v1.health import router as health_router
from roleready.api.v1.mentor import router as mentor_router
from roleready.api.v1.notifications import router as notifications_router
from roleready.api.v1.readiness import router as readiness_router
from roleready.api.v1.resume import router as resume_router
from roleready.api.v1.roadmap import router as roadmap_router
from roleready.api.v1.roles import router as roles_router
from roleready.api.v1.skills import router as skills_router
from roleready.api.v1.target_role import router as target_role_router
from roleready.api.v1.tickets import router as tickets_router
from roleready.api.v1.user_skills import router as user_skills_router
from roleready.api.v1.users import router as users_router
from roleready.core.config import settings
from roleready.core.cors import cors_allow_origin_regex, cors_allowed_origins
from roleready.core.lifespan import lifespan
from roleready.core.rate_limit import limiter

logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

app = FastAPI(title="RoleReady API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allowed_origins(),
    allow_origin_regex=cors_allow_origin_regex(),
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(skills_router, prefix="/v1", tags=["Skills"])
app.include_router(roles_router, prefix="/v1", tags=["Roles"])
app.include_router(users_router, prefix="/v1", tags=["Users"])
app.include_router(user_skills_router, prefix="/v1", tags=["User Skills"])
app.include_router(target_role_router, prefix="/v1", tags=["Target Role"])
app.include_router(readiness_router, prefix="/v1", tags=["Readiness"])
app.include_router(roadmap_router, prefix="/v1", tags=["Roadmap"])
app.include_router(resume_router, prefix="/v1", tags=["Resume"])
app.include_router(ats_router, prefix="/v1", tags=["ATS"])
app.include_router(mentor_router, prefix="/v1", tags=["Mentor"])
app.include_router(notifications_router, prefix="/v1", tags=["Notifications"])
app.include_router(tickets_router, prefix="/v1", tags=["Tickets"])
app.include_router(activity_router, prefix="/v1", tags=["Activity"])
