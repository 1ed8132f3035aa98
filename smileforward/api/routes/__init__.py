"""Versioned JSON API: public lead capture and the staff console."""

from fastapi import APIRouter

from smileforward.api.routes import admin, auth, leads

api_router = APIRouter()

for module, prefix in ((auth, "/auth"), (leads, "/leads"), (admin, "/admin")):
    api_router.include_router(module.router, prefix=prefix, tags=[prefix.strip("/")])
