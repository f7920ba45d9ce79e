"""
FastAPI dependencies for objects owned by the application.
"""

from fastapi import Request

from barberqueue.services.admin_session import AdminSession
from barberqueue.services.queue_engine import QueueEngine


def get_engine(request: Request) -> QueueEngine:
    return request.app.state.engine


def get_admin_session(request: Request) -> AdminSession:
    return request.app.state.admin_session
