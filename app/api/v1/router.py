"""API v1 router aggregating all endpoints."""

from fastapi import APIRouter

from app.api.v1 import chats, demo, documents, feedback, memories, mentors, uploads, users

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(mentors.router, prefix="/mentors", tags=["mentors"])
api_router.include_router(documents.mentor_documents_router, prefix="/mentors", tags=["documents"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
api_router.include_router(chats.router, prefix="/chats", tags=["chats"])
api_router.include_router(memories.router, prefix="/memories", tags=["memories"])
api_router.include_router(feedback.router, prefix="/feedback", tags=["feedback"])
api_router.include_router(uploads.router, prefix="/uploads", tags=["uploads"])
api_router.include_router(demo.router, prefix="/demo", tags=["demo"])
