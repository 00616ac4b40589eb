# app/routes/pages.py
from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root():
    return {"message": "Welcome to the Bus Driver KIR Tracker"}


@router.get("/login")
async def login_page():
    return {"message": "Sign in to manage driver records"}


@router.get("/admin")
async def admin_page():
    return {"message": "Driver administration"}
