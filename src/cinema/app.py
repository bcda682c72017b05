# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import FastAPI, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from cinema.auth.authenticator import authenticate
from cinema.auth.remember import COOKIE_NAME as REMEMBER_COOKIE_NAME
from cinema.auth.remember import DEFAULT_MAX_AGE_SECONDS as REMEMBER_MAX_AGE
from cinema.auth.remember import issue_token
from cinema.auth.session import COOKIE_NAME as SESSION_COOKIE_NAME
from cinema.auth.session import DEFAULT_MAX_AGE_SECONDS as SESSION_MAX_AGE
from cinema.auth.session import sign_session
from cinema.auth.users import DEFAULT_USERS_PATH, get_user
from cinema.core.exceptions import AppException, FieldError, StoreUnavailable, ValidationError
from cinema.core.logging import configure_logging
from cinema.csrf import COOKIE_NAME as CSRF_COOKIE_NAME
from cinema.csrf import check_csrf, csrf_token_for
from cinema.i18n import COOKIE_NAME as LOCALE_COOKIE_NAME
from cinema.i18n import DEFAULT_LOCALE, SUPPORTED_LOCALES, locale_switch, message, resolve_locale
from cinema.permissions import LOGIN_PAGE, Decision, authorize, cookie_settings, landing_page
from cinema.pipeline import SOURCE_REMEMBER_ME, Resolution, resolve_principal
from cinema.services.registration_service import RegistrationForm, register_user

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Cinema")

BASE_DIR = Path(__file__).resolve().parent

app.mount("/css", StaticFiles(directory=str(BASE_DIR / "static" / "css")), name="css")
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

USERS_PATH = Path(os.getenv("CINEMA_USERS_PATH", str(DEFAULT_USERS_PATH))).resolve()

LOCALE_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


def _render(request: Request, template_name: str, ctx: Optional[dict] = None, *, status_code: int = 200):
    """TemplateResponse wrapper injecting user, locale and CSRF token."""
    locale = getattr(request.state, "locale", DEFAULT_LOCALE)

    def t(key: str, default: Optional[str] = None) -> str:
        return message(locale, key, default)

    base_ctx = {
        "current_user": getattr(request.state, "user", None),
        "locale": locale,
        "locales": SUPPORTED_LOCALES,
        "csrf_token": getattr(request.state, "csrf_token", ""),
        "t": t,
    }
    return templates.TemplateResponse(request, template_name, {**base_ctx, **(ctx or {})}, status_code=status_code)


def _error_page(request: Request, exc: AppException):
    extra = {"method": request.method, "path": request.url.path, "status_code": exc.status_code}
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.error_type, exc.message, extra=extra)
    else:
        logger.info("%s: %s", exc.error_type, exc.message, extra=extra)
    return _render(request, "error.html", {"error_key": "error.generic"}, status_code=exc.status_code)


def _sets_cookie(response, name: str) -> bool:
    prefix = f"{name}="
    return any(v.startswith(prefix) for v in response.headers.getlist("set-cookie"))


def _finish(request: Request, response, res: Optional[Resolution]):
    """Attach the cookies the request pipeline decided on, unless the route already set them."""
    if res is not None and res.principal is not None and res.source == SOURCE_REMEMBER_ME:
        if not _sets_cookie(response, SESSION_COOKIE_NAME):
            response.set_cookie(
                SESSION_COOKIE_NAME, sign_session(res.principal), max_age=SESSION_MAX_AGE, **cookie_settings()
            )
    if res is not None and res.clear_remember_cookie and not _sets_cookie(response, REMEMBER_COOKIE_NAME):
        response.delete_cookie(REMEMBER_COOKIE_NAME)

    if not request.cookies.get(CSRF_COOKIE_NAME) and not _sets_cookie(response, CSRF_COOKIE_NAME):
        response.set_cookie(CSRF_COOKIE_NAME, request.state.csrf_token, **cookie_settings())

    switched = locale_switch(request)
    if switched:
        response.set_cookie(LOCALE_COOKIE_NAME, switched, max_age=LOCALE_COOKIE_MAX_AGE, samesite="lax")
    return response


@app.middleware("http")
async def _auth_middleware(request: Request, call_next):
    request.state.locale = resolve_locale(request)
    request.state.csrf_token = csrf_token_for(request)
    request.state.user = None

    try:
        res = resolve_principal(request, path=USERS_PATH)
    except StoreUnavailable as e:
        return _finish(request, _error_page(request, e), None)

    request.state.user = res.principal
    if authorize(request.url.path, request.method, res.principal) == Decision.DENY:
        if res.principal is None:
            response = RedirectResponse(url=LOGIN_PAGE, status_code=303)
        else:
            logger.info(
                "Access denied",
                extra={"method": request.method, "path": request.url.path, "username": res.principal.username},
            )
            response = _render(request, "error.html", {"error_key": "error.forbidden"}, status_code=403)
        return _finish(request, response, res)

    response = await call_next(request)
    return _finish(request, response, res)


@app.exception_handler(AppException)
async def _app_exception_handler(request: Request, exc: AppException):
    return _error_page(request, exc)


def _field_messages(locale: str, errors: List[FieldError]) -> Dict[str, List[str]]:
    out: Dict[str, List[str]] = {}
    for e in errors:
        text = message(locale, f"validation.{e.field}.{e.code}", message(locale, f"validation.{e.code}"))
        out.setdefault(e.field, []).append(text)
    return out


def _truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "on", "yes", "y"}


# ------------------ Routes ------------------


@app.get("/signIn", response_class=HTMLResponse)
def sign_in_get(
    request: Request,
    error: Optional[str] = None,
    logout: Optional[str] = None,
    registered: Optional[str] = None,
):
    user = request.state.user
    if user:
        return RedirectResponse(url=landing_page(user), status_code=303)
    return _render(
        request,
        "signIn.html",
        {"error": error is not None, "logged_out": logout is not None, "registered": registered is not None},
    )


@app.post("/signIn")
def sign_in_post(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    remember_me: Optional[str] = Form(None, alias="remember-me"),
    csrf: str = Form("", alias="_csrf"),
):
    check_csrf(request, csrf)
    result = authenticate(username, password, path=USERS_PATH)
    if not result.ok or result.principal is None:
        return RedirectResponse(url=f"{LOGIN_PAGE}?error=true", status_code=303)

    principal = result.principal
    resp = RedirectResponse(url=landing_page(principal), status_code=303)
    resp.set_cookie(SESSION_COOKIE_NAME, sign_session(principal), max_age=SESSION_MAX_AGE, **cookie_settings())
    if _truthy(remember_me):
        resp.set_cookie(
            REMEMBER_COOKIE_NAME,
            issue_token(principal.username, path=USERS_PATH, max_age=REMEMBER_MAX_AGE),
            max_age=REMEMBER_MAX_AGE,
            **cookie_settings(),
        )
    return resp


@app.get("/signUp", response_class=HTMLResponse)
def sign_up_get(request: Request):
    user = request.state.user
    if user:
        return RedirectResponse(url=landing_page(user), status_code=303)
    return _render(request, "signUp.html", {"values": RegistrationForm().values(), "errors": {}})


@app.post("/signUp")
def sign_up_post(
    request: Request,
    first_name: str = Form("", alias="firstName"),
    last_name: str = Form("", alias="lastName"),
    username: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form("", alias="confirmPassword"),
    csrf: str = Form("", alias="_csrf"),
):
    check_csrf(request, csrf)
    form = RegistrationForm(
        first_name=first_name,
        last_name=last_name,
        username=username,
        email=email,
        phone=phone,
        password=password,
        confirm_password=confirm_password,
    )
    try:
        register_user(form, path=USERS_PATH)
    except ValidationError as e:
        return _render(
            request,
            "signUp.html",
            {"values": form.values(), "errors": _field_messages(request.state.locale, e.errors)},
            status_code=e.status_code,
        )
    return RedirectResponse(url=f"{LOGIN_PAGE}?registered=true", status_code=303)


@app.post("/logout")
def logout_post(request: Request, csrf: str = Form("", alias="_csrf")):
    check_csrf(request, csrf)
    resp = RedirectResponse(url=f"{LOGIN_PAGE}?logout=true", status_code=303)
    resp.delete_cookie(SESSION_COOKIE_NAME)
    resp.delete_cookie(REMEMBER_COOKIE_NAME)
    return resp


@app.get("/", response_class=HTMLResponse)
def home(request: Request):
    return _render(request, "index.html")


@app.get("/profile", response_class=HTMLResponse)
def profile(request: Request):
    principal = request.state.user
    return _render(request, "profile.html", {"user": get_user(principal.username, path=USERS_PATH)})


@app.get("/admin/panel/halls", response_class=HTMLResponse)
def admin_halls(request: Request):
    return _render(request, "admin/halls.html")


@app.get("/admin/panel/films", response_class=HTMLResponse)
def admin_films(request: Request):
    return _render(request, "admin/films.html")


@app.get("/admin/panel/sessions", response_class=HTMLResponse)
def admin_sessions(request: Request):
    return _render(request, "admin/sessions.html")


@app.get("/session/search", response_class=HTMLResponse)
def session_search(request: Request, filmName: str = ""):
    return _render(request, "session_search.html", {"query": filmName})


@app.get("/films/{film_id}/chat", response_class=HTMLResponse)
def film_chat(request: Request, film_id: int):
    return _render(request, "chat.html", {"film_id": film_id})


@app.get("/films/{film_id}/chat/messages")
def film_chat_messages(film_id: int):
    return JSONResponse({"film_id": film_id, "messages": []})
